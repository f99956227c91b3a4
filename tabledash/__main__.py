import sys

from tabledash.app import main

sys.exit(main())
