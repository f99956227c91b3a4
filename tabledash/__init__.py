from .app import DashApp
from .config import DashConfig, Design, TableConfig
from .errors import ConfigLoadError, FetchError
from .registry import RegistrySnapshot, TableEntry, TableRegistry
from .sources import FileSource, RemoteSource, StaticSource
from .version import __version__

__all__ = [
    "DashApp",
    "DashConfig",
    "Design",
    "TableConfig",
    "ConfigLoadError",
    "FetchError",
    "RegistrySnapshot",
    "TableEntry",
    "TableRegistry",
    "FileSource",
    "RemoteSource",
    "StaticSource",
    "__version__",
]
