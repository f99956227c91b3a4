from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable

from .eventLog import EventLog

Signature = tuple[int, int]


def fileSignature(path: Path) -> Signature | None:
    try:
        st = path.stat()
    except OSError:
        return None
    return int(st.st_mtime_ns), int(st.st_size)


class ConfigWatcher:
    """Polls a file's mtime/size and calls `onChange` when it differs.

    A file that is briefly missing (editors replacing it) is not a change;
    the next signature seen once it is back is compared with the last one.
    """

    def __init__(
        self,
        path: str | Path,
        onChange: Callable[[], None],
        *,
        pollSec: float = 1.0,
        eventLog: EventLog | None = None,
    ) -> None:
        self.path = Path(path)
        self.onChange = onChange
        self.pollSec = float(pollSec)
        self.eventLog = eventLog
        self.lastSignature: Signature | None = fileSignature(self.path)

        self.stopEvent: threading.Event | None = None
        self.threadObj: threading.Thread | None = None

    def writeLog(self, text: str) -> None:
        if self.eventLog is not None:
            self.eventLog.write(text)

    def start(self) -> None:
        self.stopEvent = threading.Event()
        self.threadObj = threading.Thread(target=self.loopSafe, daemon=True, name="ConfigWatcher")
        self.threadObj.start()

    def stop(self) -> None:
        if self.stopEvent is not None:
            self.stopEvent.set()
        self.stopEvent = None
        self.threadObj = None

    def loopSafe(self) -> None:
        try:
            self.loop()
        except Exception as exc:
            self.writeLog(f"WATCHER LOOP EXC {type(exc).__name__}: {exc}")

    def loop(self) -> None:
        stopEvent = self.stopEvent
        while stopEvent is not None and not stopEvent.is_set():
            self.checkOnce()
            stopEvent.wait(max(0.05, self.pollSec))

    def checkOnce(self) -> bool:
        sig = fileSignature(self.path)
        if sig is None or sig == self.lastSignature:
            return False

        self.lastSignature = sig
        self.onChange()
        return True
