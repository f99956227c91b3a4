from __future__ import annotations

import threading
import time


class EventLog:
    def __init__(self, *, maxLines: int = 512) -> None:
        self.maxLines = max(1, int(maxLines))
        self.logLock = threading.Lock()
        self.entries: list[str] = []

    def write(self, msg: str) -> None:
        tsStr = time.strftime("%H:%M:%S")
        line = f"[{tsStr}] {msg}"

        with self.logLock:
            self.entries.append(line)
            if len(self.entries) > self.maxLines:
                self.entries = self.entries[-self.maxLines :]

    def lines(self) -> list[str]:
        with self.logLock:
            return list(self.entries)

    def resize(self, maxLines: int) -> None:
        with self.logLock:
            self.maxLines = max(1, int(maxLines))
            self.entries = self.entries[-self.maxLines :]

    def __len__(self) -> int:
        with self.logLock:
            return len(self.entries)
