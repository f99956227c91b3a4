from __future__ import annotations

import queue
import threading
from typing import Optional

from readchar import key, readkey


class KeyReader:
    """Reads keys on a daemon thread and hands them out without blocking."""

    def __init__(self, *, autoStart: bool = True) -> None:
        self._q: queue.Queue[str] = queue.Queue()
        self._stopEvent = threading.Event()
        self._t: threading.Thread | None = None

        self._keyConstMap: dict[str, str] = {
            key.UP: "KEY_UP",
            key.DOWN: "KEY_DOWN",
            key.LEFT: "KEY_LEFT",
            key.RIGHT: "KEY_RIGHT",
            key.ESC: "KEY_ESC",
            key.F1: "KEY_F1",
            key.ENTER: "KEY_ENTER",
            key.CTRL_C: "KEY_QUIT",
        }

        # windows consoles and a few terminals send these instead
        self._rawMap: dict[str, str] = {
            "\x1b[A": "KEY_UP",
            "\x1b[B": "KEY_DOWN",
            "\x1b[D": "KEY_LEFT",
            "\x1b[C": "KEY_RIGHT",
            "\x1bOP": "KEY_F1",
            "\x1b[11~": "KEY_F1",
            "\x00H": "KEY_UP",
            "\x00P": "KEY_DOWN",
            "\x00K": "KEY_LEFT",
            "\x00M": "KEY_RIGHT",
            "\x00;": "KEY_F1",
            "\xe0H": "KEY_UP",
            "\xe0P": "KEY_DOWN",
            "\xe0K": "KEY_LEFT",
            "\xe0M": "KEY_RIGHT",
            "\xe0;": "KEY_F1",
        }

        if autoStart:
            self.start()

    def start(self) -> None:
        if self._t is not None:
            return
        self._t = threading.Thread(target=self._loop, daemon=True, name="KeyReader")
        self._t.start()

    def stop(self) -> None:
        self._stopEvent.set()

    def _loop(self) -> None:
        while not self._stopEvent.is_set():
            try:
                k = readkey()
            except KeyboardInterrupt:
                k = key.CTRL_C
            except Exception:
                # no usable terminal (e.g. stdin closed); avoid spinning
                self._stopEvent.wait(0.5)
                continue
            self._q.put_nowait(k)

    def feed(self, raw: str) -> None:
        self._q.put_nowait(raw)

    def mapKey(self, raw: str) -> str:
        mapped = self._keyConstMap.get(raw) or self._rawMap.get(raw)
        if mapped:
            return mapped
        if raw in ("\r", "\n"):
            return "KEY_ENTER"
        return raw

    def readCharNonBlocking(self) -> Optional[str]:
        try:
            raw = self._q.get_nowait()
        except queue.Empty:
            return None
        return self.mapKey(raw)
