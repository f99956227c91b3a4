from __future__ import annotations

import textwrap
import time
from typing import Callable

from rich import box
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.padding import Padding
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .eventLog import EventLog
from .keyReader import KeyReader
from .refresh import STATE_BACKOFF, STATE_HALTED, refreshState, secondsUntilNext
from .registry import RegistrySnapshot, TableEntry, TableRegistry

HELP_TEXT = """
    TABLEDASH - Help

    Global
    --------------------------------
    q            quit
    F1           toggle help

    Log
    --------------------------------
    l / RIGHT    show / hide log
    k / UP       scroll older
    j / DOWN     scroll newer
    g            tail
    G            oldest visible

    Tables refresh on their own; edit the
    configuration file to change them.
"""


def wrapCell(text: str, width: int, maxLines: int) -> str:
    """Wrap a cell to `width` columns and keep at most `maxLines` lines.

    When lines are dropped the last kept line ends in "..." instead.
    """
    lines: list[str] = []
    for ln in str(text).replace("\r", "").split("\n"):
        lines.extend(textwrap.wrap(ln, width=max(1, width), break_long_words=True) or [""])

    if len(lines) > maxLines:
        lines = lines[: max(1, maxLines)]
        lines[-1] = lines[-1].rstrip(".") + "..."
    return "\n".join(lines)


class RichUi:
    def __init__(
        self,
        registry: TableRegistry,
        eventLog: EventLog,
        *,
        refreshRateSec: float = 0.1,
        showLog: bool = True,
        console: Console | None = None,
        keyReader: KeyReader | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.registry = registry
        self.eventLog = eventLog
        self.refreshRateSec = float(refreshRateSec)
        self.console = console or Console()
        self.keyReader = keyReader
        self.clock = clock

        self.styleHeader = "bold black on magenta"
        self.styleFooter = "bright white on blue"
        self.styleError = "bold red"
        self.styleStatus = "dim"
        self.styleLog = "dim"

        self.running = False
        self.showOverlay = False
        self.showLog = bool(showLog)

        self.scrollPos = 0  # <= 0 (0 == tail)
        self.lastLogMaxStart = 0

    # ── keys ───────────────────────────────────────────────────────────────

    def scrollLog(self, delta: int) -> None:
        # delta: +1 => older (up), -1 => newer (down towards tail)
        if delta > 0:
            self.scrollPos = max(-self.lastLogMaxStart, self.scrollPos - 1)
        elif delta < 0:
            self.scrollPos = min(0, self.scrollPos + 1)

    def handleKey(self, ch: str) -> None:
        if self.showOverlay:
            self.showOverlay = False
            return

        if ch in ("q", "Q", "KEY_QUIT"):
            self.running = False
            return

        if ch == "KEY_F1":
            self.showOverlay = True
            return

        if ch in ("l", "KEY_RIGHT"):
            self.showLog = not self.showLog
            return

        if ch in ("k", "KEY_UP"):
            self.scrollLog(+1)
            return

        if ch in ("j", "KEY_DOWN"):
            self.scrollLog(-1)
            return

        if ch == "g":
            self.scrollPos = 0
            return

        if ch == "G":
            self.scrollPos = -self.lastLogMaxStart

    def handleKeys(self) -> None:
        if self.keyReader is None:
            return
        while True:
            ch = self.keyReader.readCharNonBlocking()
            if ch is None:
                return
            self.handleKey(ch)

    # ── rendering ──────────────────────────────────────────────────────────

    def renderHeader(self, snapshot: RegistrySnapshot) -> Text:
        width = self.console.size.width
        nowStr = time.strftime("%H:%M:%S")

        failing = sum(1 for e in snapshot.entries.values() if e.lastError)
        left = f"  TABLEDASH  {len(snapshot)} tables"
        if failing:
            left += f"  {failing} failing"
        right = f"{nowStr}  "

        fill = max(1, width - len(left) - len(right))
        return Text(left + (" " * fill) + right, style=self.styleHeader)

    def renderFooter(self) -> Text:
        width = self.console.size.width
        helpStr = "  q quit   F1 help   l log   j/k scroll  "
        return Text(helpStr.ljust(width), style=self.styleFooter)

    def renderOverlay(self) -> Panel:
        return Panel(
            Padding(Text(HELP_TEXT.strip("\n")), (1, 2)),
            title="HELP",
            subtitle="PRESS ANY KEY TO CLOSE",
            box=box.DOUBLE,
            style="bright_white on black",
        )

    def renderStatus(self, entry: TableEntry, now: float) -> Text | None:
        record = entry.record
        state = refreshState(entry.source, record, now)

        if record.lastError:
            t = Text(f" ! {record.lastError}", style=self.styleError)
            if state == STATE_BACKOFF:
                waitSec = secondsUntilNext(entry.source, record, now) or 0.0
                t.append(f"  retry in {waitSec:.0f}s ", style=self.styleStatus)
            elif state == STATE_HALTED:
                t.append("  fix configuration ", style=self.styleStatus)
            else:
                t.append(" ")
            return t

        if record.lastSuccessAt is not None:
            tsStr = time.strftime("%H:%M:%S", time.localtime(record.lastSuccessAt))
            return Text(f" updated {tsStr} ", style=self.styleStatus)
        return None

    def renderTable(self, entry: TableEntry, now: float) -> Panel:
        cfg = entry.config
        design = cfg.design
        rows = entry.cachedRows

        columnCount = len(cfg.headers) or max((len(r) for r in rows), default=1) or 1

        tableObj = Table(
            expand=True,
            show_header=bool(cfg.headers),
            header_style=design.headerColor or "bold magenta",
            box=box.SIMPLE_HEAD,
            show_edge=False,
            pad_edge=False,
        )

        for idx in range(columnCount):
            headerStr = cfg.headers[idx] if idx < len(cfg.headers) else ""
            ratio = cfg.ratios[idx] if idx < len(cfg.ratios) else 1
            tableObj.add_column(headerStr, ratio=ratio, style=design.columnColor, overflow="fold")

        for row in rows:
            cells = list(row[:columnCount]) + [""] * max(0, columnCount - len(row))
            tableObj.add_row(
                *(
                    Text(wrapCell(c, cfg.wrapWidth, cfg.maxCellHeight), style=design.cellColor or "")
                    for c in cells
                )
            )

        return Panel(
            tableObj,
            title=cfg.title or cfg.id,
            subtitle=self.renderStatus(entry, now),
            subtitle_align="left",
            border_style=design.borderColor or ("red" if entry.lastError else "none"),
            box=box.SQUARE,
            expand=True,
        )

    def renderGrid(self, snapshot: RegistrySnapshot, now: float) -> Layout:
        gridLayout = Layout(name="grid")
        grid = [row for row in snapshot.grid() if row]
        if not grid:
            gridLayout.update(Panel(Text("no tables configured", style="dim"), box=box.SQUARE))
            return gridLayout

        rowLayouts: list[Layout] = []
        for rowIdx, row in enumerate(grid):
            rowLayout = Layout(name=f"row{rowIdx}")
            rowLayout.split_row(*(Layout(self.renderTable(e, now), name=e.tableId) for e in row))
            rowLayouts.append(rowLayout)

        gridLayout.split_column(*rowLayouts)
        return gridLayout

    def getLogPaneWidth(self) -> int:
        paneWidth = max(20, int(self.console.size.width * 0.3))
        return max(10, paneWidth - 4)

    def renderLog(self) -> Panel:
        windowHeight = max(1, self.console.size.height - 4)
        wrapWidth = self.getLogPaneWidth()

        displayLines: list[str] = []
        for ln in self.eventLog.lines():
            displayLines.extend(textwrap.wrap(ln, width=wrapWidth, break_long_words=True) or [""])

        total = len(displayLines)
        startBase = max(0, total - windowHeight)
        self.lastLogMaxStart = startBase

        start = min(startBase, max(0, startBase + self.scrollPos))
        visible = displayLines[start : start + windowHeight]

        return Panel(Text("\n".join(visible)), title="log", expand=True, box=box.SQUARE, style=self.styleLog)

    def buildLayout(self, snapshot: RegistrySnapshot | None = None) -> Layout:
        snapshot = snapshot if snapshot is not None else self.registry.snapshot()
        now = self.clock()

        layoutObj = Layout(name="root")
        content = Layout(name="content")

        if self.showOverlay:
            content.update(self.renderOverlay())
        elif self.showLog:
            content.split_row(
                Layout(self.renderGrid(snapshot, now), name="tables", ratio=7),
                Layout(self.renderLog(), name="log", ratio=3),
            )
        else:
            content.update(self.renderGrid(snapshot, now))

        layoutObj.split_column(
            Layout(self.renderHeader(snapshot), name="header", size=1),
            content,
            Layout(self.renderFooter(), name="footer", size=1),
        )
        return layoutObj

    def runLoop(self, tickFn: Callable[[], None]) -> None:
        if self.keyReader is None:
            self.keyReader = KeyReader()

        self.running = True
        with Live(console=self.console, auto_refresh=False, screen=True) as live:
            while self.running:
                self.handleKeys()
                tickFn()

                live.update(self.buildLayout(), refresh=True)
                time.sleep(self.refreshRateSec)

        self.keyReader.stop()
