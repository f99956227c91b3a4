"""
Configuration data classes for DashApp.

TableConfig describes one table: identity, display metadata (title, column
headers, column ratios, cell height and wrap width, colours) and the source
its rows come from.

DashConfig holds the timing settings and the grid of tables, one tuple per
screen row.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from .sources import TableSource


@dataclass(frozen=True)
class Design:
    borderColor: str | None = None
    headerColor: str | None = None
    columnColor: str | None = None
    cellColor: str | None = None


@dataclass(frozen=True)
class TableConfig:
    id: str
    source: TableSource
    title: str | None = None
    headers: tuple[str, ...] = ()
    ratios: tuple[int, ...] = ()
    maxCellHeight: int = 3
    wrapWidth: int = 30
    design: Design = field(default_factory=Design)


@dataclass(frozen=True)
class DashConfig:
    tables: tuple[tuple[TableConfig, ...], ...] = ()
    tickSec: float = 0.5
    frameSec: float = 0.1
    watchSec: float = 1.0
    logMaxLines: int = 512
    showLog: bool = True

    def iterTables(self) -> Iterator[TableConfig]:
        for row in self.tables:
            yield from row

    def tableIds(self) -> list[str]:
        return [t.id for t in self.iterTables()]
