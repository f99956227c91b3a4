"""
Table source descriptors.

A source says where a table's rows come from. There are exactly three kinds:
StaticSource (rows embedded in the configuration), FileSource (a JSON file on
disk) and RemoteSource (a JSON document behind an HTTP GET). File and remote
sources carry a refresh interval and the field mapping used to turn JSON
objects into rows.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

Row = tuple[str, ...]
Rows = tuple[Row, ...]


@dataclass(frozen=True)
class StaticSource:
    kind: ClassVar[str] = "static"

    rows: Rows = ()

    @property
    def target(self) -> Rows:
        return self.rows


@dataclass(frozen=True)
class FileSource:
    kind: ClassVar[str] = "file"

    path: str
    refreshSec: float = 10.0
    mapping: tuple[str, ...] | None = None

    @property
    def target(self) -> str:
        return self.path


@dataclass(frozen=True)
class RemoteSource:
    kind: ClassVar[str] = "remote"

    url: str
    refreshSec: float = 10.0
    mapping: tuple[str, ...] | None = None

    @property
    def target(self) -> str:
        return self.url


TableSource = Union[StaticSource, FileSource, RemoteSource]


def sameTarget(a: TableSource, b: TableSource) -> bool:
    # interval and mapping may differ; kind and path/url/data may not
    return a.kind == b.kind and a.target == b.target


def describeSource(source: TableSource) -> str:
    if isinstance(source, StaticSource):
        return f"static ({len(source.rows)} rows)"
    return f"{source.kind} {source.target} every {source.refreshSec:g}s"


def toRows(data: object) -> Rows:
    """Normalize nested lists of cell values into immutable rows of strings."""
    if not isinstance(data, (list, tuple)):
        return ()
    out: list[Row] = []
    for row in data:
        if isinstance(row, (list, tuple)):
            out.append(tuple("" if c is None else str(c) for c in row))
        else:
            out.append(("" if row is None else str(row),))
    return tuple(out)
