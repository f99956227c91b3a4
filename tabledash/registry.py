from __future__ import annotations

import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping

from .config import DashConfig, TableConfig
from .refresh import RefreshRecord, newRecord
from .sources import Rows, TableSource, sameTarget


@dataclass(frozen=True)
class TableEntry:
    config: TableConfig
    record: RefreshRecord

    @property
    def tableId(self) -> str:
        return self.config.id

    @property
    def source(self) -> TableSource:
        return self.config.source

    @property
    def cachedRows(self) -> Rows:
        return self.record.cachedRows

    @property
    def lastError(self) -> str | None:
        return self.record.lastError


@dataclass(frozen=True)
class RegistrySnapshot:
    """Immutable view of every table, handed to readers as one reference."""

    layout: tuple[tuple[str, ...], ...] = ()
    entries: Mapping[str, TableEntry] = field(default_factory=lambda: MappingProxyType({}))
    generation: int = 0

    def get(self, tableId: str) -> TableEntry | None:
        return self.entries.get(tableId)

    def grid(self) -> list[list[TableEntry]]:
        return [[self.entries[tid] for tid in row if tid in self.entries] for row in self.layout]

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class RebuildReport:
    added: tuple[str, ...] = ()
    kept: tuple[str, ...] = ()
    reset: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()

    def summary(self) -> str:
        return (
            f"added={len(self.added)} kept={len(self.kept)} "
            f"reset={len(self.reset)} removed={len(self.removed)}"
        )


def carriedRecord(old: TableEntry | None, newConfig: TableConfig) -> RefreshRecord | None:
    if old is None or not sameTarget(old.source, newConfig.source):
        return None
    # a halted record only waits for a different descriptor
    if old.record.halted and old.source != newConfig.source:
        return None
    return old.record


def buildSnapshot(
    config: DashConfig,
    previous: RegistrySnapshot | None = None,
) -> tuple[RegistrySnapshot, RebuildReport]:
    oldEntries: Mapping[str, TableEntry] = previous.entries if previous is not None else {}
    entries: dict[str, TableEntry] = {}
    added: list[str] = []
    kept: list[str] = []
    reset: list[str] = []

    for tableCfg in config.iterTables():
        old = oldEntries.get(tableCfg.id)
        record = carriedRecord(old, tableCfg)
        if record is not None:
            kept.append(tableCfg.id)
        else:
            record = newRecord(tableCfg.source)
            (reset if old is not None else added).append(tableCfg.id)
        entries[tableCfg.id] = TableEntry(config=tableCfg, record=record)

    removed = tuple(tid for tid in oldEntries if tid not in entries)
    layout = tuple(tuple(t.id for t in row) for row in config.tables)
    generation = previous.generation + 1 if previous is not None else 0

    snapshot = RegistrySnapshot(
        layout=layout,
        entries=MappingProxyType(entries),
        generation=generation,
    )
    report = RebuildReport(added=tuple(added), kept=tuple(kept), reset=tuple(reset), removed=removed)
    return snapshot, report


class TableRegistry:
    """Holds the current RegistrySnapshot and swaps it under a lock.

    Readers call snapshot() and keep the returned value for as long as they
    like; writers replace the whole snapshot, so nobody ever observes a
    partially rebuilt registry.
    """

    def __init__(self, config: DashConfig | None = None) -> None:
        self._lock = threading.Lock()
        self._snapshot, _ = buildSnapshot(config or DashConfig())

    def snapshot(self) -> RegistrySnapshot:
        with self._lock:
            return self._snapshot

    def rebuild(self, config: DashConfig) -> RebuildReport:
        with self._lock:
            self._snapshot, report = buildSnapshot(config, self._snapshot)
        return report

    def updateRecord(
        self,
        tableId: str,
        expectedSource: TableSource,
        updateFn: Callable[[RefreshRecord], RefreshRecord],
    ) -> RefreshRecord | None:
        """Compare-and-swap one record.

        The update only applies if `tableId` still exists and is still built
        from `expectedSource`. Returns the new record, or None when the
        caller's view was stale and nothing was written.
        """
        with self._lock:
            current = self._snapshot
            entry = current.entries.get(tableId)
            if entry is None or entry.source != expectedSource:
                return None

            record = updateFn(entry.record)
            entries = dict(current.entries)
            entries[tableId] = TableEntry(config=entry.config, record=record)
            self._snapshot = RegistrySnapshot(
                layout=current.layout,
                entries=MappingProxyType(entries),
                generation=current.generation,
            )
            return record
