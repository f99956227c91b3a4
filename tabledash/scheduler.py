from __future__ import annotations

import queue
import threading
import time
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable

from .errors import FetchError
from .eventLog import EventLog
from .fetcher import fetchRows
from .refresh import RefreshRecord, backoffDelay, isDue, recordFailure, recordSuccess
from .registry import TableEntry, TableRegistry
from .sources import Rows, TableSource


@dataclass(frozen=True)
class FetchOutcome:
    tableId: str
    source: TableSource
    finishedAt: float
    rows: Rows | None = None
    error: FetchError | None = None


class RefreshScheduler:
    """Runs the refresh tick loop on its own thread.

    Each fetch runs on its own daemon thread (or on an injected executor) and
    never touches the registry; outcomes come back through a queue and are
    committed by the tick loop, which makes it the only writer of refresh
    records. Fetches have no timeout, so the number of fetch threads is not
    capped: a hung source only ever holds up its own table.
    """

    def __init__(
        self,
        registry: TableRegistry,
        *,
        eventLog: EventLog | None = None,
        tickSec: float = 0.5,
        clock: Callable[[], float] = time.time,
        executor: Executor | None = None,
        fetchFn: Callable[[TableSource], Rows] = fetchRows,
    ) -> None:
        self.registry = registry
        self.eventLog = eventLog or EventLog()
        self.tickSec = float(tickSec)
        self.clock = clock
        self.fetchFn = fetchFn
        self.executor = executor

        self.inFlight: set[str] = set()
        self.completed: queue.Queue[FetchOutcome] = queue.Queue()

        self.stopEvent: threading.Event | None = None
        self.threadObj: threading.Thread | None = None

    def writeLog(self, text: str) -> None:
        self.eventLog.write(text)

    # ── thread ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        self.stopEvent = threading.Event()
        self.threadObj = threading.Thread(target=self.loopSafe, daemon=True, name="RefreshScheduler")
        self.threadObj.start()

    def stop(self) -> None:
        # running fetch threads are daemons and their results are dropped
        if self.stopEvent is not None:
            self.stopEvent.set()
        self.stopEvent = None
        self.threadObj = None

    def loopSafe(self) -> None:
        try:
            self.loop()
        except Exception as exc:
            self.writeLog(f"SCHEDULER LOOP EXC {type(exc).__name__}: {exc}")

    def loop(self) -> None:
        stopEvent = self.stopEvent
        while stopEvent is not None and not stopEvent.is_set():
            self.tick()
            stopEvent.wait(max(0.05, self.tickSec))

    # ── tick ───────────────────────────────────────────────────────────────

    def tick(self) -> None:
        self.drainCompleted()

        snapshot = self.registry.snapshot()
        now = self.clock()
        for entry in snapshot.entries.values():
            try:
                self.tickTable(entry, now)
            except Exception as exc:
                self.writeLog(f"{entry.tableId}: TICK EXC {type(exc).__name__}: {exc}")

        self.drainCompleted()

    def tickTable(self, entry: TableEntry, now: float) -> bool:
        """Start a fetch for one table if it is due. Returns True if one started."""
        tableId = entry.tableId
        if tableId in self.inFlight:
            return False
        if not isDue(entry.source, entry.record, now):
            return False

        self.inFlight.add(tableId)
        try:
            self.startFetch(tableId, entry.source)
        except RuntimeError:
            # executor shut down or no thread could be started
            self.inFlight.discard(tableId)
            raise
        return True

    def startFetch(self, tableId: str, source: TableSource) -> None:
        if self.executor is not None:
            self.executor.submit(self.runFetch, tableId, source)
            return
        threadObj = threading.Thread(
            target=self.runFetch,
            args=(tableId, source),
            daemon=True,
            name=f"fetch-{tableId}",
        )
        threadObj.start()

    def runFetch(self, tableId: str, source: TableSource) -> None:
        rows: Rows | None = None
        error: FetchError | None = None
        try:
            rows = self.fetchFn(source)
        except FetchError as exc:
            error = exc
        except Exception as exc:
            error = FetchError(f"{type(exc).__name__}: {exc}")

        self.completed.put(
            FetchOutcome(tableId=tableId, source=source, finishedAt=self.clock(), rows=rows, error=error)
        )

    def drainCompleted(self) -> int:
        count = 0
        while True:
            try:
                outcome = self.completed.get_nowait()
            except queue.Empty:
                return count
            self.applyOutcome(outcome)
            count += 1

    def applyOutcome(self, outcome: FetchOutcome) -> RefreshRecord | None:
        self.inFlight.discard(outcome.tableId)

        if outcome.error is None:
            rows = outcome.rows if outcome.rows is not None else ()
            updateFn = lambda rec: recordSuccess(rec, rows, outcome.finishedAt)
        else:
            error = outcome.error
            updateFn = lambda rec: recordFailure(rec, error, outcome.finishedAt)

        before = self.registry.snapshot().get(outcome.tableId)
        record = self.registry.updateRecord(outcome.tableId, outcome.source, updateFn)
        if record is None:
            self.writeLog(f"{outcome.tableId}: discarding stale result (table removed or source changed)")
            return None

        prevFailures = before.record.consecutiveFailures if before is not None else 0
        self.logTransition(outcome.tableId, prevFailures, record)
        return record

    def logTransition(self, tableId: str, prevFailures: int, record: RefreshRecord) -> None:
        if record.lastError is None:
            if prevFailures:
                self.writeLog(f"{tableId}: recovered after {prevFailures} failure(s)")
            return

        if record.halted:
            self.writeLog(f"{tableId}: {record.lastError} (not retried until configuration changes)")
            return

        delay = backoffDelay(record.consecutiveFailures)
        if delay is None:
            self.writeLog(f"{tableId}: {record.lastError} (failures={record.consecutiveFailures})")
        else:
            self.writeLog(
                f"{tableId}: {record.lastError} (failures={record.consecutiveFailures}, backoff {delay:g}s)"
            )
