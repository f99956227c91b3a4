"""
Per-table refresh state.

A RefreshRecord is an immutable value; the scheduler replaces it after every
fetch. The state of a table (static, halted, backoff, fresh, due) is never
stored, it is derived from the record fields and the current time so the
decision can be tested with plain numbers instead of real delays.
"""
from __future__ import annotations

from dataclasses import dataclass, replace

from .errors import FetchError
from .sources import Rows, StaticSource, TableSource

RETRY_THRESHOLD = 3  # failures before backoff starts
INITIAL_BACKOFF_SEC = 5.0

PLACEHOLDER_ROWS: Rows = (("...",),)

STATE_STATIC = "static"
STATE_HALTED = "halted"
STATE_BACKOFF = "backoff"
STATE_FRESH = "fresh"
STATE_DUE = "due"


@dataclass(frozen=True)
class RefreshRecord:
    cachedRows: Rows = PLACEHOLDER_ROWS
    lastAttemptAt: float | None = None
    lastSuccessAt: float | None = None
    consecutiveFailures: int = 0
    backoffUntil: float | None = None
    lastError: str | None = None
    halted: bool = False


def newRecord(source: TableSource) -> RefreshRecord:
    if isinstance(source, StaticSource):
        return RefreshRecord(cachedRows=source.rows)
    return RefreshRecord()


def backoffDelay(failures: int) -> float | None:
    """Seconds to suppress fetching after `failures` consecutive failures.

    None below the threshold; from there on the delay doubles per failure:
    3 -> 5s, 4 -> 10s, 5 -> 20s.
    """
    if failures < RETRY_THRESHOLD:
        return None
    return INITIAL_BACKOFF_SEC * (2 ** (failures - RETRY_THRESHOLD))


def refreshState(source: TableSource, record: RefreshRecord, now: float) -> str:
    if isinstance(source, StaticSource):
        return STATE_STATIC
    if record.halted:
        return STATE_HALTED
    if record.backoffUntil is not None and now < record.backoffUntil:
        return STATE_BACKOFF

    # after a failure the interval does not apply: retry right away until
    # the threshold turns it into a backoff window
    if (
        record.consecutiveFailures == 0
        and record.lastAttemptAt is not None
        and now - record.lastAttemptAt < source.refreshSec
    ):
        return STATE_FRESH
    return STATE_DUE


def isDue(source: TableSource, record: RefreshRecord, now: float) -> bool:
    return refreshState(source, record, now) == STATE_DUE


def recordSuccess(record: RefreshRecord, rows: Rows, now: float) -> RefreshRecord:
    return replace(
        record,
        cachedRows=rows,
        lastAttemptAt=now,
        lastSuccessAt=now,
        consecutiveFailures=0,
        backoffUntil=None,
        lastError=None,
        halted=False,
    )


def recordFailure(record: RefreshRecord, error: FetchError, now: float) -> RefreshRecord:
    failures = record.consecutiveFailures + 1
    delay = backoffDelay(failures)
    return replace(
        record,
        lastAttemptAt=now,
        consecutiveFailures=failures,
        backoffUntil=(now + delay) if delay is not None else None,
        lastError=str(error),
        halted=not error.retryable,
    )


def secondsUntilNext(source: TableSource, record: RefreshRecord, now: float) -> float | None:
    """Time left before the table becomes due, None if it never will on its own."""
    state = refreshState(source, record, now)
    if state in (STATE_STATIC, STATE_HALTED):
        return None
    if state == STATE_BACKOFF:
        return max(0.0, float(record.backoffUntil or now) - now)
    if state == STATE_FRESH:
        return max(0.0, float(record.lastAttemptAt or now) + source.refreshSec - now)
    return 0.0
