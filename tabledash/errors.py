from __future__ import annotations


class TableDashError(Exception):
    pass


class ConfigLoadError(TableDashError):
    """The configuration file could not be read or is invalid."""


# ── extraction ─────────────────────────────────────────────────────────────


class ExtractError(TableDashError):
    pass


class NoMappingError(ExtractError):
    def __init__(self) -> None:
        super().__init__("no field mapping configured")


class MalformedJsonError(ExtractError):
    pass


class NotAnArrayError(ExtractError):
    pass


# ── fetching ───────────────────────────────────────────────────────────────


class FetchError(TableDashError):
    """A table source could not be turned into rows.

    ``kind`` names the failure family shown next to the table, ``retryable``
    tells the scheduler whether waiting can fix it.
    """

    kind: str = "fetch"
    retryable: bool = True

    def __str__(self) -> str:
        msg = super().__str__()
        return f"{self.kind}: {msg}" if msg else self.kind


class SourceConfigError(FetchError):
    kind = "config"
    retryable = False


class SourceIoError(FetchError):
    kind = "io"


class NetworkError(FetchError):
    kind = "network"


class ParseError(FetchError):
    kind = "parse"
