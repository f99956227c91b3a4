from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import tomli

from .config import *
from .errors import ConfigLoadError
from .sources import FileSource, RemoteSource, StaticSource, TableSource, toRows
from .utils import *

DEFAULT_CONFIG_PATH = "tables.json"
DEFAULT_REFRESH_SEC = 10.0

sourceTypeAliases = {
    "static": "static",
    "file": "file",
    "http": "remote",
    "https": "remote",
    "remote": "remote",
}


def readConfigData(filePath: Path) -> dict[str, Any]:
    try:
        if filePath.suffix.lower() == ".toml":
            return loadToml(filePath)
        return loadJson(filePath)
    except OSError as exc:
        raise ConfigLoadError(f"cannot read {filePath}: {exc.strerror or exc}") from exc
    except (tomli.TOMLDecodeError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ConfigLoadError(f"{filePath.name}: cannot parse: {exc}") from exc
    except RuntimeError as exc:
        raise ConfigLoadError(str(exc)) from exc


def parseStrTuple(val: Any, where: str) -> tuple[str, ...]:
    if not isinstance(val, list) or not all(isinstance(x, str) for x in val):
        raise ConfigLoadError(f"{where}: expected a list of strings")
    return tuple(val)


def parseRatios(val: Any, where: str) -> tuple[int, ...]:
    if val is None:
        return ()
    if not isinstance(val, list):
        raise ConfigLoadError(f"{where}: expected a list of numbers")
    out: list[int] = []
    for x in val:
        n = parseInt(x, -1)
        if n <= 0:
            raise ConfigLoadError(f"{where}: ratios must be positive numbers, got {x!r}")
        out.append(n)
    return tuple(out)


def parseColor(val: Any) -> str | None:
    if isinstance(val, dict):
        val = val.get("color")
    return parseHexColor(val)


def parseDesign(val: Any, where: str) -> Design:
    if val is None:
        return Design()
    if not isinstance(val, dict):
        raise ConfigLoadError(f"{where}: expected a table/object")
    return Design(
        borderColor=parseColor(val.get("border")),
        headerColor=parseColor(val.get("header")),
        columnColor=parseColor(val.get("column")),
        cellColor=parseColor(val.get("cell")),
    )


def parseSource(val: Any, where: str, *, baseDir: Path) -> TableSource:
    if not isinstance(val, dict):
        raise ConfigLoadError(f"{where}: missing source")

    rawType = parseStrLower(val.get("type"))
    kind = sourceTypeAliases.get(rawType or "")
    if kind is None:
        raise ConfigLoadError(f"{where}.type: unknown source type {val.get('type')!r}")

    if kind == "static":
        data = val.get("data", [])
        if not isinstance(data, list):
            raise ConfigLoadError(f"{where}.data: expected a list of rows")
        return StaticSource(rows=toRows(data))

    rawRefresh = val.get("refresh_seconds", val.get("refreshSec"))
    refreshSec = parseFloat(rawRefresh, float("nan")) if rawRefresh is not None else DEFAULT_REFRESH_SEC
    if not refreshSec >= 0.0:
        raise ConfigLoadError(f"{where}.refresh_seconds: expected a number >= 0, got {rawRefresh!r}")

    rawMapping = val.get("mapping")
    mapping = parseStrTuple(rawMapping, f"{where}.mapping") if rawMapping is not None else None

    if kind == "file":
        pathStr = parseStr(val.get("path"))
        if not pathStr:
            raise ConfigLoadError(f"{where}.path: missing")
        pathObj = Path(pathStr).expanduser()
        if not pathObj.is_absolute():
            pathObj = baseDir / pathObj
        return FileSource(path=str(pathObj), refreshSec=refreshSec, mapping=mapping)

    url = parseStr(val.get("url"))
    if not url:
        raise ConfigLoadError(f"{where}.url: missing")
    return RemoteSource(url=url, refreshSec=refreshSec, mapping=mapping)


def parseTable(val: Any, where: str, *, baseDir: Path) -> TableConfig:
    if not isinstance(val, dict):
        raise ConfigLoadError(f"{where}: expected a table/object")

    tableId = parseStr(val.get("id"))
    if not tableId:
        raise ConfigLoadError(f"{where}.id: missing")

    source = parseSource(val.get("source"), f"{where}.source", baseDir=baseDir)

    rawHeaders = val.get("column_headers")
    if rawHeaders is not None:
        headers = parseStrTuple(rawHeaders, f"{where}.column_headers")
    else:
        headers = tuple(getattr(source, "mapping", None) or ())

    maxCellHeight = parseInt(val.get("max_cell_height"), 3)
    wrapWidth = parseInt(val.get("wrap_width"), 30)
    if maxCellHeight < 1 or wrapWidth < 1:
        raise ConfigLoadError(f"{where}: max_cell_height and wrap_width must be >= 1")

    return TableConfig(
        id=tableId,
        source=source,
        title=parseStr(val.get("table_header", val.get("title"))),
        headers=headers,
        ratios=parseRatios(val.get("column_ratios"), f"{where}.column_ratios"),
        maxCellHeight=maxCellHeight,
        wrapWidth=wrapWidth,
        design=parseDesign(val.get("design"), f"{where}.design"),
    )


def groupTableRows(rawTables: Any) -> list[list[tuple[str, Any]]]:
    """Return grid rows of (location, raw table) pairs.

    `tables` is either a list of rows (lists of tables) or, convenient in
    TOML, a flat list of tables grouped by their optional integer `row` key.
    """
    if not isinstance(rawTables, list):
        raise ConfigLoadError("tables: expected a list")

    if all(isinstance(item, list) for item in rawTables):
        return [
            [(f"tables[{r}][{c}]", t) for c, t in enumerate(rowVal)]
            for r, rowVal in enumerate(rawTables)
        ]

    if all(isinstance(item, dict) for item in rawTables):
        byRow: dict[int, list[tuple[str, Any]]] = {}
        for idx, t in enumerate(rawTables):
            byRow.setdefault(parseInt(t.get("row"), 0), []).append((f"tables[{idx}]", t))
        return [byRow[k] for k in sorted(byRow)]

    raise ConfigLoadError("tables: mix of rows and tables; use one form")


def parseConfig(dataObj: dict[str, Any], *, baseDir: Path) -> DashConfig:
    rows: list[tuple[TableConfig, ...]] = []
    seenIds: set[str] = set()

    for rowVal in groupTableRows(dataObj.get("tables", [])):
        row: list[TableConfig] = []
        for where, raw in rowVal:
            tableCfg = parseTable(raw, where, baseDir=baseDir)
            if tableCfg.id in seenIds:
                raise ConfigLoadError(f"{where}.id: duplicate table id {tableCfg.id!r}")
            seenIds.add(tableCfg.id)
            row.append(tableCfg)
        if row:
            rows.append(tuple(row))

    defaults = DashConfig()
    return DashConfig(
        tables=tuple(rows),
        tickSec=max(0.05, parseFloat(dataObj.get("tickSec"), defaults.tickSec)),
        frameSec=max(0.01, parseFloat(dataObj.get("frameSec"), defaults.frameSec)),
        watchSec=max(0.05, parseFloat(dataObj.get("watchSec"), defaults.watchSec)),
        logMaxLines=max(1, parseInt(dataObj.get("logMaxLines"), defaults.logMaxLines)),
        showLog=parseBool(dataObj.get("showLog"), defaults.showLog),
    )


def loadConfigFile(configPath: str | Path) -> DashConfig:
    """Read and validate a JSON or TOML dashboard configuration.

    Raises ConfigLoadError with the offending location on any problem; a
    table whose file/remote source lacks a mapping is accepted here and
    reported as a permanent error once it is fetched.
    """
    filePath = Path(configPath)
    dataObj = readConfigData(filePath)
    return parseConfig(dataObj, baseDir=filePath.resolve().parent)
