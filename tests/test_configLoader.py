"""Tests for reading JSON and TOML dashboard configurations."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tabledash.config import DashConfig, Design
from tabledash.configLoader import DEFAULT_REFRESH_SEC, loadConfigFile
from tabledash.errors import ConfigLoadError
from tabledash.sources import FileSource, RemoteSource, StaticSource


def writeJson(tmp_path: Path, payload, name: str = "tables.json") -> Path:
    p = tmp_path / name
    p.write_text(json.dumps(payload), encoding="utf-8")
    return p


def tableDict(**overrides):
    base = {
        "id": "t1",
        "column_headers": ["Name", "Price"],
        "column_ratios": [50, 50],
        "max_cell_height": 3,
        "source": {"type": "http", "url": "http://x.invalid/p", "refresh_seconds": 10, "mapping": ["name", "price"]},
    }
    base.update(overrides)
    return base


def test_original_json_shape(tmp_path: Path) -> None:
    payload = {
        "tables": [
            [
                tableDict(
                    table_header="Prices",
                    design={"border": {"color": "#FFFFFF"}, "cell": {"color": "00ff00"}, "header": {"color": "bad"}},
                ),
                {
                    "id": "s",
                    "column_headers": ["A"],
                    "column_ratios": [100],
                    "max_cell_height": 1,
                    "source": {"type": "static", "data": [["x"], ["y"]]},
                },
            ],
            [tableDict(id="f", source={"type": "file", "path": "data/p.json", "mapping": ["n"]})],
        ]
    }
    cfg = loadConfigFile(writeJson(tmp_path, payload))

    assert [[t.id for t in row] for row in cfg.tables] == [["t1", "s"], ["f"]]

    t1 = cfg.tables[0][0]
    assert t1.title == "Prices"
    assert t1.headers == ("Name", "Price")
    assert t1.ratios == (50, 50)
    assert t1.source == RemoteSource(url="http://x.invalid/p", refreshSec=10.0, mapping=("name", "price"))
    assert t1.design == Design(borderColor="#ffffff", cellColor="#00ff00")

    assert cfg.tables[0][1].source == StaticSource(rows=(("x",), ("y",)))

    f = cfg.tables[1][0].source
    assert isinstance(f, FileSource)
    assert f.path == str(tmp_path.resolve() / "data" / "p.json")
    assert f.refreshSec == DEFAULT_REFRESH_SEC


def test_defaults(tmp_path: Path) -> None:
    cfg = loadConfigFile(writeJson(tmp_path, {"tables": []}))
    assert cfg == DashConfig()


def test_settings(tmp_path: Path) -> None:
    cfg = loadConfigFile(
        writeJson(tmp_path, {"tickSec": "0.25", "showLog": "off", "logMaxLines": 50, "tables": []})
    )
    assert cfg.tickSec == 0.25
    assert cfg.showLog is False
    assert cfg.logMaxLines == 50


def test_missing_mapping_is_accepted(tmp_path: Path) -> None:
    payload = {"tables": [[tableDict(source={"type": "http", "url": "http://x.invalid/"})]]}
    src = loadConfigFile(writeJson(tmp_path, payload)).tables[0][0].source
    assert src.mapping is None


def test_headers_default_to_mapping(tmp_path: Path) -> None:
    t = tableDict()
    del t["column_headers"]
    cfg = loadConfigFile(writeJson(tmp_path, {"tables": [[t]]}))
    assert cfg.tables[0][0].headers == ("name", "price")


def test_absolute_file_path_kept(tmp_path: Path) -> None:
    target = tmp_path / "abs.json"
    payload = {"tables": [[tableDict(source={"type": "file", "path": str(target), "mapping": ["a"]})]]}
    assert loadConfigFile(writeJson(tmp_path, payload)).tables[0][0].source.path == str(target)


def test_toml_flat_tables_grouped_by_row(tmp_path: Path) -> None:
    p = tmp_path / "tables.toml"
    p.write_text(
        """
tickSec = 1.0

[[tables]]
id = "b"
row = 1
[tables.source]
type = "remote"
url = "http://x.invalid/b"
mapping = ["a"]

[[tables]]
id = "a"
[tables.source]
type = "static"
data = [["1", "2"]]

[[tables]]
id = "c"
row = 1
[tables.source]
type = "file"
path = "c.json"
refresh_seconds = 0
mapping = ["a"]
""",
        encoding="utf-8",
    )
    cfg = loadConfigFile(p)
    assert cfg.tickSec == 1.0
    assert [[t.id for t in row] for row in cfg.tables] == [["a"], ["b", "c"]]
    assert cfg.tables[1][1].source.refreshSec == 0.0


@pytest.mark.parametrize(
    ("payload", "fragment"),
    [
        ({"tables": "nope"}, "tables: expected a list"),
        ({"tables": [[{"source": {"type": "static"}}]]}, "tables[0][0].id"),
        ({"tables": [[tableDict(source={"type": "ftp"})]]}, "unknown source type"),
        ({"tables": [[tableDict(source=None)]]}, "missing source"),
        ({"tables": [[tableDict(source={"type": "http"})]]}, ".url: missing"),
        ({"tables": [[tableDict(source={"type": "file", "mapping": ["a"]})]]}, ".path: missing"),
        ({"tables": [[tableDict(source={"type": "http", "url": "u", "refresh_seconds": -1})]]}, "refresh_seconds"),
        ({"tables": [[tableDict(source={"type": "http", "url": "u", "refresh_seconds": "soon"})]]}, "refresh_seconds"),
        ({"tables": [[tableDict(source={"type": "http", "url": "u", "mapping": "name"})]]}, ".mapping"),
        ({"tables": [[tableDict(column_ratios=[50, 0])]]}, "column_ratios"),
        ({"tables": [[tableDict(column_headers=[1, 2])]]}, "column_headers"),
        ({"tables": [[tableDict(max_cell_height=0)]]}, "max_cell_height"),
        ({"tables": [[tableDict(), tableDict()]]}, "duplicate table id"),
        ({"tables": [[tableDict()], tableDict(id="x")]}, "mix of rows"),
    ],
)
def test_invalid_configs(tmp_path: Path, payload, fragment: str) -> None:
    with pytest.raises(ConfigLoadError) as excInfo:
        loadConfigFile(writeJson(tmp_path, payload))
    assert fragment in str(excInfo.value)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="cannot read"):
        loadConfigFile(tmp_path / "nope.json")


def test_invalid_json(tmp_path: Path) -> None:
    p = tmp_path / "tables.json"
    p.write_text("{", encoding="utf-8")
    with pytest.raises(ConfigLoadError, match="cannot parse"):
        loadConfigFile(p)


def test_invalid_toml(tmp_path: Path) -> None:
    p = tmp_path / "tables.toml"
    p.write_text("tables = [", encoding="utf-8")
    with pytest.raises(ConfigLoadError, match="cannot parse"):
        loadConfigFile(p)


def test_json_root_must_be_object(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="invalid json root"):
        loadConfigFile(writeJson(tmp_path, [1, 2]))


def test_shipped_example_configs_load() -> None:
    configsDir = Path(__file__).resolve().parent.parent / "configs"
    jsonCfg = loadConfigFile(configsDir / "tables.json")
    tomlCfg = loadConfigFile(configsDir / "tables.toml")
    assert jsonCfg.tableIds() == ["services", "prices", "todos"]
    assert tomlCfg.tableIds() == ["notes", "prices"]
