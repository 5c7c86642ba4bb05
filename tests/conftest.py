"""
tests/conftest.py
Shared fixtures for the sprocgen test suite.

No external mocking libraries are used: catalogs are real YAML files or
in-memory mappings, databases are real SQLite files under pytest's
tmp_path, and sinks are small recording classes defined here.
"""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Callable, Dict, List, Optional

import pytest
import yaml

from sprocgen.catalog import MetadataReader, StaticMetadataReader
from sprocgen.diagnostics import ExecutionError
from sprocgen.generator import TableContext, extend_table, open_table
from sprocgen.models import GeneratorConfig
from sprocgen.templates import ProcedureTemplates


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
CATALOG_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "catalog_example.yaml"


# ---------------------------------------------------------------------------
# Raw catalog fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_catalog_dict() -> Dict[str, Any]:
    """Load the reference catalog_example.yaml once per session."""
    assert CATALOG_EXAMPLE_PATH.exists(), (
        f"Reference catalog not found at {CATALOG_EXAMPLE_PATH}. "
        "Make sure catalog_example.yaml is in the project root."
    )
    with open(CATALOG_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def catalog_dict(raw_catalog_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_catalog_dict)


@pytest.fixture()
def catalog_yaml_path(catalog_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the catalog dict to a temporary YAML file and return its path."""
    path = tmp_path / "catalog.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(catalog_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def catalog_reader(catalog_dict: Dict[str, Any]) -> StaticMetadataReader:
    """Reader over the reference catalog (four dbo tables)."""
    return StaticMetadataReader.from_dict(catalog_dict)


@pytest.fixture()
def default_config() -> GeneratorConfig:
    return GeneratorConfig()


# ---------------------------------------------------------------------------
# Context builder
# ---------------------------------------------------------------------------


@pytest.fixture()
def build_context() -> Callable[..., TableContext]:
    """
    Return a helper that folds every column of one table into a context,
    the same way the generator does between two table boundaries.
    """

    def _build(
        reader: MetadataReader,
        table: str,
        config: Optional[GeneratorConfig] = None,
    ) -> TableContext:
        cfg = config or GeneratorConfig()
        templates = ProcedureTemplates(cfg)
        columns = reader.columns(table)
        assert columns, f"table {table} has no columns"
        ctx = open_table(columns[0], reader, cfg, templates)
        for column in columns[1:]:
            extend_table(ctx, column, templates)
        return ctx

    return _build


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class RecordingSink:
    """Keeps every submitted procedure text in order."""

    def __init__(self) -> None:
        self.texts: List[str] = []

    def submit(self, text: str) -> None:
        self.texts.append(text)


class FailingSink(RecordingSink):
    """Rejects any procedure whose text contains *marker*."""

    def __init__(self, marker: str) -> None:
        super().__init__()
        self.marker: str = marker

    def submit(self, text: str) -> None:
        if self.marker in text:
            raise ExecutionError(f"rejected {self.marker}")
        super().submit(text)


@pytest.fixture()
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def failing_sink_factory() -> Callable[[str], FailingSink]:
    return FailingSink


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------


@pytest.fixture()
def sqlite_url(tmp_path: pathlib.Path) -> str:
    """URL of a SQLite file with a composite key, a computed and a DECIMAL column."""
    from sqlalchemy import create_engine

    path = tmp_path / "catalog.db"
    url = f"sqlite:///{path}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.exec_driver_sql(
            "CREATE TABLE OrderLine ("
            " OrderId INTEGER NOT NULL,"
            " LineNo INTEGER NOT NULL,"
            " Sku VARCHAR(32),"
            " Quantity INTEGER,"
            " PRIMARY KEY (LineNo, OrderId))"
        )
        conn.exec_driver_sql(
            "CREATE TABLE Product ("
            " Id INTEGER PRIMARY KEY,"
            " Name VARCHAR(100) NOT NULL,"
            " Price DECIMAL(10, 2),"
            " Summary TEXT GENERATED ALWAYS AS (Name || ' product') VIRTUAL)"
        )
        conn.exec_driver_sql("CREATE TABLE Audit (Message TEXT)")
        conn.exec_driver_sql("CREATE VIEW ProductNames AS SELECT Name FROM Product")
    engine.dispose()
    return url
