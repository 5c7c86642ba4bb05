# File: sprocgen/catalog.py
"""
SprocGen - Metadata Reader
===========================
Turns catalog state into the ordered column stream the generator folds
over, plus the per-table lookups it needs when a new table starts:

    - ``primary_key(table)``            → ``PrimaryKeyDescriptor``
    - ``has_id_column(table)``          → column literally named ``Id``
    - ``has_search_column(table, name)``→ column *name* exists and is computed

Two readers are provided:

    - ``StaticMetadataReader``     — in-memory catalog or a YAML/JSON file.
    - ``SQLAlchemyMetadataReader`` — live catalog via ``sqlalchemy.inspect``.

Contract: ``iter_columns()`` yields rows grouped by table (tables in name
order) and ordinal-ascending within a table.  Any failure to reach the
catalog surfaces as ``MetadataUnavailable``.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sprocgen.diagnostics import MetadataUnavailable
from sprocgen.models import (
    PRECISION_TYPES,
    ColumnDescriptor,
    KeyColumn,
    PrimaryKeyDescriptor,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("sprocgen.catalog")

ID_COLUMN_NAME: str = "Id"


# ---------------------------------------------------------------------------
# Reader contract
# ---------------------------------------------------------------------------


class MetadataReader(ABC):
    """
    Base class for catalog readers.

    Subclasses supply the table list and each table's columns and key;
    the per-table flags are derived here from those columns.
    """

    def __init__(self, schema: Optional[str] = None) -> None:
        self.schema: Optional[str] = schema

    @abstractmethod
    def table_names(self) -> List[str]:
        """In-scope base tables, in catalog (name) order."""

    @abstractmethod
    def columns(self, table: str) -> List[ColumnDescriptor]:
        """Columns of *table*, ordinal-ascending."""

    @abstractmethod
    def primary_key(self, table: str) -> PrimaryKeyDescriptor:
        """Key columns of *table* in key-ordinal order (possibly empty)."""

    def iter_columns(self) -> Iterator[ColumnDescriptor]:
        """Yield every column row, table-grouped and ordinal-ordered."""
        for table in self.table_names():
            yield from self.columns(table)

    def has_id_column(self, table: str) -> bool:
        return any(c.column_name == ID_COLUMN_NAME for c in self.columns(table))

    def has_search_column(self, table: str, search_column: str) -> bool:
        wanted: str = search_column.upper()
        return any(
            c.column_name.upper() == wanted and c.is_computed
            for c in self.columns(table)
        )

    def close(self) -> None:
        """Release anything the reader holds open.  No-op by default."""


# ---------------------------------------------------------------------------
# Static catalog (in-memory / file)
# ---------------------------------------------------------------------------


class StaticMetadataReader(MetadataReader):
    """
    Reader over an already-materialised catalog.

    Accepts the same mapping shape as a catalog file::

        tables:
          - schema: dbo
            name: tbl_Order
            primary_key: [OrderId]
            columns:
              - {name: OrderId, type: int}
              - {name: Summary, type: nvarchar, length: 4000, computed: true}
    """

    def __init__(
        self,
        tables: Mapping[str, Sequence[ColumnDescriptor]],
        primary_keys: Mapping[str, PrimaryKeyDescriptor],
        schema: Optional[str] = None,
    ) -> None:
        super().__init__(schema)
        self._tables: Dict[str, List[ColumnDescriptor]] = {
            name: sorted(cols, key=lambda c: c.ordinal_position)
            for name, cols in tables.items()
        }
        self._primary_keys: Dict[str, PrimaryKeyDescriptor] = dict(primary_keys)

    @classmethod
    def from_dict(
        cls, raw: Mapping[str, Any], schema: Optional[str] = None
    ) -> "StaticMetadataReader":
        """
        Build a reader from a parsed catalog mapping.

        Entries outside *schema* are dropped when *schema* is given.  Two
        in-scope entries with the same table name are rejected, since the
        reader is keyed by table name.
        """
        entries: Any = raw.get("tables")
        if not isinstance(entries, list):
            raise MetadataUnavailable(
                "Catalog must contain a 'tables' list."
            )

        tables: Dict[str, List[ColumnDescriptor]] = {}
        primary_keys: Dict[str, PrimaryKeyDescriptor] = {}
        owners: Dict[str, str] = {}

        try:
            for entry in entries:
                table_schema: str = entry.get("schema") or schema or "dbo"
                if schema is not None and table_schema != schema:
                    continue
                name: str = entry["name"]
                if name in owners:
                    raise MetadataUnavailable(
                        f"Table '{name}' appears in both schema "
                        f"'{owners[name]}' and schema '{table_schema}'; "
                        f"pass a schema to read one of them."
                    )
                owners[name] = table_schema
                columns: List[ColumnDescriptor] = [
                    ColumnDescriptor(
                        schema_name=table_schema,
                        table_name=name,
                        column_name=col["name"],
                        data_type=col["type"],
                        char_length=col.get("length"),
                        numeric_precision=col.get("precision"),
                        numeric_scale=col.get("scale"),
                        is_computed=bool(col.get("computed", False)),
                        ordinal_position=position,
                    )
                    for position, col in enumerate(entry.get("columns", []), start=1)
                ]
                by_name: Dict[str, ColumnDescriptor] = {
                    c.column_name: c for c in columns
                }
                key_columns: List[KeyColumn] = []
                for key_name in entry.get("primary_key", []):
                    if key_name not in by_name:
                        raise MetadataUnavailable(
                            f"Primary key column '{key_name}' is not a column "
                            f"of table '{name}'."
                        )
                    key_columns.append(_key_column(by_name[key_name]))
                tables[name] = columns
                primary_keys[name] = PrimaryKeyDescriptor(columns=tuple(key_columns))
        except (KeyError, TypeError, AttributeError, ValidationError) as exc:
            raise MetadataUnavailable(f"Malformed catalog entry: {exc}") from exc

        return cls(tables, primary_keys, schema=schema)

    def table_names(self) -> List[str]:
        return sorted(name for name, cols in self._tables.items() if cols)

    def columns(self, table: str) -> List[ColumnDescriptor]:
        return list(self._tables.get(table, []))

    def primary_key(self, table: str) -> PrimaryKeyDescriptor:
        return self._primary_keys.get(table, PrimaryKeyDescriptor())


def load_catalog_file(
    path: Path, schema: Optional[str] = None
) -> StaticMetadataReader:
    """
    Load a catalog definition file (JSON or YAML).

    Raises:
        MetadataUnavailable: If the file is missing or cannot be parsed.
    """
    if not path.is_file():
        raise MetadataUnavailable(f"Catalog file not found: {path}")

    text: str = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data: Any = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise MetadataUnavailable(f"Invalid catalog file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise MetadataUnavailable(
            f"Expected a mapping at top level of {path}, "
            f"got {type(data).__name__}."
        )

    reader: StaticMetadataReader = StaticMetadataReader.from_dict(data, schema=schema)
    logger.info(
        "Loaded catalog file %s: %d table(s).", path, len(reader.table_names())
    )
    return reader


# ---------------------------------------------------------------------------
# Live catalog (SQLAlchemy reflection)
# ---------------------------------------------------------------------------


class SQLAlchemyMetadataReader(MetadataReader):
    """
    Reflects base tables of *schema* through ``sqlalchemy.inspect``.

    Views are excluded.  Column and key lookups are cached per table so a
    table is reflected once per run.
    """

    def __init__(self, engine: Engine, schema: Optional[str] = None) -> None:
        super().__init__(schema)
        self._engine: Engine = engine
        self._inspector: Any = None
        self._columns: Dict[str, List[ColumnDescriptor]] = {}
        self._keys: Dict[str, PrimaryKeyDescriptor] = {}

    @property
    def inspector(self) -> Any:
        if self._inspector is None:
            try:
                self._inspector = inspect(self._engine)
            except SQLAlchemyError as exc:
                raise MetadataUnavailable(
                    f"Could not open catalog at {self._engine.url!r}: {exc}"
                ) from exc
        return self._inspector

    def table_names(self) -> List[str]:
        try:
            names: List[str] = self.inspector.get_table_names(schema=self.schema)
        except SQLAlchemyError as exc:
            raise MetadataUnavailable(f"Could not list tables: {exc}") from exc
        logger.info(
            "Discovered %d table(s) in schema %s.", len(names), self.schema or "<default>"
        )
        return sorted(names)

    def columns(self, table: str) -> List[ColumnDescriptor]:
        if table not in self._columns:
            self._columns[table] = self._reflect_columns(table)
        return list(self._columns[table])

    def primary_key(self, table: str) -> PrimaryKeyDescriptor:
        if table not in self._keys:
            self._keys[table] = self._reflect_primary_key(table)
        return self._keys[table]

    def close(self) -> None:
        self._engine.dispose()

    # -- Reflection ---------------------------------------------------------

    def _reflect_columns(self, table: str) -> List[ColumnDescriptor]:
        try:
            raw_cols: List[Dict[str, Any]] = self.inspector.get_columns(
                table, schema=self.schema
            )
        except SQLAlchemyError as exc:
            raise MetadataUnavailable(
                f"Could not reflect columns of {table}: {exc}"
            ) from exc

        schema_name: str = self.schema or self.inspector.default_schema_name or "dbo"
        result: List[ColumnDescriptor] = []
        for position, col in enumerate(raw_cols, start=1):
            data_type, length, precision, scale = _split_type(col["type"])
            result.append(ColumnDescriptor(
                schema_name=schema_name,
                table_name=table,
                column_name=col["name"],
                data_type=data_type,
                char_length=length,
                numeric_precision=precision,
                numeric_scale=scale,
                is_computed="computed" in col,
                ordinal_position=position,
            ))
        return result

    def _reflect_primary_key(self, table: str) -> PrimaryKeyDescriptor:
        try:
            constraint: Dict[str, Any] = self.inspector.get_pk_constraint(
                table, schema=self.schema
            )
        except SQLAlchemyError as exc:
            raise MetadataUnavailable(
                f"Could not reflect primary key of {table}: {exc}"
            ) from exc

        by_name: Dict[str, ColumnDescriptor] = {
            c.column_name: c for c in self.columns(table)
        }
        keys: List[KeyColumn] = []
        for name in constraint.get("constrained_columns") or []:
            col: Optional[ColumnDescriptor] = by_name.get(name)
            if col is None:
                continue
            keys.append(_key_column(col))
        return PrimaryKeyDescriptor(columns=tuple(keys))


def _key_column(col: ColumnDescriptor) -> KeyColumn:
    return KeyColumn(
        column_name=col.column_name,
        data_type=col.data_type,
        char_length=col.char_length,
        numeric_precision=col.numeric_precision,
        numeric_scale=col.numeric_scale,
    )


def _split_type(
    sa_type: Any,
) -> Tuple[str, Optional[int], Optional[int], Optional[int]]:
    """
    Split a reflected SQLAlchemy type into
    (TYPE NAME, length, precision, scale).

    Precision and scale are kept for DECIMAL/NUMERIC only.
    """
    name: str = getattr(sa_type, "__visit_name__", None) or type(sa_type).__name__
    name = name.upper()
    length: Optional[int] = getattr(sa_type, "length", None)
    if name not in PRECISION_TYPES:
        return name, length, None, None
    precision: Optional[int] = getattr(sa_type, "precision", None)
    scale: Optional[int] = getattr(sa_type, "scale", None) if precision else None
    return name, length, precision or None, scale


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ID_COLUMN_NAME",
    "MetadataReader",
    "StaticMetadataReader",
    "SQLAlchemyMetadataReader",
    "load_catalog_file",
]
