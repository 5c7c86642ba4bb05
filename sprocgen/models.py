# File: sprocgen/models.py
"""
SprocGen - Core Data Models
============================
Pydantic V2 models describing catalog metadata and generator settings.
These models are the single source of truth for the whole pipeline:
Catalog Read → Table Fold → Procedure Rendering → Emission.

Column rows and key descriptors are frozen: a catalog snapshot is read
once per run and never mutated afterwards.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, FrozenSet, List, Literal, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("sprocgen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class OutputMode(str, Enum):
    """Where finished procedures go."""

    BUFFER = "buffer"
    EXECUTE = "execute"


class Operation(str, Enum):
    """The five generated procedures, in emission order."""

    SELECT = "Select"
    SELECT_BY_ID = "SelectById"
    INSERT = "Insert"
    UPDATE = "Update"
    DELETE = "Delete"


# Character and binary types whose declaration carries a length.
SIZED_TYPES: FrozenSet[str] = frozenset(
    {"VARCHAR", "NVARCHAR", "CHAR", "NCHAR", "VARBINARY", "BINARY"}
)

# Exact numeric types whose declaration carries precision and scale.
PRECISION_TYPES: FrozenSet[str] = frozenset({"DECIMAL", "NUMERIC"})

# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Catalog primitives
# ---------------------------------------------------------------------------


class ColumnDescriptor(BaseModel):
    """
    One column row as delivered by the metadata reader.

    Rows arrive grouped by table and ordered by ``ordinal_position``.
    """

    model_config = _FROZEN_CONFIG

    schema_name: str = Field(..., min_length=1, description="Source schema.")
    table_name: str = Field(..., min_length=1, description="Owning table.")
    column_name: str = Field(..., min_length=1, description="Column name.")
    data_type: str = Field(..., min_length=1, description="Declared type.")
    char_length: Optional[int] = Field(
        default=None, description="Character length (-1 or None = MAX)."
    )
    numeric_precision: Optional[int] = Field(
        default=None, ge=1, description="Decimal precision."
    )
    numeric_scale: Optional[int] = Field(
        default=None, ge=0, description="Decimal scale."
    )
    is_computed: bool = Field(
        default=False, description="Value derived by the store."
    )
    ordinal_position: int = Field(..., ge=1, description="1-based position.")

    @field_validator("data_type")
    @classmethod
    def _upper_type(cls, v: str) -> str:
        return v.strip().upper()

    def __repr__(self) -> str:
        flag: str = " COMPUTED" if self.is_computed else ""
        return (
            f"<Column {self.table_name}.{self.column_name} "
            f"{self.data_type}{flag} #{self.ordinal_position}>"
        )


class KeyColumn(BaseModel):
    """A single primary-key member."""

    model_config = _FROZEN_CONFIG

    column_name: str = Field(..., min_length=1)
    data_type: str = Field(..., min_length=1)
    char_length: Optional[int] = Field(default=None)
    numeric_precision: Optional[int] = Field(default=None)
    numeric_scale: Optional[int] = Field(default=None)

    @field_validator("data_type")
    @classmethod
    def _upper_type(cls, v: str) -> str:
        return v.strip().upper()


class PrimaryKeyDescriptor(BaseModel):
    """Ordered primary-key columns of one table (key-ordinal order)."""

    model_config = _FROZEN_CONFIG

    columns: Tuple[KeyColumn, ...] = Field(default_factory=tuple)

    @computed_field  # type: ignore[misc]
    @property
    def column_names(self) -> List[str]:
        return [k.column_name for k in self.columns]

    @property
    def is_empty(self) -> bool:
        return not self.columns

    def __contains__(self, column_name: object) -> bool:
        return any(k.column_name == column_name for k in self.columns)

    def __len__(self) -> int:
        return len(self.columns)


# ---------------------------------------------------------------------------
# Primary-key shapes (classified once per table)
# ---------------------------------------------------------------------------


class SingleKey(BaseModel):
    """One-column primary key: keyset paging compares that column directly."""

    model_config = _FROZEN_CONFIG

    kind: Literal["single"] = "single"
    column: KeyColumn

    @property
    def columns(self) -> Tuple[KeyColumn, ...]:
        return (self.column,)


class CompositeKey(BaseModel):
    """
    Multi-column primary key.

    Keyset paging picks the first supplied key parameter in key order and
    compares its column only; no tuple comparison is attempted.
    """

    model_config = _FROZEN_CONFIG

    kind: Literal["composite"] = "composite"
    columns: Tuple[KeyColumn, ...] = Field(..., min_length=2)

    @property
    def arity(self) -> int:
        return len(self.columns)


PrimaryKeyShape = Union[SingleKey, CompositeKey]


# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------


class GeneratorConfig(BaseModel):
    """
    Read-only settings for one generation run.

    An empty ``tables`` allow-list means every table in the schema.
    """

    model_config = _FROZEN_CONFIG

    tables: Tuple[str, ...] = Field(
        default_factory=tuple, description="Table allow-list (empty = all)."
    )
    schema_name: str = Field(
        default="dbo", min_length=1, description="Target schema for procedures."
    )
    output_mode: OutputMode = Field(
        default=OutputMode.BUFFER, description="Buffer a script or execute."
    )
    exclude_prefix: str = Field(
        default="", description="Literal prefix stripped from table names."
    )
    search_column: str = Field(
        default="Summary", min_length=1, description="Computed search column."
    )
    use_select_wildcard: bool = Field(
        default=False, description="SELECT * instead of explicit columns."
    )
    default_page_size: int = Field(
        default=10, ge=1, description="Default @PageSize value."
    )
    batch_separator: str = Field(
        default="GO", min_length=1, description="Marker between buffered batches."
    )
    use_nolock: bool = Field(
        default=True, description="Add WITH(NOLOCK) to read statements."
    )
    quote_identifiers: bool = Field(
        default=False, description="Bracket-quote identifiers."
    )
    database_url: Optional[str] = Field(
        default=None, description="SQLAlchemy URL of the catalog / execution target."
    )

    @field_validator("tables", mode="before")
    @classmethod
    def _split_tables(cls, v: Any) -> Any:
        if v is None:
            return ()
        if isinstance(v, str):
            return tuple(part.strip() for part in v.split(",") if part.strip())
        return tuple(str(part).strip() for part in v)

    def includes(self, table_name: str) -> bool:
        """True when *table_name* is in scope for this run."""
        return not self.tables or table_name in self.tables


# ---------------------------------------------------------------------------
# Generated output
# ---------------------------------------------------------------------------


class ProcedureSet(BaseModel):
    """The five finished procedure texts for one table."""

    model_config = _FROZEN_CONFIG

    table_name: str = Field(..., min_length=1)
    select: str
    select_by_id: str
    insert: str
    update: str
    delete: str

    def procedures(self) -> List[Tuple[Operation, str]]:
        """Return (operation, text) pairs in emission order."""
        return [
            (Operation.SELECT, self.select),
            (Operation.SELECT_BY_ID, self.select_by_id),
            (Operation.INSERT, self.insert),
            (Operation.UPDATE, self.update),
            (Operation.DELETE, self.delete),
        ]

    def __repr__(self) -> str:
        return f"<ProcedureSet {self.table_name}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "OutputMode",
    "Operation",
    "SIZED_TYPES",
    "PRECISION_TYPES",
    "ColumnDescriptor",
    "KeyColumn",
    "PrimaryKeyDescriptor",
    "SingleKey",
    "CompositeKey",
    "PrimaryKeyShape",
    "GeneratorConfig",
    "ProcedureSet",
]

logger.debug("sprocgen.models loaded — %d public symbols.", len(__all__))
