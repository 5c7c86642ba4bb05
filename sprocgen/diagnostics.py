# File: sprocgen/diagnostics.py
"""
SprocGen - Errors & Diagnostics
================================
Exception types raised by the pipeline and the lightweight container that
collects per-table diagnostics during a run.

Error kinds:
    - ``MetadataUnavailable`` — catalog unreachable; fatal for the run.
    - ``GenerationError``     — one table cannot be generated; skipped.
    - ``ExecutionError``      — a sink rejected a submitted procedure.
    - ``ConfigError``         — configuration could not be loaded.

Every diagnostic names the table (and, where relevant, the operation) it
belongs to.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sprocgen.models import Operation

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("sprocgen.diagnostics")

# ---------------------------------------------------------------------------
# Diagnostic codes
# ---------------------------------------------------------------------------

NO_PRIMARY_KEY: str = "NoPrimaryKey"
DUPLICATE_PARAMETER: str = "DuplicateParameter"
EXECUTION_ERROR: str = "ExecutionError"
NO_UPDATABLE_COLUMNS: str = "NoUpdatableColumns"
UNKNOWN_TABLE: str = "UnknownTable"
UNSAFE_IDENTIFIER: str = "UnsafeIdentifier"
INVALID_CONFIG: str = "InvalidConfig"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when configuration cannot be loaded safely."""


class MetadataUnavailable(RuntimeError):
    """Raised when the catalog cannot be read."""


class GenerationError(Exception):
    """A single table cannot be turned into a procedure set."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        table: Optional[str] = None,
        operation: Optional[Operation] = None,
    ) -> None:
        super().__init__(message)
        self.code: str = code
        self.message: str = message
        self.table: Optional[str] = table
        self.operation: Optional[Operation] = operation


class ExecutionError(RuntimeError):
    """A sink rejected a submitted procedure."""

    def __init__(
        self,
        message: str,
        *,
        table: Optional[str] = None,
        operation: Optional[Operation] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.table: Optional[str] = table
        self.operation: Optional[Operation] = operation


# ---------------------------------------------------------------------------
# Diagnostic container
# ---------------------------------------------------------------------------


class GenerationDiagnostic:
    """Lightweight diagnostic record (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "table", "operation")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        table: Optional[str] = None,
        operation: Optional[Operation] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.table: Optional[str] = table
        self.operation: Optional[Operation] = operation

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    @property
    def location(self) -> str:
        """``table`` or ``table.Operation``; empty for run-level entries."""
        if self.table is None:
            return ""
        if self.operation is None:
            return self.table
        return f"{self.table}.{self.operation.value}"

    def __repr__(self) -> str:
        where: str = f" ({self.location})" if self.location else ""
        return f"[{self.level.upper()}] {self.code}{where}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "table": self.table,
            "operation": self.operation.value if self.operation else None,
        }


class DiagnosticLog:
    """Accumulates ``GenerationDiagnostic`` records for one run."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[GenerationDiagnostic] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        table: Optional[str] = None,
        operation: Optional[Operation] = None,
    ) -> None:
        self._items.append(
            GenerationDiagnostic("error", code, message, table, operation)
        )

    def add_warning(
        self,
        code: str,
        message: str,
        table: Optional[str] = None,
        operation: Optional[Operation] = None,
    ) -> None:
        self._items.append(
            GenerationDiagnostic("warning", code, message, table, operation)
        )

    def record(self, exc: GenerationError) -> None:
        """Store a caught ``GenerationError`` as an error diagnostic."""
        self.add_error(exc.code, exc.message, exc.table, exc.operation)

    def merge(self, other: "DiagnosticLog") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[GenerationDiagnostic]:
        return [d for d in self._items if d.is_error]

    @property
    def warnings(self) -> List[GenerationDiagnostic]:
        return [d for d in self._items if d.is_warning]

    @property
    def all_items(self) -> List[GenerationDiagnostic]:
        return list(self._items)

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self._items)

    def for_table(self, table: str) -> List[GenerationDiagnostic]:
        return [d for d in self._items if d.table == table]

    def codes(self) -> List[str]:
        return [d.code for d in self._items]

    def summary(self) -> str:
        return (
            f"Diagnostics: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)."
        )

    def __repr__(self) -> str:
        return f"<DiagnosticLog {self.summary()}>"

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary()]
        for item in self._items:
            prefix: str = "✗" if item.is_error else "⚠"
            where: str = f" {item.location}:" if item.location else ""
            lines.append(f"  {prefix} [{item.code}]{where} {item.message}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "NO_PRIMARY_KEY",
    "DUPLICATE_PARAMETER",
    "EXECUTION_ERROR",
    "NO_UPDATABLE_COLUMNS",
    "UNKNOWN_TABLE",
    "UNSAFE_IDENTIFIER",
    "INVALID_CONFIG",
    "ConfigError",
    "MetadataUnavailable",
    "GenerationError",
    "ExecutionError",
    "GenerationDiagnostic",
    "DiagnosticLog",
]
