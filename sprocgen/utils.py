# File: sprocgen/utils.py
"""
SprocGen - Utility Functions & Helpers
=======================================
Naming, SQL fragment formatting and file I/O helpers used throughout the
generation pipeline.

Name transforms are cached with ``@lru_cache`` since the same table and
column names are formatted once per procedure.
"""

from __future__ import annotations

import functools
import logging
import os
import re
import shutil
import tempfile
import time
from pathlib import Path
from typing import Optional

from sprocgen.models import PRECISION_TYPES, SIZED_TYPES

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("sprocgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NON_IDENTIFIER_CHAR_RE: re.Pattern[str] = re.compile(r"[^A-Za-z0-9_]")


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def strip_prefix(table_name: str, prefix: str) -> str:
    """
    Remove a single leading *prefix* from *table_name*.

    Examples:
        >>> strip_prefix("tbl_Order", "tbl_")
        'Order'
        >>> strip_prefix("Order", "tbl_")
        'Order'
        >>> strip_prefix("tbl_", "tbl_")
        'tbl_'
    """
    if prefix and table_name.startswith(prefix) and len(table_name) > len(prefix):
        return table_name[len(prefix):]
    return table_name


def is_plain_identifier(name: str) -> bool:
    """True when *name* can be emitted without quoting."""
    return bool(_IDENTIFIER_RE.match(name))


def parameter_name(column_name: str) -> str:
    """
    Parameter name for *column_name* (without the leading ``@``).

    Parameters cannot be quoted, so characters outside ``[A-Za-z0-9_]``
    become underscores.
    """
    return _NON_IDENTIFIER_CHAR_RE.sub("_", column_name)


def quote_identifier(name: str, enabled: bool) -> str:
    """Bracket-quote *name* when *enabled*; closing brackets are doubled."""
    if not enabled:
        return name
    return "[" + name.replace("]", "]]") + "]"


def qualified_name(schema: str, name: str, quote: bool = False) -> str:
    return f"{quote_identifier(schema, quote)}.{quote_identifier(name, quote)}"


# ---------------------------------------------------------------------------
# SQL fragments
# ---------------------------------------------------------------------------


def format_sql_type(
    data_type: str,
    char_length: Optional[int] = None,
    precision: Optional[int] = None,
    scale: Optional[int] = None,
) -> str:
    """
    Render a parameter type declaration.

    Sized character/binary types carry their length; ``None`` or ``-1``
    means MAX.  DECIMAL/NUMERIC carry ``(precision,scale)`` when the
    precision is known.

    Examples:
        >>> format_sql_type("nvarchar", 50)
        'NVARCHAR(50)'
        >>> format_sql_type("VARCHAR", -1)
        'VARCHAR(MAX)'
        >>> format_sql_type("int", 4)
        'INT'
        >>> format_sql_type("decimal", precision=10, scale=2)
        'DECIMAL(10,2)'
    """
    base: str = data_type.strip().upper()
    if base in PRECISION_TYPES:
        if precision is None:
            return base
        return f"{base}({precision},{scale or 0})"
    if base not in SIZED_TYPES:
        return base
    if char_length is None or char_length < 0:
        return f"{base}(MAX)"
    return f"{base}({char_length})"


def format_parameter(
    name: str,
    data_type: str,
    char_length: Optional[int] = None,
    *,
    precision: Optional[int] = None,
    scale: Optional[int] = None,
    nullable: bool = False,
) -> str:
    """``@Name TYPE`` with an optional ``= NULL`` default."""
    sql_type: str = format_sql_type(data_type, char_length, precision, scale)
    text: str = f"@{parameter_name(name)} {sql_type}"
    if nullable:
        text += " = NULL"
    return text


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file first then renames.

    Returns the number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    encoded: bytes = content.encode("utf-8")
    byte_count: int = len(encoded)

    if atomic:
        fd: int
        tmp_path: str
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            shutil.move(tmp_path, str(path))
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", byte_count, path)
    return byte_count


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("catalog read") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


__all__ = [
    "strip_prefix",
    "is_plain_identifier",
    "parameter_name",
    "quote_identifier",
    "qualified_name",
    "format_sql_type",
    "format_parameter",
    "write_file",
    "count_lines",
    "Timer",
]
