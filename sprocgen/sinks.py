# File: sprocgen/sinks.py
"""
SprocGen - Output Sinks
========================
Where finished procedures go.  The generator treats a sink as an opaque
capability with a single operation, ``submit(text)``:

    - ``ScriptBuffer``  — Buffer mode.  Appends each procedure followed by a
                          batch separator to one growing script, which can
                          be written to disk atomically.
    - ``ExecutionSink`` — Execute mode.  Runs each procedure through a
                          SQLAlchemy engine, one transaction per procedure.

Execute mode is not transactional across procedures or tables: objects
created before a failure stay in place.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Protocol, runtime_checkable

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sprocgen.diagnostics import ExecutionError
from sprocgen.utils import count_lines, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("sprocgen.sinks")


@runtime_checkable
class ProcedureSink(Protocol):
    """Anything that accepts one procedure definition at a time."""

    def submit(self, text: str) -> None:
        """Accept *text* or raise ``ExecutionError``."""


# ---------------------------------------------------------------------------
# Buffer mode
# ---------------------------------------------------------------------------


class ScriptBuffer:
    """
    Accumulates procedures into a single script.

    Each submitted procedure is followed by the batch separator on its own
    line and a blank line.
    """

    def __init__(self, batch_separator: str = "GO") -> None:
        self._separator: str = batch_separator
        self._parts: List[str] = []

    def submit(self, text: str) -> None:
        self._parts.append(f"{text}\n{self._separator}\n")

    @property
    def script(self) -> str:
        return "\n".join(self._parts)

    @property
    def procedure_count(self) -> int:
        return len(self._parts)

    def write(self, path: Path, atomic: bool = True) -> int:
        """Write the script to *path*; returns bytes written."""
        content: str = self.script
        byte_count: int = write_file(path, content, atomic=atomic)
        logger.info(
            "Wrote %d procedure(s), %d lines to %s.",
            self.procedure_count,
            count_lines(content),
            path,
        )
        return byte_count

    def __repr__(self) -> str:
        return f"<ScriptBuffer {self.procedure_count} procedure(s)>"


# ---------------------------------------------------------------------------
# Execute mode
# ---------------------------------------------------------------------------


class ExecutionSink:
    """
    Submits each procedure to a database through SQLAlchemy.

    Statements are sent with ``exec_driver_sql`` so that ``@params`` and
    ``%`` literals reach the server untouched.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine: Engine = engine
        self.submitted: int = 0

    @classmethod
    def from_url(cls, database_url: str) -> "ExecutionSink":
        return cls(create_engine(database_url, pool_pre_ping=True))

    def submit(self, text: str) -> None:
        try:
            with self._engine.begin() as conn:
                conn.exec_driver_sql(text)
        except SQLAlchemyError as exc:
            raise ExecutionError(f"Procedure rejected: {exc}") from exc
        self.submitted += 1
        logger.debug("Executed procedure #%d.", self.submitted)

    def dispose(self) -> None:
        self._engine.dispose()

    def __repr__(self) -> str:
        return f"<ExecutionSink {self._engine.url!r}: {self.submitted} submitted>"


__all__: List[str] = [
    "ProcedureSink",
    "ScriptBuffer",
    "ExecutionSink",
]
