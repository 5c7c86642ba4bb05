# File: sprocgen/generator.py
"""
SprocGen - Procedure Generator (Streaming Fold)
=================================================

This is the core of SprocGen.  It walks the ordered column stream of a
``MetadataReader`` exactly once and emits five procedures per in-scope
table:

    Catalog Rows → TableContext (accumulate) → ProcedureSet → Sink

Table-boundary state machine::

    IDLE ──first row──▶ ACCUMULATING(ctx) ──same table──▶ ACCUMULATING(ctx)
                              │
                              ├──new table──▶ finalise(ctx); ACCUMULATING(new ctx)
                              │
                              └──end of stream──▶ finalise(ctx); DONE

Only one ``TableContext`` is alive at a time.  A table is complete as soon
as a row of a different table arrives; no lookahead is needed because the
reader delivers rows table-grouped and ordinal-ordered.

Error handling strategy:
    - ``MetadataUnavailable`` propagates: nothing to generate from.
    - ``GenerationError`` (e.g. no primary key) skips that table only.
    - ``ExecutionError`` stops the failing table's remaining submissions;
      later tables still run.  Nothing is rolled back.
    - The final report lists every skipped or failed table.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import yaml
from pydantic import ValidationError

from sprocgen.catalog import MetadataReader
from sprocgen.diagnostics import (
    DUPLICATE_PARAMETER,
    EXECUTION_ERROR,
    NO_PRIMARY_KEY,
    NO_UPDATABLE_COLUMNS,
    UNKNOWN_TABLE,
    UNSAFE_IDENTIFIER,
    ConfigError,
    DiagnosticLog,
    ExecutionError,
    GenerationError,
)
from sprocgen.models import (
    ColumnDescriptor,
    CompositeKey,
    GeneratorConfig,
    Operation,
    OutputMode,
    PrimaryKeyDescriptor,
    PrimaryKeyShape,
    ProcedureSet,
    SingleKey,
)
from sprocgen.sinks import ExecutionSink, ProcedureSink, ScriptBuffer
from sprocgen.templates import ProcedureTemplates
from sprocgen.utils import Timer, parameter_name
from sprocgen.validators import unsafe_names, validate_config

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("sprocgen.generator")

# Parameters the Select procedure declares besides the key parameters.
PAGING_PARAMETERS: Tuple[str, ...] = ("PageSize", "PageNumber")
SEARCH_PARAMETER: str = "SearchTerm"


# ---------------------------------------------------------------------------
# Run report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Result of one ``ProcedureGenerator.generate()`` run.

    ``script`` is set in Buffer mode only.  ``tables_processed`` counts
    in-scope tables that reached finalisation, whether they were emitted,
    skipped or failed.
    """

    success: bool = False
    output_mode: OutputMode = OutputMode.BUFFER
    schema_name: str = ""
    script: Optional[str] = None

    tables_seen: int = 0
    tables_processed: int = 0
    procedures_submitted: int = 0
    elapsed_seconds: float = 0.0

    emitted_tables: List[str] = field(default_factory=list)
    skipped_tables: List[str] = field(default_factory=list)
    failed_tables: List[str] = field(default_factory=list)
    diagnostics: DiagnosticLog = field(default_factory=DiagnosticLog)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines: List[str] = [
            f"{'=' * 60}",
            "  SprocGen — Generation Report",
            f"{'=' * 60}",
            f"  Status:           {status}",
            f"  Mode:             {self.output_mode.value}",
            f"  Schema:           {self.schema_name}",
            f"  Tables seen:      {self.tables_seen}",
            f"  Tables processed: {self.tables_processed}",
            f"  Tables emitted:   {len(self.emitted_tables)}",
            f"  Procedures:       {self.procedures_submitted}",
            f"  Total time:       {self.elapsed_seconds:.3f}s",
        ]

        for title, names, icon in (
            ("Skipped Tables", self.skipped_tables, "⊘"),
            ("Failed Tables", self.failed_tables, "✗"),
        ):
            if names:
                lines.append(f"{'─' * 60}")
                lines.append(f"  {title} ({len(names)}):")
                lines.extend(f"    {icon} {name}" for name in names)

        if len(self.diagnostics):
            lines.append(f"{'─' * 60}")
            lines.append(f"  {self.diagnostics.format_report()}")

        lines.append(f"{'=' * 60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Per-table accumulator
# ---------------------------------------------------------------------------


class GeneratorState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    DONE = "done"


@dataclass(slots=True)
class TableContext:
    """
    Mutable state of the table currently being folded.

    The fragment lists hold already-rendered text for the per-column parts
    of the procedures; headers and bodies are assembled on finalisation.
    """

    schema_name: str
    table_name: str
    primary_key: PrimaryKeyDescriptor
    key_shape: Optional[PrimaryKeyShape]
    can_search: bool
    has_id_column: bool
    in_scope: bool

    last_ordinal: int = 0
    select_list: List[str] = field(default_factory=list)
    insert_parameters: List[str] = field(default_factory=list)
    insert_columns: List[str] = field(default_factory=list)
    insert_values: List[str] = field(default_factory=list)
    update_parameters: List[str] = field(default_factory=list)
    update_assignments: List[str] = field(default_factory=list)
    column_names: List[str] = field(default_factory=list)
    parameter_columns: List[str] = field(default_factory=list)


def classify_primary_key(pk: PrimaryKeyDescriptor) -> Optional[PrimaryKeyShape]:
    """``SingleKey`` for one column, ``CompositeKey`` for more, None if empty."""
    if pk.is_empty:
        return None
    if len(pk.columns) == 1:
        return SingleKey(column=pk.columns[0])
    return CompositeKey(columns=pk.columns)


def open_table(
    column: ColumnDescriptor,
    reader: MetadataReader,
    config: GeneratorConfig,
    templates: ProcedureTemplates,
) -> TableContext:
    """
    Seed a new ``TableContext`` from the first row of a table.

    A table is in scope when it belongs to the configured schema and passes
    the allow-list.
    """
    table: str = column.table_name
    in_scope: bool = (
        column.schema_name == config.schema_name and config.includes(table)
    )
    pk: PrimaryKeyDescriptor = (
        reader.primary_key(table) if in_scope else PrimaryKeyDescriptor()
    )
    ctx: TableContext = TableContext(
        schema_name=column.schema_name,
        table_name=table,
        primary_key=pk,
        key_shape=classify_primary_key(pk),
        can_search=in_scope and reader.has_search_column(table, config.search_column),
        has_id_column=in_scope and reader.has_id_column(table),
        in_scope=in_scope,
    )
    logger.debug(
        "Table %s opened (in_scope=%s, key=%s, search=%s, id=%s).",
        table,
        in_scope,
        pk.column_names,
        ctx.can_search,
        ctx.has_id_column,
    )
    return extend_table(ctx, column, templates)


def extend_table(
    ctx: TableContext,
    column: ColumnDescriptor,
    templates: ProcedureTemplates,
) -> TableContext:
    """Fold one more column of the current table into *ctx*."""
    if column.ordinal_position <= ctx.last_ordinal:
        raise ValueError(
            f"Column stream out of order: {column!r} after ordinal "
            f"{ctx.last_ordinal} of table '{ctx.table_name}'."
        )
    ctx.last_ordinal = column.ordinal_position

    if not ctx.in_scope:
        return ctx

    ctx.column_names.append(column.column_name)
    ctx.select_list.append(templates.projection_item(column))

    if column.is_computed:
        return ctx

    ctx.parameter_columns.append(column.column_name)
    ctx.insert_parameters.append(templates.optional_parameter(column))
    ctx.insert_columns.append(templates.column_ref(column.column_name))
    ctx.insert_values.append(templates.insert_value(column))

    if column.column_name not in ctx.primary_key:
        ctx.update_parameters.append(templates.optional_parameter(column))
        ctx.update_assignments.append(templates.coalesce_assignment(column))

    return ctx


def finalize_table(ctx: TableContext, templates: ProcedureTemplates) -> ProcedureSet:
    """
    Render the five procedures of a completed table.

    Raises:
        GenerationError: ``NoPrimaryKey`` when the table has no key columns,
            ``DuplicateParameter`` when two parameters would share a name.
    """
    if ctx.key_shape is None:
        raise GenerationError(
            NO_PRIMARY_KEY,
            f"Table '{ctx.table_name}' has no primary key; "
            f"SelectById/Update/Delete would have no key predicate.",
            table=ctx.table_name,
        )
    clashes: List[str] = parameter_collisions(ctx)
    if clashes:
        raise GenerationError(
            DUPLICATE_PARAMETER,
            f"Table '{ctx.table_name}' would declare the same parameter "
            f"more than once: {', '.join(clashes)}.",
            table=ctx.table_name,
        )
    return templates.render(ctx)


def parameter_collisions(ctx: TableContext) -> List[str]:
    """
    Describe every parameter name that one procedure would declare twice.

    Column parameters are compared with each other, and key parameters
    with the fixed Select parameters.  Parameter names compare
    case-insensitively.
    """
    columns: List[str] = list(ctx.parameter_columns)
    key_names: List[str] = ctx.primary_key.column_names
    columns.extend(name for name in key_names if name not in columns)

    owners: Dict[str, List[str]] = {}
    for name in columns:
        owners.setdefault(parameter_name(name).upper(), []).append(name)
    clashes: List[str] = [
        f"@{parameter_name(names[0])} ({', '.join(names)})"
        for names in owners.values()
        if len(names) > 1
    ]

    fixed: Set[str] = {name.upper() for name in PAGING_PARAMETERS}
    if ctx.can_search:
        fixed.add(SEARCH_PARAMETER.upper())
    for name in key_names:
        if parameter_name(name).upper() in fixed:
            clashes.append(f"@{parameter_name(name)} (key column {name} in Select)")
    return clashes


# ---------------------------------------------------------------------------
# ProcedureGenerator — the state machine
# ---------------------------------------------------------------------------


class ProcedureGenerator:
    """
    Streaming procedure generator.

    Usage::

        generator = ProcedureGenerator(config)
        report = generator.generate(reader)
        print(report.script)

    Lower-level stepping (``start`` / ``feed`` / ``finish``) is exposed so
    the boundary rule can be driven row by row.

    The generator is reusable: each ``generate()`` / ``start()`` begins a
    fresh run.  In Buffer mode without an explicit sink, each run gets a
    fresh ``ScriptBuffer``.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        sink: Optional[ProcedureSink] = None,
    ) -> None:
        self._config: GeneratorConfig = config
        self._templates: ProcedureTemplates = ProcedureTemplates(config)
        self._external_sink: Optional[ProcedureSink] = sink
        self._sink: Optional[ProcedureSink] = sink

        self.state: GeneratorState = GeneratorState.IDLE
        self.context: Optional[TableContext] = None
        self._reader: Optional[MetadataReader] = None
        self._report: GenerationReport = GenerationReport()
        self._finalized: Set[str] = set()
        self._processed: Set[str] = set()
        self._started_at: float = 0.0

        logger.debug(
            "ProcedureGenerator initialised: mode=%s, schema=%s, tables=%s.",
            config.output_mode.value,
            config.schema_name,
            list(config.tables) or "<all>",
        )

    @property
    def templates(self) -> ProcedureTemplates:
        return self._templates

    # -----------------------------------------------------------------
    # Public: one-shot run
    # -----------------------------------------------------------------

    def generate(self, reader: MetadataReader) -> GenerationReport:
        """
        Fold the whole column stream of *reader* and return the report.

        Raises:
            MetadataUnavailable: If the catalog cannot be read.
        """
        if not self.start(reader):
            return self._report
        try:
            with Timer("catalog fold"):
                for column in reader.iter_columns():
                    self.feed(column)
            return self.finish()
        finally:
            self._release_sink()

    # -----------------------------------------------------------------
    # Public: stepping
    # -----------------------------------------------------------------

    def start(self, reader: MetadataReader) -> bool:
        """
        Reset to ``IDLE`` for a new run.

        Returns False (and leaves a failed, finished report) when the
        configuration does not validate.
        """
        self._started_at = time.perf_counter()
        self._reader = reader
        self.state = GeneratorState.IDLE
        self.context = None
        self._finalized = set()
        self._processed = set()
        self._report = GenerationReport(
            output_mode=self._config.output_mode,
            schema_name=self._config.schema_name,
        )

        config_log: DiagnosticLog = validate_config(
            self._config, sink_supplied=self._external_sink is not None
        )
        self._report.diagnostics.merge(config_log)
        if config_log.has_errors:
            self.state = GeneratorState.DONE
            self._report.success = False
            self._report.elapsed_seconds = time.perf_counter() - self._started_at
            return False

        self._sink = self._external_sink or self._default_sink()
        return True

    def feed(self, column: ColumnDescriptor) -> None:
        """Advance the state machine by one column row."""
        if self.state is GeneratorState.DONE:
            raise RuntimeError("Generation run already finished; call start().")
        if self._reader is None:
            raise RuntimeError("No reader: call start() before feed().")

        if self.state is GeneratorState.IDLE:
            self._open(column)
            self.state = GeneratorState.ACCUMULATING
            return

        if self.context is None:
            raise RuntimeError("No table is open; the run was not started cleanly.")
        if column.table_name == self.context.table_name:
            extend_table(self.context, column, self._templates)
            return

        self._finalize(self.context)
        self._open(column)

    def finish(self) -> GenerationReport:
        """Finalise the in-progress table (if any) and close the run."""
        if self.state is GeneratorState.DONE:
            return self._report

        if self.context is not None:
            self._finalize(self.context)
            self.context = None
        self.state = GeneratorState.DONE

        report: GenerationReport = self._report
        for name in self._config.tables:
            if name and name not in self._processed:
                report.diagnostics.add_warning(
                    UNKNOWN_TABLE,
                    f"Allow-listed table '{name}' was not found in schema "
                    f"'{self._config.schema_name}'.",
                    table=name,
                )

        if isinstance(self._sink, ScriptBuffer):
            report.script = self._sink.script
        self._release_sink()

        report.success = not report.diagnostics.has_errors
        report.elapsed_seconds = time.perf_counter() - self._started_at

        logger.info(
            "Generation finished: %d table(s) processed, %d emitted, "
            "%d skipped, %d failed in %.3fs.",
            report.tables_processed,
            len(report.emitted_tables),
            len(report.skipped_tables),
            len(report.failed_tables),
            report.elapsed_seconds,
        )
        return report

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _default_sink(self) -> ProcedureSink:
        if self._config.output_mode == OutputMode.EXECUTE:
            if self._config.database_url is None:
                raise RuntimeError("Execute mode needs a database_url or a sink.")
            return ExecutionSink.from_url(self._config.database_url)
        return ScriptBuffer(self._config.batch_separator)

    def _open(self, column: ColumnDescriptor) -> None:
        if column.table_name in self._finalized:
            raise ValueError(
                f"Column stream is not grouped by table: '{column.table_name}' "
                f"reappeared after it was finalised."
            )
        if self._reader is None:
            raise RuntimeError("No reader: call start() before feed().")
        self.context = open_table(column, self._reader, self._config, self._templates)
        self._report.tables_seen += 1

    def _finalize(self, ctx: TableContext) -> None:
        self._finalized.add(ctx.table_name)
        if not ctx.in_scope:
            logger.debug("Table %s out of scope; no output.", ctx.table_name)
            return

        report: GenerationReport = self._report
        report.tables_processed += 1
        self._processed.add(ctx.table_name)

        try:
            procedure_set: ProcedureSet = finalize_table(ctx, self._templates)
        except GenerationError as exc:
            report.diagnostics.record(exc)
            report.skipped_tables.append(ctx.table_name)
            logger.warning("Skipping table %s: %s", ctx.table_name, exc.message)
            return

        if not self._config.quote_identifiers:
            for name in unsafe_names([ctx.table_name, *ctx.column_names]):
                report.diagnostics.add_warning(
                    UNSAFE_IDENTIFIER,
                    f"'{name}' is emitted unquoted and may not parse.",
                    table=ctx.table_name,
                )

        if not ctx.update_assignments:
            report.diagnostics.add_warning(
                NO_UPDATABLE_COLUMNS,
                "Every column is part of the key or computed; "
                "the Update procedure changes nothing.",
                table=ctx.table_name,
                operation=Operation.UPDATE,
            )

        self._emit(procedure_set)

    def _release_sink(self) -> None:
        """Dispose an ``ExecutionSink`` this generator built for the run."""
        if isinstance(self._sink, ExecutionSink) and self._external_sink is None:
            self._sink.dispose()
            self._sink = None

    def _emit(self, procedure_set: ProcedureSet) -> None:
        if self._sink is None:
            raise RuntimeError("No sink: call start() before feed().")
        report: GenerationReport = self._report
        table: str = procedure_set.table_name

        for operation, text in procedure_set.procedures():
            try:
                self._sink.submit(text)
            except ExecutionError as exc:
                report.diagnostics.add_error(
                    EXECUTION_ERROR, exc.message, table=table, operation=operation
                )
                report.failed_tables.append(table)
                logger.error(
                    "Execution of %s failed: %s",
                    self._templates.procedure_name(table, operation),
                    exc.message,
                )
                return
            report.procedures_submitted += 1

        report.emitted_tables.append(table)
        logger.info("Emitted procedures for %s.", table)


# ---------------------------------------------------------------------------
# Convenience entry point
# ---------------------------------------------------------------------------


def generate(
    reader: MetadataReader,
    config: GeneratorConfig,
    sink: Optional[ProcedureSink] = None,
) -> GenerationReport:
    """Run one generation pass over *reader* with *config*."""
    return ProcedureGenerator(config, sink=sink).generate(reader)


# ---------------------------------------------------------------------------
# Config loading
# ---------------------------------------------------------------------------


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a configuration file (JSON or YAML).

    A top-level ``config`` (or ``generator``) key is unwrapped when present.

    Raises:
        ConfigError: If the file is missing or cannot be parsed.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    text: str = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data: Any = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a mapping at top level of {path}, got {type(data).__name__}."
        )
    for key in ("config", "generator"):
        if isinstance(data.get(key), dict):
            return dict(data[key])
    return data


def parse_raw_config(
    raw: Dict[str, Any],
    overrides: Optional[Dict[str, Any]] = None,
) -> GeneratorConfig:
    """
    Validate raw settings (plus overrides) into a ``GeneratorConfig``.

    Raises:
        ConfigError: With one line per invalid field.
    """
    payload: Dict[str, Any] = dict(raw)
    if overrides:
        payload.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return GeneratorConfig.model_validate(payload)
    except ValidationError as exc:
        messages: List[str] = []
        for err in exc.errors():
            loc: str = ".".join(str(item) for item in err["loc"])
            messages.append(f"- {loc}: {err['msg']}")
        raise ConfigError(
            "Invalid configuration values:\n" + "\n".join(messages)
        ) from exc


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GenerationReport",
    "GeneratorState",
    "TableContext",
    "ProcedureGenerator",
    "classify_primary_key",
    "open_table",
    "extend_table",
    "finalize_table",
    "generate",
    "load_config_file",
    "parse_raw_config",
]

logger.debug("sprocgen.generator loaded.")
