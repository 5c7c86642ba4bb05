# File: sprocgen/__init__.py
"""
SprocGen — Stored Procedure Generator
======================================

Reads relational catalog metadata (tables, columns, primary keys, computed
columns) and emits five Transact-SQL stored procedures per table:
``Select`` (offset / keyset pagination with optional search),
``SelectById``, ``Insert``, ``Update`` (patch semantics) and ``Delete``.

Architecture overview::

    ┌──────────────┐     ┌───────────────────┐     ┌────────────────────┐
    │  CLI / Entry │────▶│ ProcedureGenerator │────▶│ ProcedureTemplates │
    │   (cli.py)   │     │  (generator.py)    │     │   (templates.py)   │
    └──────────────┘     └─────────┬─────────┘     └────────────────────┘
                                   │
                  ┌────────────────┼────────────────┐
                  ▼                ▼                ▼
           ┌───────────┐    ┌───────────┐    ┌───────────┐
           │  catalog  │    │  models   │    │   sinks   │
           │   (.py)   │    │   (.py)   │    │   (.py)   │
           └───────────┘    └───────────┘    └───────────┘

Usage::

    # As a library
    from sprocgen import GeneratorConfig, ProcedureGenerator, load_catalog_file
    reader = load_catalog_file(Path("catalog.yaml"))
    report = ProcedureGenerator(GeneratorConfig(exclude_prefix="tbl_")).generate(reader)
    print(report.script)

    # From the command line
    python -m sprocgen --catalog catalog.yaml -o procedures.sql -v

Public API:
    - ProcedureGenerator   — Streaming generator (table-boundary state machine)
    - GeneratorConfig      — Generation settings model
    - MetadataReader       — Catalog reader contract (static / SQLAlchemy)
    - ProcedureTemplates   — Procedure text renderer
    - ScriptBuffer         — Buffer-mode sink
    - ExecutionSink        — Execute-mode sink
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from sprocgen.models import (
    ColumnDescriptor,
    CompositeKey,
    GeneratorConfig,
    KeyColumn,
    Operation,
    OutputMode,
    PrimaryKeyDescriptor,
    PrimaryKeyShape,
    ProcedureSet,
    SingleKey,
)
from sprocgen.diagnostics import (
    ConfigError,
    DiagnosticLog,
    ExecutionError,
    GenerationDiagnostic,
    GenerationError,
    MetadataUnavailable,
)
from sprocgen.validators import validate_config
from sprocgen.utils import Timer, strip_prefix, write_file
from sprocgen.catalog import (
    MetadataReader,
    SQLAlchemyMetadataReader,
    StaticMetadataReader,
    load_catalog_file,
)
from sprocgen.templates import ProcedureTemplates
from sprocgen.sinks import ExecutionSink, ProcedureSink, ScriptBuffer
from sprocgen.generator import (
    GenerationReport,
    ProcedureGenerator,
    TableContext,
    generate,
    load_config_file,
    parse_raw_config,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Core
    "ProcedureGenerator",
    "GenerationReport",
    "TableContext",
    "generate",
    "load_config_file",
    "parse_raw_config",
    # Models
    "ColumnDescriptor",
    "CompositeKey",
    "GeneratorConfig",
    "KeyColumn",
    "Operation",
    "OutputMode",
    "PrimaryKeyDescriptor",
    "PrimaryKeyShape",
    "ProcedureSet",
    "SingleKey",
    # Errors & diagnostics
    "ConfigError",
    "DiagnosticLog",
    "ExecutionError",
    "GenerationDiagnostic",
    "GenerationError",
    "MetadataUnavailable",
    "validate_config",
    # Catalog
    "MetadataReader",
    "SQLAlchemyMetadataReader",
    "StaticMetadataReader",
    "load_catalog_file",
    # Rendering & sinks
    "ProcedureTemplates",
    "ExecutionSink",
    "ProcedureSink",
    "ScriptBuffer",
    # Utilities
    "Timer",
    "strip_prefix",
    "write_file",
]
