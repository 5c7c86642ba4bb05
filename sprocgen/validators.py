# File: sprocgen/validators.py
"""
SprocGen - Configuration & Identifier Validators
=================================================
Pure-function checks on top of Pydantic's structural validation.

Pydantic guarantees field types and ranges of ``GeneratorConfig``; this
module adds the semantic rules: identifiers that are emitted unquoted must
be plain, allow-list entries must be usable, and Execute mode must have
somewhere to execute.

Usage::

    from sprocgen.validators import validate_config
    log = validate_config(config)
    if log.has_errors:
        ...
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List

from sprocgen.diagnostics import (
    INVALID_CONFIG,
    UNSAFE_IDENTIFIER,
    DiagnosticLog,
)
from sprocgen.models import GeneratorConfig, OutputMode
from sprocgen.utils import is_plain_identifier, parameter_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("sprocgen.validators")


def validate_identifiers(config: GeneratorConfig) -> DiagnosticLog:
    """Schema and search-column names must be plain unless quoting is on."""
    log: DiagnosticLog = DiagnosticLog()
    if config.quote_identifiers:
        return log

    for label, value in (
        ("schema_name", config.schema_name),
        ("search_column", config.search_column),
    ):
        if not is_plain_identifier(value):
            log.add_error(
                INVALID_CONFIG,
                f"{label} '{value}' is not a plain identifier; "
                f"enable quote_identifiers or rename it.",
            )

    if config.exclude_prefix and parameter_name(config.exclude_prefix) != config.exclude_prefix:
        log.add_warning(
            UNSAFE_IDENTIFIER,
            f"exclude_prefix '{config.exclude_prefix}' contains characters "
            f"that cannot appear in unquoted names.",
        )
    return log


def validate_allow_list(config: GeneratorConfig) -> DiagnosticLog:
    """Allow-list entries must be non-empty; duplicates are reported."""
    log: DiagnosticLog = DiagnosticLog()
    counts: Counter = Counter(config.tables)
    for name, count in counts.items():
        if not name:
            log.add_error(INVALID_CONFIG, "Allow-list contains an empty table name.")
        elif count > 1:
            log.add_warning(
                INVALID_CONFIG,
                f"Table '{name}' is listed {count} times in the allow-list.",
                table=name,
            )
    return log


def validate_output_mode(
    config: GeneratorConfig, *, sink_supplied: bool = False
) -> DiagnosticLog:
    """Execute mode needs either a database URL or a caller-supplied sink."""
    log: DiagnosticLog = DiagnosticLog()
    if (
        config.output_mode == OutputMode.EXECUTE
        and not sink_supplied
        and not config.database_url
    ):
        log.add_error(
            INVALID_CONFIG,
            "Execute mode requires database_url or an execution sink.",
        )
    return log


def validate_config(
    config: GeneratorConfig, *, sink_supplied: bool = False
) -> DiagnosticLog:
    """Run every configuration check and merge the results."""
    log: DiagnosticLog = DiagnosticLog()
    log.merge(validate_identifiers(config))
    log.merge(validate_allow_list(config))
    log.merge(validate_output_mode(config, sink_supplied=sink_supplied))

    for item in log.all_items:
        if item.is_error:
            logger.error("Config: %s", item)
        else:
            logger.warning("Config: %s", item)
    return log


def unsafe_names(names: Iterable[str]) -> List[str]:
    """Names that would need quoting to be emitted safely."""
    return [n for n in names if not is_plain_identifier(n)]


__all__: List[str] = [
    "validate_identifiers",
    "validate_allow_list",
    "validate_output_mode",
    "validate_config",
    "unsafe_names",
]
