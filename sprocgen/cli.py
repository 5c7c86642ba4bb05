# File: sprocgen/cli.py
"""
SprocGen - Command-Line Interface
==================================

Command line built with the standard-library ``argparse`` module.

Usage examples::

    # Script from a catalog file, printed to stdout
    python -m sprocgen --catalog catalog.yaml

    # Only two tables, table prefix stripped from procedure names
    sprocgen --catalog catalog.yaml --tables tbl_Order,tbl_Customer \\
        --exclude-prefix tbl_ -o procedures.sql

    # Reflect a live database and create the procedures there
    sprocgen --database-url mssql+pyodbc://... --schema dbo --execute -v

    # Settings from a file, flags override
    sprocgen --config sprocgen.yaml --catalog catalog.yaml --page-size 25

Exit codes:
    0 — success
    1 — configuration error
    2 — generation finished with errors (skipped or failed tables)
    3 — catalog metadata unavailable
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("sprocgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_CONFIG_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_METADATA_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root sprocgen logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("sprocgen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from sprocgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="sprocgen",
        description=(
            "SprocGen — Stored Procedure Generator.\n\n"
            "Reads table metadata from a catalog file or a live database and "
            "emits Select / SelectById / Insert / Update / Delete procedures "
            "for every in-scope table."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s --catalog catalog.yaml\n"
            "  %(prog)s --catalog catalog.yaml --exclude-prefix tbl_ -o out.sql\n"
            "  %(prog)s --database-url sqlite:///app.db --schema main --tables Orders -v\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"SprocGen v{__version__}",
    )

    # --- Input ---
    source_group = parser.add_argument_group("metadata source")
    source = source_group.add_mutually_exclusive_group()
    source.add_argument(
        "--catalog",
        type=str,
        default=None,
        metavar="PATH",
        help="Catalog definition file (JSON or YAML).",
    )
    source.add_argument(
        "--database-url",
        type=str,
        default=None,
        metavar="URL",
        help="SQLAlchemy URL of the database to reflect (and execute against).",
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Generator settings file (JSON or YAML).",
    )

    # --- Output ---
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="FILE",
        help="Write the script here instead of stdout (buffer mode only).",
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        default=False,
        help="Create the procedures in the database instead of buffering.",
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--schema",
        type=str,
        default=None,
        metavar="NAME",
        help="Schema to read tables from and to name procedures in.",
    )
    config_group.add_argument(
        "--tables",
        type=str,
        default=None,
        metavar="A,B",
        help="Comma-separated table allow-list (default: all tables).",
    )
    config_group.add_argument(
        "--exclude-prefix",
        type=str,
        default=None,
        metavar="PREFIX",
        help="Prefix stripped from table names in procedure names.",
    )
    config_group.add_argument(
        "--search-column",
        type=str,
        default=None,
        metavar="COLUMN",
        help="Computed column used for @SearchTerm (default: Summary).",
    )
    config_group.add_argument(
        "--wildcard",
        action="store_true",
        default=None,
        help="Use SELECT * instead of explicit column lists.",
    )
    config_group.add_argument(
        "--page-size",
        type=int,
        default=None,
        metavar="N",
        help="Default @PageSize of the Select procedures.",
    )
    config_group.add_argument(
        "--quote",
        action="store_true",
        default=None,
        help="Bracket-quote identifiers.",
    )
    config_group.add_argument(
        "--no-nolock",
        action="store_true",
        default=False,
        help="Do not add WITH(NOLOCK) to read statements.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except the script itself.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Build a config override dictionary from CLI arguments."""
    overrides: Dict[str, Any] = {
        "schema_name": args.schema,
        "tables": args.tables,
        "exclude_prefix": args.exclude_prefix,
        "search_column": args.search_column,
        "use_select_wildcard": args.wildcard,
        "default_page_size": args.page_size,
        "quote_identifiers": args.quote,
        "database_url": args.database_url,
    }
    if args.no_nolock:
        overrides["use_nolock"] = False
    if args.execute:
        overrides["output_mode"] = "execute"
    return {k: v for k, v in overrides.items() if v is not None}


def _load_config(args: argparse.Namespace) -> Any:
    """Merge the optional settings file with CLI overrides."""
    from sprocgen.generator import load_config_file, parse_raw_config

    raw: Dict[str, Any] = {}
    if args.config:
        raw = load_config_file(Path(args.config).resolve())
    return parse_raw_config(raw, _build_config_overrides(args))


def _open_reader(args: argparse.Namespace, config: Any) -> Any:
    """
    Build the metadata reader from --catalog or the configured database URL.

    The reader is limited to ``config.schema_name``, the schema the
    procedures are generated for.
    """
    from sprocgen.catalog import SQLAlchemyMetadataReader, load_catalog_file

    if args.catalog:
        return load_catalog_file(
            Path(args.catalog).resolve(), schema=config.schema_name
        )

    from sqlalchemy import create_engine
    from sqlalchemy.exc import ArgumentError

    if not config.database_url:
        raise ValueError("One of --catalog or --database-url is required.")
    try:
        engine = create_engine(config.database_url)
    except (ArgumentError, ImportError) as exc:
        raise ValueError(f"Cannot use database URL: {exc}") from exc
    return SQLAlchemyMetadataReader(engine, schema=config.schema_name)


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _run_generation(args: argparse.Namespace) -> int:
    """
    Run one generation pass.

    Returns the appropriate exit code.
    """
    from sqlalchemy.exc import SQLAlchemyError

    from sprocgen.diagnostics import INVALID_CONFIG, ConfigError, MetadataUnavailable
    from sprocgen.generator import GenerationReport, ProcedureGenerator
    from sprocgen.models import GeneratorConfig, OutputMode
    from sprocgen.utils import write_file

    try:
        config: GeneratorConfig = _load_config(args)
    except ConfigError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    if not args.catalog and not config.database_url:
        logger.error("One of --catalog or --database-url is required.")
        return EXIT_INPUT_ERROR

    if config.output_mode == OutputMode.EXECUTE and args.output:
        logger.error("--output cannot be combined with --execute.")
        return EXIT_INPUT_ERROR

    try:
        reader = _open_reader(args, config)
    except MetadataUnavailable as exc:
        logger.error("Catalog metadata unavailable: %s", exc)
        return EXIT_METADATA_ERROR
    except ValueError as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR

    try:
        report: GenerationReport = ProcedureGenerator(config).generate(reader)
    except MetadataUnavailable as exc:
        logger.error("Catalog metadata unavailable: %s", exc)
        return EXIT_METADATA_ERROR
    except (ValueError, SQLAlchemyError) as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR
    finally:
        reader.close()

    if report.script is not None:
        if args.output:
            output_path: Path = Path(args.output).resolve()
            write_file(output_path, report.script)
            logger.info("Script written to %s.", output_path)
        else:
            sys.stdout.write(report.script)

    if not args.quiet:
        print(report.summary(), file=sys.stderr)

    if not report.success:
        if any(d.code == INVALID_CONFIG for d in report.diagnostics.errors):
            return EXIT_CONFIG_ERROR
        return EXIT_GENERATION_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose
        logging.disable(logging.NOTSET)

    _setup_logging(verbosity)

    if args.catalog:
        catalog_path: Path = Path(args.catalog)
        if not catalog_path.is_file():
            logger.error("Catalog file not found: %s", catalog_path)
            sys.exit(EXIT_INPUT_ERROR)

    if args.config and not Path(args.config).is_file():
        logger.error("Config file not found: %s", args.config)
        sys.exit(EXIT_INPUT_ERROR)

    exit_code: int = _run_generation(args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


def main() -> None:
    """Console-script entry point."""
    cli_main()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "main",
    "EXIT_SUCCESS",
    "EXIT_CONFIG_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_METADATA_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("sprocgen.cli loaded.")
