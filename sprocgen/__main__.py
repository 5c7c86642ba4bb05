# File: sprocgen/__main__.py
"""
SprocGen — Module entry point.

Allows running the generator directly via::

    python -m sprocgen --catalog catalog.yaml -o procedures.sql

This module simply delegates to the CLI entry point defined in ``sprocgen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from sprocgen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
