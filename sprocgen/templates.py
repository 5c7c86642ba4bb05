# File: sprocgen/templates.py
"""
SprocGen - Procedure Template Engine
=====================================
Turns an accumulated ``TableContext`` into the five Transact-SQL procedure
texts of a ``ProcedureSet``:

    1. ``<Name>_Select``     — listing with offset / keyset pagination and
                               optional search.
    2. ``<Name>_SelectById`` — one row by full primary key.
    3. ``<Name>_Insert``     — every non-computed column, optional
                               ``OUTPUT INSERTED.Id``.
    4. ``<Name>_Update``     — patch semantics via ``COALESCE``.
    5. ``<Name>_Delete``     — row(s) matching the full primary key.

Two halves:
    - *fragment* helpers, called once per column while a table is being
      accumulated (projection items, parameter lines, SET assignments);
    - *render* methods, called once when the table is finalised.

All string assembly uses ``List[str]`` + ``"\\n".join()``.  Rendering is
stateless — one ``ProcedureTemplates`` per config, safe to reuse.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from sprocgen.models import (
    ColumnDescriptor,
    CompositeKey,
    GeneratorConfig,
    KeyColumn,
    Operation,
    PrimaryKeyShape,
    ProcedureSet,
    SingleKey,
)
from sprocgen.utils import (
    format_parameter,
    parameter_name,
    qualified_name,
    quote_identifier,
    strip_prefix,
)

if TYPE_CHECKING:
    from sprocgen.generator import TableContext

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("sprocgen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "    "
_DOUBLE_INDENT: str = "        "

SEARCH_TERM_PARAMETER: str = "@SearchTerm NVARCHAR(MAX) = NULL"
ID_OUTPUT_CLAUSE: str = "OUTPUT INSERTED.Id"


class ProcedureTemplates:
    """
    Renders procedure fragments and finished procedures for one config.

    Usage::

        templates = ProcedureTemplates(config)
        name = templates.procedure_name("tbl_Order", Operation.SELECT)
        procedure_set = templates.render(context)
    """

    def __init__(self, config: GeneratorConfig) -> None:
        self._config: GeneratorConfig = config
        self._quote: bool = config.quote_identifiers

    # -----------------------------------------------------------------
    # Naming
    # -----------------------------------------------------------------

    def base_name(self, table_name: str) -> str:
        """Table name with the configured prefix removed (once)."""
        return strip_prefix(table_name, self._config.exclude_prefix)

    def procedure_name(self, table_name: str, operation: Operation) -> str:
        """``<schema>.<StrippedTableName>_<Operation>``."""
        return qualified_name(
            self._config.schema_name,
            f"{self.base_name(table_name)}_{operation.value}",
            self._quote,
        )

    def column_ref(self, column_name: str) -> str:
        return quote_identifier(column_name, self._quote)

    # -----------------------------------------------------------------
    # Per-column fragments (accumulation phase)
    # -----------------------------------------------------------------

    def projection_item(self, column: ColumnDescriptor) -> str:
        return self.column_ref(column.column_name)

    def optional_parameter(self, column: ColumnDescriptor) -> str:
        return format_parameter(
            column.column_name,
            column.data_type,
            column.char_length,
            precision=column.numeric_precision,
            scale=column.numeric_scale,
            nullable=True,
        )

    def insert_value(self, column: ColumnDescriptor) -> str:
        return f"@{parameter_name(column.column_name)}"

    def coalesce_assignment(self, column: ColumnDescriptor) -> str:
        """``Col = COALESCE(@Col, Col)`` — a NULL argument keeps the value."""
        ref: str = self.column_ref(column.column_name)
        return f"{ref} = COALESCE(@{parameter_name(column.column_name)}, {ref})"

    # -----------------------------------------------------------------
    # Key helpers
    # -----------------------------------------------------------------

    def key_parameters(self, shape: PrimaryKeyShape, *, nullable: bool) -> List[str]:
        return [
            format_parameter(
                k.column_name,
                k.data_type,
                k.char_length,
                precision=k.numeric_precision,
                scale=k.numeric_scale,
                nullable=nullable,
            )
            for k in shape.columns
        ]

    def key_predicate(self, shape: PrimaryKeyShape) -> str:
        """Conjunction over every key column: ``A = @A AND B = @B``."""
        return " AND ".join(
            f"{self.column_ref(k.column_name)} = @{parameter_name(k.column_name)}"
            for k in shape.columns
        )

    def any_key_supplied(self, shape: PrimaryKeyShape) -> str:
        return " OR ".join(
            f"@{parameter_name(k.column_name)} IS NOT NULL" for k in shape.columns
        )

    def keyset_comparison(self, shape: PrimaryKeyShape) -> Tuple[str, str]:
        """
        Return ``(column expression, cursor expression)`` for keyset paging.

        A single key compares its column directly.  A composite key picks,
        in key order, the first non-NULL key parameter: the CASE selects the
        matching column and COALESCE the matching cursor value.
        """
        if isinstance(shape, SingleKey):
            column: KeyColumn = shape.column
            return (
                self.column_ref(column.column_name),
                f"@{parameter_name(column.column_name)}",
            )

        if isinstance(shape, CompositeKey):
            whens: str = " ".join(
                f"WHEN @{parameter_name(k.column_name)} IS NOT NULL "
                f"THEN {self.column_ref(k.column_name)}"
                for k in shape.columns
            )
            cursor: str = ", ".join(
                f"@{parameter_name(k.column_name)}" for k in shape.columns
            )
            return f"CASE {whens} END", f"COALESCE({cursor})"

        raise TypeError(f"Unsupported primary key shape: {shape!r}")

    def search_predicate(self) -> str:
        column: str = self.column_ref(self._config.search_column)
        return f"(@SearchTerm IS NULL OR {column} LIKE '%' + @SearchTerm + '%')"

    # -----------------------------------------------------------------
    # Shared statement pieces
    # -----------------------------------------------------------------

    def _source(self, ctx: "TableContext") -> str:
        return qualified_name(ctx.schema_name, ctx.table_name, self._quote)

    def _read_source(self, ctx: "TableContext") -> str:
        hint: str = " WITH(NOLOCK)" if self._config.use_nolock else ""
        return f"{self._source(ctx)}{hint}"

    def _select_lines(
        self,
        ctx: "TableContext",
        indent: str,
        top: Optional[str] = None,
    ) -> List[str]:
        """``SELECT [TOP (..)] <projection>`` followed by the FROM line."""
        head: str = f"{indent}SELECT TOP ({top})" if top else f"{indent}SELECT"
        lines: List[str] = []
        if self._config.use_select_wildcard:
            lines.append(f"{head} *")
        else:
            lines.append(head)
            items: List[str] = ctx.select_list
            for pos, item in enumerate(items):
                sep: str = "," if pos < len(items) - 1 else ""
                lines.append(f"{indent}{_INDENT}{item}{sep}")
        lines.append(f"{indent}FROM {self._read_source(ctx)}")
        return lines

    @staticmethod
    def _header(name: str, parameters: List[str]) -> List[str]:
        lines: List[str] = [f"CREATE PROCEDURE {name}"]
        for pos, param in enumerate(parameters):
            sep: str = "," if pos < len(parameters) - 1 else ""
            lines.append(f"{_INDENT}{param}{sep}")
        lines.extend(["AS", "BEGIN", f"{_INDENT}SET NOCOUNT ON"])
        return lines

    @staticmethod
    def _footer() -> List[str]:
        return [f"{_INDENT}SET NOCOUNT OFF", "END"]

    @staticmethod
    def _terminate(lines: List[str]) -> None:
        lines[-1] = lines[-1] + ";"

    # -----------------------------------------------------------------
    # Procedure renderers
    # -----------------------------------------------------------------

    def render_select(self, ctx: "TableContext") -> str:
        """
        Listing procedure with three mutually exclusive branches:

            1. ``@PageNumber`` supplied → OFFSET/FETCH ordered by first key.
            2. any key parameter supplied → keyset page of ``@PageSize``.
            3. otherwise → every row.

        The search predicate, when the table supports it, is ANDed into all
        three branches.
        """
        shape: PrimaryKeyShape = _require_shape(ctx)
        params: List[str] = self.key_parameters(shape, nullable=True)
        params.append(f"@PageSize INT = {self._config.default_page_size}")
        params.append("@PageNumber INT = NULL")
        if ctx.can_search:
            params.append(SEARCH_TERM_PARAMETER)

        search: Optional[str] = self.search_predicate() if ctx.can_search else None
        first_key: str = self.column_ref(shape.columns[0].column_name)
        compare_col, cursor = self.keyset_comparison(shape)

        lines: List[str] = self._header(
            self.procedure_name(ctx.table_name, Operation.SELECT), params
        )

        # Branch 1: offset pagination
        lines.append(f"{_INDENT}IF @PageNumber IS NOT NULL")
        lines.append(f"{_INDENT}BEGIN")
        lines.extend(self._select_lines(ctx, _DOUBLE_INDENT))
        if search:
            lines.append(f"{_DOUBLE_INDENT}WHERE {search}")
        lines.append(f"{_DOUBLE_INDENT}ORDER BY {first_key}")
        lines.append(f"{_DOUBLE_INDENT}OFFSET ((@PageNumber - 1) * @PageSize) ROWS")
        lines.append(f"{_DOUBLE_INDENT}FETCH NEXT @PageSize ROWS ONLY;")
        lines.append(f"{_INDENT}END")

        # Branch 2: keyset pagination
        lines.append(f"{_INDENT}ELSE IF ({self.any_key_supplied(shape)})")
        lines.append(f"{_INDENT}BEGIN")
        lines.extend(self._select_lines(ctx, _DOUBLE_INDENT, top="@PageSize"))
        where: str = f"{_DOUBLE_INDENT}WHERE {compare_col} > {cursor}"
        if search:
            where += f" AND {search}"
        lines.append(where)
        lines.append(f"{_DOUBLE_INDENT}ORDER BY {compare_col};")
        lines.append(f"{_INDENT}END")

        # Branch 3: everything
        lines.append(f"{_INDENT}ELSE")
        lines.append(f"{_INDENT}BEGIN")
        lines.extend(self._select_lines(ctx, _DOUBLE_INDENT))
        if search:
            lines.append(f"{_DOUBLE_INDENT}WHERE {search}")
        self._terminate(lines)
        lines.append(f"{_INDENT}END")

        lines.extend(self._footer())
        return "\n".join(lines)

    def render_select_by_id(self, ctx: "TableContext") -> str:
        shape: PrimaryKeyShape = _require_shape(ctx)
        lines: List[str] = self._header(
            self.procedure_name(ctx.table_name, Operation.SELECT_BY_ID),
            self.key_parameters(shape, nullable=False),
        )
        lines.extend(self._select_lines(ctx, _INDENT))
        lines.append(f"{_INDENT}WHERE {self.key_predicate(shape)};")
        lines.extend(self._footer())
        return "\n".join(lines)

    def render_insert(self, ctx: "TableContext") -> str:
        """Insert over every non-computed column; NULL arguments pass through."""
        lines: List[str] = self._header(
            self.procedure_name(ctx.table_name, Operation.INSERT),
            ctx.insert_parameters,
        )
        output: List[str] = (
            [f"{_INDENT}{ID_OUTPUT_CLAUSE}"] if ctx.has_id_column else []
        )

        if not ctx.insert_columns:
            lines.append(f"{_INDENT}INSERT INTO {self._source(ctx)}")
            lines.extend(output)
            lines.append(f"{_INDENT}DEFAULT VALUES;")
            lines.extend(self._footer())
            return "\n".join(lines)

        lines.append(f"{_INDENT}INSERT INTO {self._source(ctx)} (")
        lines.append(",\n".join(f"{_DOUBLE_INDENT}{c}" for c in ctx.insert_columns))
        lines.append(f"{_INDENT})")
        lines.extend(output)
        lines.append(f"{_INDENT}VALUES (")
        lines.append(",\n".join(f"{_DOUBLE_INDENT}{v}" for v in ctx.insert_values))
        lines.append(f"{_INDENT});")
        lines.extend(self._footer())
        return "\n".join(lines)

    def render_update(self, ctx: "TableContext") -> str:
        """Patch update: each non-key column keeps its value unless supplied."""
        shape: PrimaryKeyShape = _require_shape(ctx)
        params: List[str] = self.key_parameters(shape, nullable=False)
        params.extend(ctx.update_parameters)
        lines: List[str] = self._header(
            self.procedure_name(ctx.table_name, Operation.UPDATE), params
        )

        if ctx.update_assignments:
            lines.append(f"{_INDENT}UPDATE {self._source(ctx)}")
            lines.append(f"{_INDENT}SET")
            lines.append(
                ",\n".join(f"{_DOUBLE_INDENT}{a}" for a in ctx.update_assignments)
            )
            lines.append(f"{_INDENT}WHERE {self.key_predicate(shape)};")
        else:
            lines.append(f"{_INDENT}-- no updatable columns")

        lines.extend(self._footer())
        return "\n".join(lines)

    def render_delete(self, ctx: "TableContext") -> str:
        shape: PrimaryKeyShape = _require_shape(ctx)
        lines: List[str] = self._header(
            self.procedure_name(ctx.table_name, Operation.DELETE),
            self.key_parameters(shape, nullable=False),
        )
        lines.append(f"{_INDENT}DELETE FROM {self._source(ctx)}")
        lines.append(f"{_INDENT}WHERE {self.key_predicate(shape)};")
        lines.extend(self._footer())
        return "\n".join(lines)

    def render(self, ctx: "TableContext") -> ProcedureSet:
        """Render all five procedures for a finalised table."""
        procedure_set: ProcedureSet = ProcedureSet(
            table_name=ctx.table_name,
            select=self.render_select(ctx),
            select_by_id=self.render_select_by_id(ctx),
            insert=self.render_insert(ctx),
            update=self.render_update(ctx),
            delete=self.render_delete(ctx),
        )
        logger.debug("Rendered procedure set for %s.", ctx.table_name)
        return procedure_set


def _require_shape(ctx: "TableContext") -> PrimaryKeyShape:
    if ctx.key_shape is None:
        raise ValueError(f"Table '{ctx.table_name}' has no primary key shape.")
    return ctx.key_shape


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ProcedureTemplates",
    "SEARCH_TERM_PARAMETER",
    "ID_OUTPUT_CLAUSE",
]

logger.debug("sprocgen.templates loaded.")
