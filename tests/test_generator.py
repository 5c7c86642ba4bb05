"""
tests/test_generator.py
Unit tests for sprocgen.generator.

Tests cover:
- Primary-key classification
- Table-boundary state machine (IDLE / ACCUMULATING / DONE)
- Allow-list and schema scoping, UnknownTable warnings
- NoPrimaryKey and DuplicateParameter skipping without affecting other tables
- Buffer mode script layout and procedure order
- Execute mode with recording and failing sinks
- Metadata failures propagating out of generate()
- Configuration file loading and parsing
"""

from __future__ import annotations

import json
import pathlib
from typing import Any, Callable, Dict, List, Tuple

import pytest
import yaml

from sprocgen.catalog import MetadataReader, StaticMetadataReader
from sprocgen.diagnostics import (
    DUPLICATE_PARAMETER,
    EXECUTION_ERROR,
    INVALID_CONFIG,
    NO_PRIMARY_KEY,
    NO_UPDATABLE_COLUMNS,
    UNKNOWN_TABLE,
    UNSAFE_IDENTIFIER,
    ConfigError,
    MetadataUnavailable,
)
from sprocgen.generator import (
    GeneratorState,
    ProcedureGenerator,
    classify_primary_key,
    generate,
    load_config_file,
    parse_raw_config,
)
from sprocgen.models import (
    ColumnDescriptor,
    CompositeKey,
    GeneratorConfig,
    KeyColumn,
    Operation,
    OutputMode,
    PrimaryKeyDescriptor,
    SingleKey,
)
from sprocgen.sinks import ExecutionSink


ALL_TABLES: List[str] = ["tbl_AuditLog", "tbl_Order", "tbl_OrderLine", "tbl_OrderTag"]


class BrokenReader(MetadataReader):
    """Reader whose catalog cannot be reached."""

    def table_names(self) -> List[str]:
        raise MetadataUnavailable("catalog offline")

    def columns(self, table: str) -> List[ColumnDescriptor]:
        raise MetadataUnavailable("catalog offline")

    def primary_key(self, table: str) -> PrimaryKeyDescriptor:
        raise MetadataUnavailable("catalog offline")


class LostConnectionReader(StaticMetadataReader):
    """Reader that loses its catalog when it reaches tbl_OrderLine."""

    def columns(self, table: str) -> List[ColumnDescriptor]:
        if table == "tbl_OrderLine":
            raise MetadataUnavailable("connection lost")
        return super().columns(table)


def _id_key() -> PrimaryKeyDescriptor:
    return PrimaryKeyDescriptor(columns=(KeyColumn(column_name="Id", data_type="int"),))


def _single_key_table(name: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    column = ColumnDescriptor(schema_name="dbo", table_name=name, column_name="Id",
                              data_type="int", ordinal_position=1)
    return {name: [column]}, {name: _id_key()}


# ===========================================================================
# Key classification
# ===========================================================================


class TestClassifyPrimaryKey:
    """One column → SingleKey, several → CompositeKey, none → None."""

    def test_empty(self) -> None:
        assert classify_primary_key(PrimaryKeyDescriptor()) is None

    def test_single(self) -> None:
        pk = PrimaryKeyDescriptor(columns=(KeyColumn(column_name="Id", data_type="int"),))
        shape = classify_primary_key(pk)
        assert isinstance(shape, SingleKey)
        assert shape.column.column_name == "Id"

    def test_composite_keeps_order(self) -> None:
        pk = PrimaryKeyDescriptor(columns=(
            KeyColumn(column_name="B", data_type="int"),
            KeyColumn(column_name="A", data_type="int"),
        ))
        shape = classify_primary_key(pk)
        assert isinstance(shape, CompositeKey)
        assert [k.column_name for k in shape.columns] == ["B", "A"]
        assert shape.arity == 2


# ===========================================================================
# State machine
# ===========================================================================


class TestStateMachine:
    """Boundary rule: a table is finalised when a different table starts."""

    def test_starts_idle(self, catalog_reader: StaticMetadataReader, recording_sink: Any) -> None:
        generator = ProcedureGenerator(GeneratorConfig(), sink=recording_sink)
        assert generator.start(catalog_reader) is True
        assert generator.state is GeneratorState.IDLE
        assert generator.context is None

    def test_first_row_opens_context(
        self, catalog_reader: StaticMetadataReader, recording_sink: Any
    ) -> None:
        generator = ProcedureGenerator(GeneratorConfig(), sink=recording_sink)
        generator.start(catalog_reader)
        generator.feed(catalog_reader.columns("tbl_Order")[0])
        assert generator.state is GeneratorState.ACCUMULATING
        assert generator.context is not None
        assert generator.context.table_name == "tbl_Order"
        assert recording_sink.texts == []

    def test_new_table_finalises_previous(
        self, catalog_reader: StaticMetadataReader, recording_sink: Any
    ) -> None:
        generator = ProcedureGenerator(GeneratorConfig(), sink=recording_sink)
        generator.start(catalog_reader)
        for column in catalog_reader.columns("tbl_Order"):
            generator.feed(column)
        assert recording_sink.texts == []
        generator.feed(catalog_reader.columns("tbl_OrderLine")[0])
        assert len(recording_sink.texts) == 5
        assert generator.context.table_name == "tbl_OrderLine"

    def test_end_of_stream_finalises_last_table(
        self, catalog_reader: StaticMetadataReader, recording_sink: Any
    ) -> None:
        config = GeneratorConfig(tables=["tbl_OrderTag"])
        report = generate(catalog_reader, config, sink=recording_sink)
        assert report.emitted_tables == ["tbl_OrderTag"]
        assert len(recording_sink.texts) == 5

    def test_finish_moves_to_done(
        self, catalog_reader: StaticMetadataReader, recording_sink: Any
    ) -> None:
        generator = ProcedureGenerator(GeneratorConfig(), sink=recording_sink)
        generator.start(catalog_reader)
        generator.finish()
        assert generator.state is GeneratorState.DONE
        with pytest.raises(RuntimeError):
            generator.feed(catalog_reader.columns("tbl_Order")[0])

    def test_empty_stream(self, recording_sink: Any) -> None:
        report = generate(StaticMetadataReader({}, {}), GeneratorConfig(), sink=recording_sink)
        assert report.success is True
        assert report.tables_processed == 0
        assert recording_sink.texts == []

    def test_feed_before_start_rejected(self, catalog_reader: StaticMetadataReader) -> None:
        generator = ProcedureGenerator(GeneratorConfig())
        with pytest.raises(RuntimeError):
            generator.feed(catalog_reader.columns("tbl_Order")[0])

    def test_ungrouped_stream_rejected(
        self, catalog_reader: StaticMetadataReader, recording_sink: Any
    ) -> None:
        generator = ProcedureGenerator(GeneratorConfig(), sink=recording_sink)
        generator.start(catalog_reader)
        order_columns = catalog_reader.columns("tbl_Order")
        generator.feed(order_columns[0])
        generator.feed(catalog_reader.columns("tbl_OrderLine")[0])
        with pytest.raises(ValueError):
            generator.feed(order_columns[1])

    def test_out_of_order_columns_rejected(
        self, catalog_reader: StaticMetadataReader, recording_sink: Any
    ) -> None:
        generator = ProcedureGenerator(GeneratorConfig(), sink=recording_sink)
        generator.start(catalog_reader)
        order_columns = catalog_reader.columns("tbl_Order")
        generator.feed(order_columns[1])
        with pytest.raises(ValueError):
            generator.feed(order_columns[0])

    def test_generator_is_reusable(self, catalog_reader: StaticMetadataReader) -> None:
        generator = ProcedureGenerator(GeneratorConfig(tables=["tbl_Order"]))
        first = generator.generate(catalog_reader)
        second = generator.generate(catalog_reader)
        assert first.script == second.script
        assert second.procedures_submitted == 5


# ===========================================================================
# Scope
# ===========================================================================


class TestScope:
    """Allow-list filtering."""

    def test_allow_list_subset(self, catalog_reader: StaticMetadataReader) -> None:
        config = GeneratorConfig(tables=["tbl_Order", "tbl_OrderLine"])
        report = generate(catalog_reader, config)
        assert report.success is True
        assert report.emitted_tables == ["tbl_Order", "tbl_OrderLine"]
        assert report.tables_seen == 4
        assert report.tables_processed == 2
        assert "tbl_AuditLog" not in report.script
        assert "tbl_OrderTag" not in report.script

    def test_empty_allow_list_means_all(self, catalog_reader: StaticMetadataReader) -> None:
        report = generate(catalog_reader, GeneratorConfig())
        assert report.tables_processed == 4
        assert sorted(report.emitted_tables + report.skipped_tables) == ALL_TABLES

    def test_allow_list_is_exact_match(self, catalog_reader: StaticMetadataReader) -> None:
        report = generate(catalog_reader, GeneratorConfig(tables=["TBL_ORDER"]))
        assert report.emitted_tables == []
        assert UNKNOWN_TABLE in report.diagnostics.codes()

    def test_unknown_table_warning(self, catalog_reader: StaticMetadataReader) -> None:
        config = GeneratorConfig(tables=["tbl_Order", "Missing"])
        report = generate(catalog_reader, config)
        assert report.success is True
        warnings = [w for w in report.diagnostics.warnings if w.code == UNKNOWN_TABLE]
        assert [w.table for w in warnings] == ["Missing"]

    def test_comma_separated_allow_list(self) -> None:
        config = GeneratorConfig(tables="tbl_Order, tbl_OrderLine,")
        assert config.tables == ("tbl_Order", "tbl_OrderLine")
        assert config.includes("tbl_Order")
        assert not config.includes("tbl_OrderTag")

    def test_other_schemas_out_of_scope(self, catalog_dict: Dict[str, Any]) -> None:
        catalog_dict["tables"][0]["schema"] = "sales"
        reader = StaticMetadataReader.from_dict(catalog_dict)
        report = generate(reader, GeneratorConfig(schema_name="sales"))
        assert report.success is True
        assert report.emitted_tables == ["tbl_Order"]
        assert report.tables_seen == 4
        assert report.tables_processed == 1
        assert "CREATE PROCEDURE sales.tbl_Order_Select\n" in report.script
        assert "FROM sales.tbl_Order WITH(NOLOCK)" in report.script
        assert "dbo." not in report.script

    def test_allow_listed_table_in_other_schema_warns(
        self, catalog_dict: Dict[str, Any]
    ) -> None:
        catalog_dict["tables"][0]["schema"] = "sales"
        reader = StaticMetadataReader.from_dict(catalog_dict)
        config = GeneratorConfig(schema_name="sales", tables=["tbl_Order", "tbl_OrderLine"])
        report = generate(reader, config)
        assert report.emitted_tables == ["tbl_Order"]
        warnings = [w for w in report.diagnostics.warnings if w.code == UNKNOWN_TABLE]
        assert [w.table for w in warnings] == ["tbl_OrderLine"]


# ===========================================================================
# Per-table failures
# ===========================================================================


class TestTableDiagnostics:
    """Skipped tables never affect the others."""

    def test_no_primary_key_skipped(self, catalog_reader: StaticMetadataReader) -> None:
        report = generate(catalog_reader, GeneratorConfig())
        assert report.success is False
        assert report.skipped_tables == ["tbl_AuditLog"]
        assert report.emitted_tables == ["tbl_Order", "tbl_OrderLine", "tbl_OrderTag"]
        errors = report.diagnostics.errors
        assert [(e.code, e.table) for e in errors] == [(NO_PRIMARY_KEY, "tbl_AuditLog")]
        assert "tbl_AuditLog" not in report.script

    def test_no_primary_key_out_of_scope_ignored(
        self, catalog_reader: StaticMetadataReader
    ) -> None:
        report = generate(catalog_reader, GeneratorConfig(tables=["tbl_Order"]))
        assert NO_PRIMARY_KEY not in report.diagnostics.codes()

    def test_no_updatable_columns_warning(self, catalog_reader: StaticMetadataReader) -> None:
        report = generate(catalog_reader, GeneratorConfig(tables=["tbl_OrderTag"]))
        assert report.success is True
        assert "tbl_OrderTag" in report.emitted_tables
        warning = report.diagnostics.for_table("tbl_OrderTag")[0]
        assert warning.code == NO_UPDATABLE_COLUMNS
        assert warning.operation is Operation.UPDATE
        assert warning.location == "tbl_OrderTag.Update"

    def test_unsafe_identifier_warning(self) -> None:
        columns = [
            ColumnDescriptor(schema_name="dbo", table_name="Price List", column_name="Id",
                             data_type="int", ordinal_position=1),
            ColumnDescriptor(schema_name="dbo", table_name="Price List", column_name="Amount",
                             data_type="money", ordinal_position=2),
        ]
        reader = StaticMetadataReader(
            {"Price List": columns},
            {"Price List": PrimaryKeyDescriptor(
                columns=(KeyColumn(column_name="Id", data_type="int"),)
            )},
        )
        report = generate(reader, GeneratorConfig())
        assert report.emitted_tables == ["Price List"]
        assert UNSAFE_IDENTIFIER in report.diagnostics.codes()

        quoted = generate(reader, GeneratorConfig(quote_identifiers=True))
        assert UNSAFE_IDENTIFIER not in quoted.diagnostics.codes()
        assert "[Price List]" in quoted.script

    def test_colliding_parameter_names_skipped(self) -> None:
        columns = [
            ColumnDescriptor(schema_name="dbo", table_name="Price", column_name="Id",
                             data_type="int", ordinal_position=1),
            ColumnDescriptor(schema_name="dbo", table_name="Price", column_name="Unit Price",
                             data_type="money", ordinal_position=2),
            ColumnDescriptor(schema_name="dbo", table_name="Price", column_name="Unit_Price",
                             data_type="money", ordinal_position=3),
        ]
        tally_columns, tally_keys = _single_key_table("Tally")
        reader = StaticMetadataReader(
            {"Price": columns, **tally_columns},
            {"Price": _id_key(), **tally_keys},
        )
        report = generate(reader, GeneratorConfig(quote_identifiers=True))
        assert report.success is False
        assert report.skipped_tables == ["Price"]
        assert report.emitted_tables == ["Tally"]
        error = report.diagnostics.errors[0]
        assert (error.code, error.table) == (DUPLICATE_PARAMETER, "Price")
        assert "Unit Price, Unit_Price" in error.message
        assert "Price_Insert" not in report.script

    def test_parameter_names_compare_case_insensitively(self) -> None:
        columns = [
            ColumnDescriptor(schema_name="dbo", table_name="Item", column_name="Id",
                             data_type="int", ordinal_position=1),
            ColumnDescriptor(schema_name="dbo", table_name="Item", column_name="code",
                             data_type="int", ordinal_position=2),
            ColumnDescriptor(schema_name="dbo", table_name="Item", column_name="Code",
                             data_type="int", ordinal_position=3),
        ]
        reader = StaticMetadataReader({"Item": columns}, {"Item": _id_key()})
        report = generate(reader, GeneratorConfig(quote_identifiers=True))
        assert DUPLICATE_PARAMETER in report.diagnostics.codes()

    def test_key_named_like_paging_parameter_skipped(self) -> None:
        column = ColumnDescriptor(schema_name="dbo", table_name="Page", column_name="PageSize",
                                  data_type="int", ordinal_position=1)
        reader = StaticMetadataReader(
            {"Page": [column]},
            {"Page": PrimaryKeyDescriptor(
                columns=(KeyColumn(column_name="PageSize", data_type="int"),)
            )},
        )
        report = generate(reader, GeneratorConfig())
        assert report.skipped_tables == ["Page"]
        message = report.diagnostics.errors[0].message
        assert "@PageSize (key column PageSize in Select)" in message

    def test_non_key_column_named_like_select_parameter(self) -> None:
        columns = [
            ColumnDescriptor(schema_name="dbo", table_name="Note", column_name="Id",
                             data_type="int", ordinal_position=1),
            ColumnDescriptor(schema_name="dbo", table_name="Note", column_name="SearchTerm",
                             data_type="nvarchar", char_length=50, ordinal_position=2),
        ]
        reader = StaticMetadataReader({"Note": columns}, {"Note": _id_key()})
        report = generate(reader, GeneratorConfig(search_column="Summary"))
        assert report.emitted_tables == ["Note"]

    def test_metadata_unavailable_propagates(self) -> None:
        with pytest.raises(MetadataUnavailable):
            generate(BrokenReader(), GeneratorConfig())


# ===========================================================================
# Buffer mode
# ===========================================================================


class TestBufferMode:
    """One script, each procedure followed by the batch separator."""

    def test_script_layout(self, catalog_reader: StaticMetadataReader) -> None:
        report = generate(catalog_reader, GeneratorConfig(tables=["tbl_Order"]))
        assert report.output_mode is OutputMode.BUFFER
        assert report.script.count("\nGO\n") == 5
        assert report.script.endswith("END\nGO\n")
        assert "END\nGO\n\nCREATE PROCEDURE" in report.script

    def test_procedure_order(self, catalog_reader: StaticMetadataReader) -> None:
        report = generate(catalog_reader, GeneratorConfig())
        script = report.script
        positions: List[int] = []
        for table in ["tbl_Order", "tbl_OrderLine", "tbl_OrderTag"]:
            for op in ["Select", "SelectById", "Insert", "Update", "Delete"]:
                positions.append(script.index(f"CREATE PROCEDURE dbo.{table}_{op}\n"))
        assert positions == sorted(positions)
        assert report.procedures_submitted == 15

    def test_custom_batch_separator(self, catalog_reader: StaticMetadataReader) -> None:
        config = GeneratorConfig(tables=["tbl_Order"], batch_separator="-- batch")
        report = generate(catalog_reader, config)
        assert report.script.count("\n-- batch\n") == 5
        assert "\nGO\n" not in report.script

    def test_prefix_applied(self, catalog_reader: StaticMetadataReader) -> None:
        config = GeneratorConfig(tables=["tbl_Order"], exclude_prefix="tbl_")
        report = generate(catalog_reader, config)
        assert "CREATE PROCEDURE dbo.Order_Select\n" in report.script
        assert "FROM dbo.tbl_Order WITH(NOLOCK)" in report.script

    def test_summary(self, catalog_reader: StaticMetadataReader) -> None:
        report = generate(catalog_reader, GeneratorConfig())
        summary = report.summary()
        assert "FAILED" in summary
        assert "tbl_AuditLog" in summary
        assert NO_PRIMARY_KEY in summary


# ===========================================================================
# Execute mode
# ===========================================================================


class TestExecuteMode:
    """Each procedure is submitted to the sink as it is produced."""

    def test_recording_sink(
        self, catalog_reader: StaticMetadataReader, recording_sink: Any
    ) -> None:
        config = GeneratorConfig(
            tables=["tbl_Order", "tbl_OrderLine"], output_mode="execute"
        )
        report = generate(catalog_reader, config, sink=recording_sink)
        assert report.success is True
        assert report.script is None
        assert report.procedures_submitted == 10
        assert recording_sink.texts[0].startswith("CREATE PROCEDURE dbo.tbl_Order_Select\n")
        assert recording_sink.texts[-1].startswith("CREATE PROCEDURE dbo.tbl_OrderLine_Delete\n")
        assert all("\nGO" not in text for text in recording_sink.texts)

    def test_failure_stops_table_not_run(
        self, catalog_reader: StaticMetadataReader, failing_sink_factory: Callable
    ) -> None:
        sink = failing_sink_factory("dbo.tbl_Order_Insert\n")
        config = GeneratorConfig(
            tables=["tbl_Order", "tbl_OrderLine"], output_mode="execute"
        )
        report = generate(catalog_reader, config, sink=sink)
        assert report.success is False
        assert report.failed_tables == ["tbl_Order"]
        assert report.emitted_tables == ["tbl_OrderLine"]
        assert report.procedures_submitted == 7
        submitted = [text.split("\n", 1)[0] for text in sink.texts]
        assert submitted[:2] == [
            "CREATE PROCEDURE dbo.tbl_Order_Select",
            "CREATE PROCEDURE dbo.tbl_Order_SelectById",
        ]
        assert "CREATE PROCEDURE dbo.tbl_Order_Update" not in submitted
        error = report.diagnostics.errors[0]
        assert error.code == EXECUTION_ERROR
        assert error.table == "tbl_Order"
        assert error.operation is Operation.INSERT

    def test_execute_without_target_fails(self, catalog_reader: StaticMetadataReader) -> None:
        report = generate(catalog_reader, GeneratorConfig(output_mode="execute"))
        assert report.success is False
        assert report.tables_seen == 0
        assert INVALID_CONFIG in report.diagnostics.codes()

    def test_execute_against_sqlite_reports_failures(
        self, catalog_reader: StaticMetadataReader, sqlite_url: str
    ) -> None:
        config = GeneratorConfig(
            tables=["tbl_Order"], output_mode="execute", database_url=sqlite_url
        )
        report = generate(catalog_reader, config)
        assert report.failed_tables == ["tbl_Order"]
        assert report.procedures_submitted == 0
        assert report.diagnostics.errors[0].operation is Operation.SELECT

    def test_owned_sink_disposed_after_run(
        self,
        catalog_reader: StaticMetadataReader,
        sqlite_url: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        disposed: List[ExecutionSink] = []
        monkeypatch.setattr(ExecutionSink, "dispose", lambda self: disposed.append(self))
        config = GeneratorConfig(
            tables=["tbl_Order"], output_mode="execute", database_url=sqlite_url
        )
        generate(catalog_reader, config)
        assert len(disposed) == 1

    def test_owned_sink_disposed_when_catalog_fails(
        self,
        catalog_dict: Dict[str, Any],
        sqlite_url: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        disposed: List[ExecutionSink] = []
        monkeypatch.setattr(ExecutionSink, "dispose", lambda self: disposed.append(self))
        reader = LostConnectionReader.from_dict(catalog_dict)
        config = GeneratorConfig(
            tables=["tbl_Order"], output_mode="execute", database_url=sqlite_url
        )
        with pytest.raises(MetadataUnavailable):
            generate(reader, config)
        assert len(disposed) == 1


# ===========================================================================
# Config validation inside the run
# ===========================================================================


class TestRunValidation:
    """Invalid settings stop the run before any table is read."""

    def test_unsafe_schema_name(self, catalog_reader: StaticMetadataReader) -> None:
        report = generate(catalog_reader, GeneratorConfig(schema_name="my schema"))
        assert report.success is False
        assert report.script is None
        assert report.tables_seen == 0

    def test_quoted_schema_name_allowed(self, catalog_dict: Dict[str, Any]) -> None:
        for entry in catalog_dict["tables"]:
            entry["schema"] = "my schema"
        reader = StaticMetadataReader.from_dict(catalog_dict)
        config = GeneratorConfig(
            schema_name="my schema", quote_identifiers=True, tables=["tbl_Order"]
        )
        report = generate(reader, config)
        assert report.success is True
        assert "CREATE PROCEDURE [my schema].[tbl_Order_Select]" in report.script


# ===========================================================================
# Configuration files
# ===========================================================================


class TestConfigLoading:
    """load_config_file / parse_raw_config."""

    def test_yaml_nested_under_config(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "sprocgen.yaml"
        path.write_text(yaml.dump({"config": {"exclude_prefix": "tbl_", "default_page_size": 20}}))
        raw = load_config_file(path)
        assert raw == {"exclude_prefix": "tbl_", "default_page_size": 20}

    def test_json_top_level(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "sprocgen.json"
        path.write_text(json.dumps({"tables": ["A", "B"], "use_nolock": False}))
        config = parse_raw_config(load_config_file(path))
        assert config.tables == ("A", "B")
        assert config.use_nolock is False

    def test_empty_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config_file(path) == {}

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ConfigError):
            load_config_file(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("tables: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config_file(path)

    def test_non_mapping(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config_file(path)

    def test_overrides_win(self) -> None:
        raw: Dict[str, Any] = {"schema_name": "app", "default_page_size": 5}
        config = parse_raw_config(raw, {"default_page_size": 50, "exclude_prefix": None})
        assert config.schema_name == "app"
        assert config.default_page_size == 50
        assert config.exclude_prefix == ""

    def test_invalid_value(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            parse_raw_config({"default_page_size": 0})
        assert "default_page_size" in str(exc_info.value)

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            parse_raw_config({"page_size": 10})
        assert "page_size" in str(exc_info.value)

    def test_config_is_frozen(self) -> None:
        config = GeneratorConfig()
        with pytest.raises(Exception):
            config.schema_name = "other"  # type: ignore[misc]
