"""Tests for the high-level pipeline in fixedrec.api."""

import json

import pytest

from fixedrec.api import RunResult, build_documents, decode_file, load_code_table, load_schema, run
from fixedrec.codes import LoadErrorCode
from fixedrec.config import RunConfig
from fixedrec.kernel.scanner import ScanError
from fixedrec.kernel.schema import CodeLookupTable, SchemaLoadError, SchemaModel
from fixedrec.sinks import JsonLinesSink, MemorySink, SinkError, SinkReport


class FailingSink:
    """Sink that always refuses the batch."""

    def write_batch(self, documents):
        raise SinkError("connection refused", report=SinkReport(inserted=1))


@pytest.fixture
def config(config_files, write_input, make_line, tmp_path):
    schema_path, codes_path = config_files
    input_path = write_input([
        make_line("1234", "A", {50: "US0378331005", 62: "000123.45"}),
        make_line("5678", "B", {50: "GB0002634946", 62: "000010.00", 71: "000010.50"}),
        "short line",
        make_line("9999", "A", {50: "XX0000000000"}),
        make_line("1234", "A", {50: "US0378331005", 62: "000124.00"}),
    ])
    return RunConfig(schema_path=schema_path, codes_path=codes_path, input_path=input_path)


def test_load_schema_accepts_path_list_or_model(config_files, schema_entries):
    schema_path, _ = config_files
    from_path = load_schema(schema_path)
    from_str = load_schema(str(schema_path))
    from_list = load_schema(schema_entries)

    assert from_path.keys() == from_str.keys() == from_list.keys()
    assert load_schema(from_list) is from_list


def test_load_code_table_accepts_path_or_list(config_files, code_entries):
    _, codes_path = config_files
    assert load_code_table(codes_path).resolve("1234") == "TRADE"
    assert load_code_table(code_entries).resolve("5678") == "QUOTE"
    assert isinstance(load_code_table(code_entries), CodeLookupTable)


def test_trade_scenario_lands_under_extracted_isin(config):
    report = decode_file(config)

    trade_records = report.groups["US0378331005"]
    assert trade_records[0] == {"isin": "US0378331005", "price": "000123.45"}
    assert trade_records[1]["price"] == "000124.00"


def test_run_hands_grouped_batch_to_sink(config):
    sink = MemorySink()
    result = run(config, sink)

    assert isinstance(result, RunResult)
    assert result.total_lines == 5
    assert result.decoded == 4
    assert result.grouped == 3
    assert result.dropped == 1
    assert result.groups == 2
    assert result.sink.inserted == 2
    assert [d.identifier for d in sink.documents] == ["US0378331005", "GB0002634946"]
    assert sink.documents[1].messages == [
        {"isin": "GB0002634946", "bid": "000010.00", "ask": "000010.50"}
    ]


def test_run_reports_decode_failures(config):
    result = run(config, MemorySink())

    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.line_number == 3
    assert failure.code == "LINE_TOO_SHORT_FOR_CODE"


def test_run_records_phase_timings(config):
    result = run(config, MemorySink())
    assert set(result.timings_ms) == {"load", "parse", "write"}
    assert all(v >= 0 for v in result.timings_ms.values())


def test_run_is_deterministic(config, tmp_path):
    out_a = tmp_path / "a.jsonl"
    out_b = tmp_path / "b.jsonl"
    run(config, JsonLinesSink(out_a))
    run(config, JsonLinesSink(out_b))

    assert out_a.read_bytes() == out_b.read_bytes()
    first = json.loads(out_a.read_text(encoding="utf-8").splitlines()[0])
    assert first["identifier"] == "US0378331005"


def test_schema_load_error_is_fatal(config, tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("[{\"message\": \"TRADEA\"}]", encoding="utf-8")
    sink = MemorySink()

    with pytest.raises(SchemaLoadError) as excinfo:
        run(config.model_copy(update={"schema_path": broken}), sink)
    assert excinfo.value.code == LoadErrorCode.INVALID_STRUCTURE
    assert sink.batches == 0


def test_missing_code_table_is_fatal(config, tmp_path):
    with pytest.raises(SchemaLoadError) as excinfo:
        run(config.model_copy(update={"codes_path": tmp_path / "absent.json"}), MemorySink())
    assert excinfo.value.code == LoadErrorCode.FILE_NOT_FOUND


def test_unreadable_input_is_fatal(config, tmp_path):
    sink = MemorySink()
    with pytest.raises(ScanError):
        run(config.model_copy(update={"input_path": tmp_path / "absent.txt"}), sink)
    assert sink.batches == 0


def test_sink_error_propagates_with_partial_report(config):
    with pytest.raises(SinkError) as excinfo:
        run(config, FailingSink())
    assert excinfo.value.report.inserted == 1


def test_build_documents_preserves_group_order(config):
    report = decode_file(
        config,
        schema=SchemaModel.from_entries(json.loads(config.schema_path.read_text(encoding="utf-8"))),
    )
    documents = build_documents(report)
    assert [d.identifier for d in documents] == list(report.groups.keys())
    assert documents[0].messages == report.groups["US0378331005"]
