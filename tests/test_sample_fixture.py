"""End-to-end run over fixtures/sample."""

from pathlib import Path

import pytest

from fixedrec.api import run, validate_schema
from fixedrec.codes import DecodeErrorCode, ValidationCode
from fixedrec.config import RunConfig
from fixedrec.sinks import MemorySink

HERE = Path(__file__).resolve().parent
SAMPLE = HERE.parent / "fixtures" / "sample"


@pytest.fixture
def sample_config():
    if not SAMPLE.exists():
        pytest.skip("fixtures/sample not available (installed-package mode)")
    return RunConfig(
        schema_path=SAMPLE / "schema.json",
        codes_path=SAMPLE / "messages.json",
        input_path=SAMPLE / "data.txt",
    )


def test_sample_run(sample_config):
    sink = MemorySink()
    result = run(sample_config, sink)

    assert result.total_lines == 7
    assert result.decoded == 5
    assert result.grouped == 4
    assert result.dropped == 1  # HEARTBEAT has no layout
    assert [(f.line_number, f.code) for f in result.failures] == [
        (5, DecodeErrorCode.LINE_TOO_SHORT_FOR_CODE.value),
        (6, DecodeErrorCode.FIELD_OUT_OF_RANGE.value),
    ]
    assert result.failures[1].field == "bid"

    by_id = {d.identifier: d.messages for d in sink.documents}
    assert list(by_id) == ["US0378331005", "GB0002634946"]
    assert by_id["US0378331005"] == [
        {"isin": "US0378331005", "price": "000123.45", "quantity": "00000100"},
        {"isin": "US0378331005", "price": "000124.00", "quantity": "00000050"},
    ]
    assert by_id["GB0002634946"] == [
        {"isin": "GB0002634946", "bid": "000010.00", "ask": "000010.50"},
        {"isin": "GB0002634946", "price": "000099.99", "quantity": "00000010"},
    ]


def test_sample_schema_preflight(sample_config):
    result = validate_schema(sample_config.schema_path, sample_config.codes_path)

    assert result.ok is True
    assert [(w.code, w.code_token) for w in result.warnings] == [
        (ValidationCode.CODE_WITHOUT_LAYOUT.value, "0000"),
    ]
