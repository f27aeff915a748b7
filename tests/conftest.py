"""Pytest configuration for tests.

No sys.path hacks - tests should import from installed fixedrec package.
"""

import json
import pytest
from pathlib import Path


def pytest_addoption(parser):
    """Add gated perf test option."""
    parser.addoption(
        "--run-perf",
        action="store_true",
        default=False,
        help="Run performance sentinel benchmarks (gated)."
    )


def pytest_collection_modifyitems(config, items):
    """Skip perf-marked tests unless --run-perf is set."""
    if config.getoption("--run-perf"):
        return
    skip_perf = pytest.mark.skip(reason="perf tests gated; pass --run-perf")
    for item in items:
        if "perf" in item.keywords:
            item.add_marker(skip_perf)


# Two layouts sharing the grouping field at 50-61
SCHEMA_ENTRIES = [
    {"message": "TRADEA", "name": "isin", "len": 12, "start": 50, "end": 61},
    {"message": "TRADEA", "name": "price", "len": 9, "start": 62, "end": 70},
    {"message": "QUOTEB", "name": "isin", "len": 12, "start": 50, "end": 61},
    {"message": "QUOTEB", "name": "bid", "len": 9, "start": 62, "end": 70},
    {"message": "QUOTEB", "name": "ask", "len": 9, "start": 71, "end": 79},
]

CODE_ENTRIES = [
    {"message": "TRADE", "code": "1234"},
    {"message": "QUOTE", "code": "5678"},
]


def build_line(code="1234", level="A", fields=None, width=80):
    """Build one fixed-width line: header at 1-15, code at 16-19, level at 20.

    fields maps a 1-based start position to the text written there.
    """
    buf = [" "] * width

    def put(start, text):
        for i, ch in enumerate(text):
            buf[start - 1 + i] = ch

    put(1, "HDR000000000001")
    put(16, code)
    put(20, level)
    for start, text in (fields or {}).items():
        put(start, text)
    return "".join(buf)


@pytest.fixture
def make_line():
    return build_line


@pytest.fixture
def schema_entries():
    return [dict(e) for e in SCHEMA_ENTRIES]


@pytest.fixture
def code_entries():
    return [dict(e) for e in CODE_ENTRIES]


@pytest.fixture
def config_files(tmp_path, schema_entries, code_entries):
    """Write schema.json and messages.json and return their paths."""
    schema_path = tmp_path / "schema.json"
    codes_path = tmp_path / "messages.json"
    schema_path.write_text(json.dumps(schema_entries, indent=2), encoding="utf-8")
    codes_path.write_text(json.dumps(code_entries, indent=2), encoding="utf-8")
    return schema_path, codes_path


@pytest.fixture
def write_input(tmp_path):
    """Write lines to data.txt (newline-terminated) and return the path."""
    def _write(lines, name="data.txt"):
        path = Path(tmp_path) / name
        path.write_text("".join(line + "\n" for line in lines), encoding="latin-1")
        return path
    return _write
