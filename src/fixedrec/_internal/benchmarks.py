"""Performance sentinel budgets (gated perf tests)."""

from __future__ import annotations

import os
from time import perf_counter
from typing import List, Tuple

from fixedrec.kernel.aggregate import RecordAggregator
from fixedrec.kernel.scanner import ScanReport, scan_lines
from fixedrec.kernel.schema import CodeLookupTable, SchemaModel


def _budget_from_env(var_name: str, default_ms: float) -> float:
    raw = os.getenv(var_name)
    if not raw:
        return default_ms
    try:
        return float(raw)
    except ValueError:
        return default_ms


MAX_SCAN_100K_LINES_MS = _budget_from_env("FIXEDREC_MAX_SCAN_100K_LINES_MS", 3000.0)
MAX_SCAN_WIDE_LAYOUT_MS = _budget_from_env("FIXEDREC_MAX_SCAN_WIDE_LAYOUT_MS", 3000.0)


def synthetic_input(
    line_count: int,
    field_count: int = 2,
    identifiers: int = 1000,
) -> Tuple[SchemaModel, CodeLookupTable, List[str]]:
    """Build a schema, code table and lines for one TRADEA layout.

    isin sits at 50-61; the remaining fields are 9 characters each from 62 on.
    """
    entries = [{"message": "TRADEA", "name": "isin", "len": 12, "start": 50, "end": 61}]
    for i in range(1, field_count):
        start = 62 + (i - 1) * 9
        entries.append({"message": "TRADEA", "name": f"f{i}", "len": 9, "start": start, "end": start + 8})
    schema = SchemaModel.from_entries(entries)
    codes = CodeLookupTable.from_entries([{"message": "TRADE", "code": "1234"}])

    width = max(e["end"] for e in entries)
    body = "9" * (width - 61)
    lines = [
        f"HDR{n:012d}1234A{' ' * 29}XX{n % identifiers:010d}{body}"
        for n in range(line_count)
    ]
    return schema, codes, lines


def time_scan(schema: SchemaModel, codes: CodeLookupTable, lines: List[str]) -> Tuple[float, ScanReport]:
    start = perf_counter()
    report = scan_lines(lines, schema, codes, RecordAggregator())
    return (perf_counter() - start) * 1000.0, report
