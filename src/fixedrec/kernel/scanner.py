"""File scanner: reads lines in order, decodes each one, aggregates the results."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from time import perf_counter
from typing import Iterable, List, Optional, Union

from fixedrec.codes import DecodeErrorCode
from .aggregate import DEFAULT_GROUP_FIELD, AggregateResult, RecordAggregator
from .decoder import try_decode_line
from .schema import CodeLookupTable, SchemaModel

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "latin-1"  # one character per byte, so string offsets == byte offsets


class ScanError(Exception):
    """Raised when the input file itself cannot be read. Always fatal."""
    pass


@dataclass(frozen=True)
class LineFailure:
    """A line that could not be decoded, kept for reporting."""
    line_number: int
    code: DecodeErrorCode
    message: str
    field_name: Optional[str] = None


@dataclass
class ScanReport:
    """Outcome of scanning one input."""
    total_lines: int = 0
    decoded: int = 0
    grouped: int = 0
    dropped: int = 0
    failures: List[LineFailure] = field(default_factory=list)
    groups: AggregateResult = field(default_factory=dict)
    elapsed_ms: float = 0.0

    @property
    def failure_count(self) -> int:
        return len(self.failures)


def _strip_terminator(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def scan_lines(
    lines: Iterable[str],
    schema: SchemaModel,
    codes: CodeLookupTable,
    aggregator: RecordAggregator,
) -> ScanReport:
    """Decode and aggregate lines one at a time, in order.

    Decode failures are collected and logged; they never stop the scan.
    """
    report = ScanReport()
    start = perf_counter()

    for line_number, raw_line in enumerate(lines, start=1):
        report.total_lines += 1
        outcome = try_decode_line(_strip_terminator(raw_line), schema, codes, line_number)

        if not outcome.ok:
            error = outcome.error
            logger.warning("Line %d skipped: %s", line_number, error)
            report.failures.append(LineFailure(
                line_number=line_number,
                code=error.code,
                message=error.message,
                field_name=error.field,
            ))
            continue

        report.decoded += 1
        if aggregator.add(outcome.record):
            report.grouped += 1
        else:
            report.dropped += 1

    report.groups = aggregator.groups()
    report.elapsed_ms = (perf_counter() - start) * 1000.0
    return report


def scan_file(
    path: Union[str, Path],
    schema: SchemaModel,
    codes: CodeLookupTable,
    group_field: str = DEFAULT_GROUP_FIELD,
    encoding: str = DEFAULT_ENCODING,
) -> ScanReport:
    """Scan a newline-delimited fixed-width file.

    Raises ScanError if the file cannot be opened or read to the end.
    """
    path = Path(path)
    aggregator = RecordAggregator(group_field=group_field)
    try:
        with open(path, "r", encoding=encoding, newline="\n") as f:
            report = scan_lines(f, schema, codes, aggregator)
    except LookupError as e:
        raise ScanError(f"Cannot read input file {path}: unknown encoding {encoding!r}: {e}")
    except (OSError, UnicodeDecodeError) as e:
        raise ScanError(f"Cannot read input file {path}: {e}")

    logger.info(
        "File parsing took %.1f ms (%d lines, %d grouped, %d dropped, %d failed)",
        report.elapsed_ms,
        report.total_lines,
        report.grouped,
        report.dropped,
        report.failure_count,
    )
    return report
