"""Public API for fixedrec.

High-level functions that return complete, structured results.
Callers should use these functions instead of wiring the kernel by hand.
"""

import logging
import os
from pathlib import Path
from time import perf_counter
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from fixedrec.codes import ValidationCode
from fixedrec.config import RunConfig
from fixedrec.kernel.aggregate import DEFAULT_GROUP_FIELD, RecordAggregator
from fixedrec.kernel.scanner import ScanReport, scan_file
from fixedrec.kernel.schema import (
    CodeLookupTable,
    SchemaLoadError,
    SchemaModel,
    load_code_table as _load_code_table_from_path,
    load_schema as _load_schema_from_path,
)
from fixedrec.sinks import GroupDocument, SinkReport, StorageSink

logger = logging.getLogger(__name__)

SchemaSource = Union[str, os.PathLike, Path, Sequence[Dict[str, Any]], SchemaModel]
CodeSource = Union[str, os.PathLike, Path, Sequence[Dict[str, Any]], CodeLookupTable]


def _is_path(source: Any) -> bool:
    return isinstance(source, (str, os.PathLike))


def load_schema(source: SchemaSource) -> SchemaModel:
    """Load a schema model from a JSON path or an already-parsed list of entries."""
    if isinstance(source, SchemaModel):
        return source
    if _is_path(source):
        return _load_schema_from_path(Path(source))
    return SchemaModel.from_entries(source)


def load_code_table(source: CodeSource) -> CodeLookupTable:
    """Load a code lookup table from a JSON path or an already-parsed list of entries."""
    if isinstance(source, CodeLookupTable):
        return source
    if _is_path(source):
        return _load_code_table_from_path(Path(source))
    return CodeLookupTable.from_entries(source)


class LineFailureModel(BaseModel):
    """A skipped line, as reported in a RunResult."""
    line_number: int
    code: str
    message: str
    field: Optional[str] = None


class RunResult(BaseModel):
    """Stable result model for one file-processing run."""
    total_lines: int
    decoded: int
    grouped: int
    dropped: int
    groups: int  # number of distinct identifiers handed to the sink
    failures: List[LineFailureModel] = Field(default_factory=list)
    sink: SinkReport
    timings_ms: Dict[str, float] = Field(default_factory=dict)  # phase -> elapsed


def decode_file(
    config: RunConfig,
    schema: Optional[SchemaModel] = None,
    codes: Optional[CodeLookupTable] = None,
) -> ScanReport:
    """Decode and group the configured input file.

    Schema and code table are loaded from the config paths unless supplied.
    Load errors propagate (SchemaLoadError); so do unreadable inputs (ScanError).
    """
    if schema is None:
        schema = load_schema(config.schema_path)
    if codes is None:
        codes = load_code_table(config.codes_path)
    return scan_file(
        config.input_path,
        schema,
        codes,
        group_field=config.group_field,
        encoding=config.encoding,
    )


def build_documents(report: ScanReport) -> List[GroupDocument]:
    """Shape a scan report's groups into sink documents, in first-seen order."""
    return [
        GroupDocument(identifier=identifier, messages=records)
        for identifier, records in report.groups.items()
    ]


def run(config: RunConfig, sink: StorageSink) -> RunResult:
    """
    Full pipeline: load, scan, hand the batch to the sink.

    Load, scan and sink errors are fatal and propagate to the caller.
    Per-line decode errors are reported in RunResult.failures.
    """
    timings: Dict[str, float] = {}

    start = perf_counter()
    schema = load_schema(config.schema_path)
    codes = load_code_table(config.codes_path)
    timings["load"] = (perf_counter() - start) * 1000.0

    report = decode_file(config, schema=schema, codes=codes)
    timings["parse"] = report.elapsed_ms

    documents = build_documents(report)
    start = perf_counter()
    sink_report = sink.write_batch(documents)
    timings["write"] = (perf_counter() - start) * 1000.0
    logger.info("Bulk write took %.1f ms", timings["write"])
    logger.info(
        "insert: %d, updated: %d, deleted: %d",
        sink_report.inserted,
        sink_report.modified,
        sink_report.deleted,
    )

    return RunResult(
        total_lines=report.total_lines,
        decoded=report.decoded,
        grouped=report.grouped,
        dropped=report.dropped,
        groups=len(documents),
        failures=[
            LineFailureModel(
                line_number=f.line_number,
                code=f.code.value,
                message=f.message,
                field=f.field_name,
            )
            for f in report.failures
        ],
        sink=sink_report,
        timings_ms=timings,
    )


class ValidationIssue(BaseModel):
    """A single validation issue (error or warning)."""
    code: str
    message: str
    layout: Optional[str] = None  # record-type key the issue belongs to
    field: Optional[str] = None
    code_token: Optional[str] = None


class ValidationResult(BaseModel):
    """Result of a schema preflight check."""
    ok: bool  # True if no errors (warnings don't block)
    errors: List[ValidationIssue]
    warnings: List[ValidationIssue]


def validate_schema(
    schema: SchemaSource,
    codes: Optional[CodeSource] = None,
) -> ValidationResult:
    """
    Preflight check of a schema (and optionally a code table).

    Loading problems are errors. Declared lengths that disagree with the
    extracted width, repeated field names within a layout, layouts no code
    can reach and codes whose message has no layout are warnings: decoding
    still works, but the configuration is probably not what was intended.

    This is READ-ONLY - no side effects, no file writes.
    """
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []

    try:
        schema_obj = load_schema(schema)
    except SchemaLoadError as e:
        errors.append(ValidationIssue(
            code=ValidationCode.SCHEMA_LOAD_ERROR.value,
            message=f"Failed to load schema: {e}",
        ))
        return ValidationResult(ok=False, errors=errors, warnings=warnings)

    codes_obj: Optional[CodeLookupTable] = None
    if codes is not None:
        try:
            codes_obj = load_code_table(codes)
        except SchemaLoadError as e:
            errors.append(ValidationIssue(
                code=ValidationCode.CODE_TABLE_LOAD_ERROR.value,
                message=f"Failed to load code table: {e}",
            ))

    for key, fields in schema_obj.items():
        seen = set()
        for descriptor in fields:
            if descriptor.length != descriptor.width:
                warnings.append(ValidationIssue(
                    code=ValidationCode.LENGTH_MISMATCH.value,
                    message=(
                        f"Field '{descriptor.name}' declares len={descriptor.length} but "
                        f"{descriptor.start}-{descriptor.end} extracts {descriptor.width} characters"
                    ),
                    layout=key,
                    field=descriptor.name,
                ))
            if descriptor.name in seen:
                warnings.append(ValidationIssue(
                    code=ValidationCode.DUPLICATE_FIELD_NAME.value,
                    message=f"Field '{descriptor.name}' appears more than once; the last one wins",
                    layout=key,
                    field=descriptor.name,
                ))
            seen.add(descriptor.name)

    if codes_obj is not None:
        messages = codes_obj.messages()
        # A layout key is message + one level character; an empty message is
        # what unknown codes resolve to
        for key in schema_obj.keys():
            if key[:-1] and key[:-1] not in messages:
                warnings.append(ValidationIssue(
                    code=ValidationCode.UNREACHABLE_LAYOUT.value,
                    message=f"No code maps to message '{key[:-1]}', layout '{key}' is never used",
                    layout=key,
                ))
        layout_messages = {key[:-1] for key in schema_obj.keys()}
        for code_token, message in codes_obj.items():
            if message not in layout_messages:
                warnings.append(ValidationIssue(
                    code=ValidationCode.CODE_WITHOUT_LAYOUT.value,
                    message=f"Code '{code_token}' maps to '{message}', which has no layout for any level",
                    code_token=code_token,
                ))

    def sort_key(issue: ValidationIssue) -> tuple:
        return (
            issue.code,
            issue.layout or "",
            issue.field or "",
            issue.code_token or "",
        )

    return ValidationResult(
        ok=len(errors) == 0,
        errors=sorted(errors, key=sort_key),
        warnings=sorted(warnings, key=sort_key),
    )


def aggregate_records(records, group_field: str = DEFAULT_GROUP_FIELD) -> Dict[str, List[Dict[str, str]]]:
    """Group already-decoded records without going through a file."""
    aggregator = RecordAggregator(group_field=group_field)
    for record in records:
        aggregator.add(record)
    return aggregator.groups()
