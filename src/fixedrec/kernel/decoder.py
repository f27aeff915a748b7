"""Line decoder: slices one fixed-width line into named fields.

Per-line layout resolution:
- the code token sits at 0-based [15:19] (bytes 16-19)
- the level tag sits at 0-based [19] (byte 20)
- record-type key = code_table[code] + level (unresolved code -> "" + level)
- each field descriptor extracts line[start-1:end]; later fields with the
  same name overwrite earlier ones

Python slices never fail on overrun, so every range is checked against the
line length first and an overrun raises LineDecodeError instead of silently
truncating. try_decode_line() wraps that into a DecodeOutcome so callers can
keep going after a bad line.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from fixedrec.codes import DecodeErrorCode
from .schema import CodeLookupTable, RecordTypeKey, SchemaModel

CODE_START = 15
CODE_END = 19
LEVEL_INDEX = 19

DecodedRecord = Dict[str, str]


class LineDecodeError(Exception):
    """Raised when one line cannot be decoded. Recoverable per line."""

    def __init__(
        self,
        code: DecodeErrorCode,
        message: str,
        field: Optional[str] = None,
        required_length: Optional[int] = None,
        actual_length: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.field = field
        self.required_length = required_length
        self.actual_length = actual_length
        super().__init__(f"[{code.value}] {message}")


@dataclass(frozen=True)
class DecodeOutcome:
    """Result of decoding one line: either a record or an error, never both."""

    line_number: int
    record: Optional[DecodedRecord] = None
    error: Optional[LineDecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_record_type(line: str, codes: CodeLookupTable) -> RecordTypeKey:
    """Return the record-type key for a line (message identifier + level tag)."""
    if len(line) < CODE_END:
        raise LineDecodeError(
            DecodeErrorCode.LINE_TOO_SHORT_FOR_CODE,
            f"Line has {len(line)} characters, code token needs {CODE_END}",
            required_length=CODE_END,
            actual_length=len(line),
        )
    code = line[CODE_START:CODE_END]
    message = codes.resolve(code) or ""

    if len(line) <= LEVEL_INDEX:
        raise LineDecodeError(
            DecodeErrorCode.LINE_TOO_SHORT_FOR_LEVEL,
            f"Line has {len(line)} characters, level tag needs {LEVEL_INDEX + 1}",
            required_length=LEVEL_INDEX + 1,
            actual_length=len(line),
        )
    level = line[LEVEL_INDEX]
    return message + level


def decode_line(line: str, schema: SchemaModel, codes: CodeLookupTable) -> DecodedRecord:
    """Decode one line into a field-name -> value mapping.

    Returns an empty dict when the code or the record type is unknown.
    Raises LineDecodeError when the line is too short for a required range.
    """
    key = resolve_record_type(line, codes)

    record: DecodedRecord = {}
    for descriptor in schema.lookup(key):
        if descriptor.end > len(line):
            raise LineDecodeError(
                DecodeErrorCode.FIELD_OUT_OF_RANGE,
                f"Field '{descriptor.name}' of {key!r} ends at {descriptor.end}, "
                f"line has {len(line)} characters",
                field=descriptor.name,
                required_length=descriptor.end,
                actual_length=len(line),
            )
        record[descriptor.name] = line[descriptor.start - 1:descriptor.end]
    return record


def try_decode_line(
    line: str,
    schema: SchemaModel,
    codes: CodeLookupTable,
    line_number: int = 0,
) -> DecodeOutcome:
    """Decode one line without raising for per-line faults."""
    try:
        record = decode_line(line, schema, codes)
    except LineDecodeError as e:
        return DecodeOutcome(line_number=line_number, error=e)
    return DecodeOutcome(line_number=line_number, record=record)
