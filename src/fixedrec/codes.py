"""Error and warning code constants for fixedrec.

These constants prevent stringly-typed error codes and ensure
client code matches on the correct failure categories.
"""

from enum import Enum


class LoadErrorCode(str, Enum):
    """Fatal schema / code table load failures."""

    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_UNREADABLE = "FILE_UNREADABLE"
    INVALID_JSON = "INVALID_JSON"
    INVALID_STRUCTURE = "INVALID_STRUCTURE"
    INVALID_FIELD_RANGE = "INVALID_FIELD_RANGE"


class DecodeErrorCode(str, Enum):
    """Per-line decode failures (recovered, never fatal)."""

    LINE_TOO_SHORT_FOR_CODE = "LINE_TOO_SHORT_FOR_CODE"
    LINE_TOO_SHORT_FOR_LEVEL = "LINE_TOO_SHORT_FOR_LEVEL"
    FIELD_OUT_OF_RANGE = "FIELD_OUT_OF_RANGE"


class ValidationCode(str, Enum):
    """Preflight codes reported by fixedrec.api.validate_schema()."""

    # Errors (blocking)
    SCHEMA_LOAD_ERROR = "SCHEMA_LOAD_ERROR"
    CODE_TABLE_LOAD_ERROR = "CODE_TABLE_LOAD_ERROR"

    # Warnings (non-blocking)
    LENGTH_MISMATCH = "LENGTH_MISMATCH"
    DUPLICATE_FIELD_NAME = "DUPLICATE_FIELD_NAME"
    UNREACHABLE_LAYOUT = "UNREACHABLE_LAYOUT"
    CODE_WITHOUT_LAYOUT = "CODE_WITHOUT_LAYOUT"
