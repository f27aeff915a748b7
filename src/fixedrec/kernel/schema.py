"""Schema model and code lookup table, loaded once per run and read-only after."""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from fixedrec.codes import LoadErrorCode

logger = logging.getLogger(__name__)

RecordTypeKey = str


class SchemaLoadError(Exception):
    """Raised when a schema or code table cannot be loaded. Always fatal."""

    def __init__(self, code: LoadErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code.value}] {message}")


class FieldDescriptor(BaseModel):
    """One named byte-range extraction rule (1-based, inclusive on both ends)."""

    name: str
    start: int
    end: int
    length: int  # declared width, informational only

    model_config = ConfigDict(frozen=True, strict=True)

    @model_validator(mode="after")
    def validate_range(self):
        if self.start < 1:
            raise ValueError(f"Field '{self.name}': start must be >= 1, got {self.start}")
        if self.end < self.start:
            raise ValueError(
                f"Field '{self.name}': end ({self.end}) must be >= start ({self.start})"
            )
        return self

    @property
    def width(self) -> int:
        """Number of characters the field actually extracts."""
        return self.end - self.start + 1


class SchemaEntry(BaseModel):
    """Raw schema source entry: {message, name, len, start, end}."""

    message: str
    level: str = Field("", max_length=1)
    name: str
    length: int = Field(..., alias="len")
    start: int
    end: int

    model_config = ConfigDict(extra="ignore", populate_by_name=True, strict=True)

    @property
    def key(self) -> RecordTypeKey:
        return self.message + self.level

    def to_descriptor(self) -> FieldDescriptor:
        return FieldDescriptor(name=self.name, start=self.start, end=self.end, length=self.length)


class CodeEntry(BaseModel):
    """Raw code-to-message source entry: {message, code}."""

    message: str
    code: str

    model_config = ConfigDict(extra="ignore", strict=True)


def _parse_json_array(data: Union[bytes, str], what: str) -> List[Any]:
    try:
        parsed = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SchemaLoadError(LoadErrorCode.INVALID_JSON, f"{what} is not valid JSON: {e}")
    if not isinstance(parsed, list):
        raise SchemaLoadError(
            LoadErrorCode.INVALID_STRUCTURE,
            f"{what} must be a JSON array of entries, got {type(parsed).__name__}",
        )
    return parsed


def _read_bytes(path: Union[str, Path], what: str) -> bytes:
    path = Path(path)
    try:
        return path.read_bytes()
    except FileNotFoundError:
        raise SchemaLoadError(LoadErrorCode.FILE_NOT_FOUND, f"{what} not found: {path}")
    except OSError as e:
        raise SchemaLoadError(LoadErrorCode.FILE_UNREADABLE, f"{what} unreadable: {path}: {e}")


class SchemaModel:
    """Mapping from record-type key to its ordered field descriptors.

    Unknown keys are an explicit outcome: lookup() returns an empty tuple.
    """

    def __init__(self, layouts: Dict[RecordTypeKey, Tuple[FieldDescriptor, ...]]):
        self._layouts = MappingProxyType(dict(layouts))

    @classmethod
    def from_entries(cls, entries: Iterable[Union[SchemaEntry, Dict[str, Any]]]) -> "SchemaModel":
        """Group entries by message + level, keeping entry order per key."""
        grouped: Dict[RecordTypeKey, List[FieldDescriptor]] = {}
        for index, raw in enumerate(entries):
            try:
                entry = raw if isinstance(raw, SchemaEntry) else SchemaEntry.model_validate(raw)
            except ValidationError as e:
                raise SchemaLoadError(
                    LoadErrorCode.INVALID_STRUCTURE, f"Schema entry {index} is malformed: {e}"
                )
            try:
                descriptor = entry.to_descriptor()
            except ValidationError as e:
                raise SchemaLoadError(
                    LoadErrorCode.INVALID_FIELD_RANGE, f"Schema entry {index} has an invalid range: {e}"
                )
            grouped.setdefault(entry.key, []).append(descriptor)
        return cls({key: tuple(fields) for key, fields in grouped.items()})

    @classmethod
    def from_json_bytes(cls, data: Union[bytes, str]) -> "SchemaModel":
        return cls.from_entries(_parse_json_array(data, "Schema"))

    def lookup(self, key: RecordTypeKey) -> Tuple[FieldDescriptor, ...]:
        return self._layouts.get(key, ())

    def max_end(self, key: RecordTypeKey) -> int:
        """Minimum line length needed to decode every field of a layout (0 if unknown)."""
        return max((f.end for f in self.lookup(key)), default=0)

    def keys(self) -> List[RecordTypeKey]:
        return list(self._layouts.keys())

    def items(self) -> Iterator[Tuple[RecordTypeKey, Tuple[FieldDescriptor, ...]]]:
        return iter(self._layouts.items())

    def __contains__(self, key: object) -> bool:
        return key in self._layouts

    def __len__(self) -> int:
        return len(self._layouts)

    def __repr__(self) -> str:
        return f"SchemaModel(layouts={len(self._layouts)})"


class CodeLookupTable:
    """Mapping from the 4-character code token to a canonical message identifier."""

    def __init__(self, mapping: Dict[str, str]):
        self._mapping = MappingProxyType(dict(mapping))

    @classmethod
    def from_entries(cls, entries: Iterable[Union[CodeEntry, Dict[str, Any]]]) -> "CodeLookupTable":
        """Build the table; a repeated code overwrites the earlier message."""
        mapping: Dict[str, str] = {}
        for index, raw in enumerate(entries):
            try:
                entry = raw if isinstance(raw, CodeEntry) else CodeEntry.model_validate(raw)
            except ValidationError as e:
                raise SchemaLoadError(
                    LoadErrorCode.INVALID_STRUCTURE, f"Code entry {index} is malformed: {e}"
                )
            mapping[entry.code] = entry.message
        return cls(mapping)

    @classmethod
    def from_json_bytes(cls, data: Union[bytes, str]) -> "CodeLookupTable":
        return cls.from_entries(_parse_json_array(data, "Code table"))

    def resolve(self, code: str) -> Optional[str]:
        return self._mapping.get(code)

    def messages(self) -> set[str]:
        return set(self._mapping.values())

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._mapping.items())

    def __contains__(self, code: object) -> bool:
        return code in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:
        return f"CodeLookupTable(codes={len(self._mapping)})"


def load_schema(path: Union[str, Path]) -> SchemaModel:
    """Load a schema model from a JSON file path."""
    schema = SchemaModel.from_json_bytes(_read_bytes(path, "Schema file"))
    logger.info("Schema loaded: %d layouts from %s", len(schema), path)
    return schema


def load_code_table(path: Union[str, Path]) -> CodeLookupTable:
    """Load a code lookup table from a JSON file path."""
    codes = CodeLookupTable.from_json_bytes(_read_bytes(path, "Code table file"))
    logger.info("Code to message table loaded: %d codes from %s", len(codes), path)
    return codes
