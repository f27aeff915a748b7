"""fixedrec: schema-driven fixed-width record decoding and grouping."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("fixedrec")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from fixedrec.api import run, decode_file, validate_schema, RunResult, ValidationResult
from fixedrec.codes import DecodeErrorCode, LoadErrorCode, ValidationCode
from fixedrec.config import RunConfig, load_config

__all__ = [
    "__version__",
    "run",
    "decode_file",
    "validate_schema",
    "RunResult",
    "ValidationResult",
    "RunConfig",
    "load_config",
    "DecodeErrorCode",
    "LoadErrorCode",
    "ValidationCode",
]
