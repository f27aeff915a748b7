"""Run configuration: explicit paths, built from arguments and environment."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from fixedrec.kernel.aggregate import DEFAULT_GROUP_FIELD
from fixedrec.kernel.scanner import DEFAULT_ENCODING

ENV_PREFIX = "FIXEDREC_"

_ENV_FIELDS = {
    "schema_path": "SCHEMA_PATH",
    "codes_path": "CODES_PATH",
    "input_path": "INPUT_PATH",
    "output_path": "OUTPUT_PATH",
    "group_field": "GROUP_FIELD",
    "encoding": "ENCODING",
}


class RunConfig(BaseModel):
    """Everything one file-processing run needs to know."""
    schema_path: Path
    codes_path: Path
    input_path: Path
    output_path: Optional[Path] = None
    group_field: str = DEFAULT_GROUP_FIELD
    encoding: str = DEFAULT_ENCODING

    model_config = ConfigDict(frozen=True, extra="forbid")


def load_config(**overrides: Any) -> RunConfig:
    """Build RunConfig from FIXEDREC_* environment variables; non-None overrides win."""
    values: Dict[str, Any] = {}
    for field_name, env_suffix in _ENV_FIELDS.items():
        env_value = os.environ.get(ENV_PREFIX + env_suffix)
        if env_value:
            values[field_name] = env_value
    values.update({k: v for k, v in overrides.items() if v is not None})
    return RunConfig(**values)
