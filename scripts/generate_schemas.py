"""Generate JSON schemas for the configuration and output documents."""

import json
import sys
from pathlib import Path
from typing import List

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pydantic import TypeAdapter

from fixedrec.kernel.schema import CodeEntry, SchemaEntry
from fixedrec.sinks import GroupDocument


def _write(schemas_dir: Path, filename: str, schema: dict) -> None:
    path = schemas_dir / filename
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    print(f"Generated: {path}")


def generate_schemas():
    """Generate JSON schemas for the schema source, code source and sink documents."""
    schemas_dir = Path(__file__).parent.parent / "schemas"
    schemas_dir.mkdir(exist_ok=True)

    _write(schemas_dir, "schema_source.schema.json", TypeAdapter(List[SchemaEntry]).json_schema())
    _write(schemas_dir, "code_source.schema.json", TypeAdapter(List[CodeEntry]).json_schema())
    _write(schemas_dir, "group_document.schema.json", GroupDocument.model_json_schema())

    print("\nSchema generation complete!")


if __name__ == "__main__":
    generate_schemas()
