"""Storage sinks: accept one batch of grouped documents per run.

A sink only has to honour write_batch(); it reports how many documents it
inserted, modified and deleted, or raises SinkError. The pipeline never
retries and never inspects partial failures beyond passing them on.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Union

from pydantic import BaseModel, Field

from fixedrec._internal.canonical_json import canonical_dumps

logger = logging.getLogger(__name__)


class GroupDocument(BaseModel):
    """One stored document: a grouping identifier and its records in file order."""
    identifier: str
    messages: List[Dict[str, str]] = Field(default_factory=list)


class SinkReport(BaseModel):
    """Per-batch counts reported back by a sink."""
    inserted: int = 0
    modified: int = 0
    deleted: int = 0


class SinkError(Exception):
    """Raised when a sink cannot store the batch. Always fatal to the run."""

    def __init__(self, message: str, report: Optional[SinkReport] = None):
        self.message = message
        self.report = report
        super().__init__(message)


class StorageSink(Protocol):
    """Anything that can bulk-store a batch of grouped documents."""

    def write_batch(self, documents: Sequence[GroupDocument]) -> SinkReport:
        ...


class MemorySink:
    """Keeps written documents in memory."""

    def __init__(self):
        self.documents: List[GroupDocument] = []
        self.batches = 0

    def write_batch(self, documents: Sequence[GroupDocument]) -> SinkReport:
        self.documents.extend(documents)
        self.batches += 1
        return SinkReport(inserted=len(documents))


class JsonLinesSink:
    """Writes one canonical JSON document per line, replacing the target atomically."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def write_batch(self, documents: Sequence[GroupDocument]) -> SinkReport:
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            tmp_fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        except OSError as e:
            raise SinkError(f"Cannot prepare output {self.path}: {e}")

        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                for document in documents:
                    f.write(canonical_dumps(document.model_dump()) + "\n")
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise SinkError(f"Cannot write output {self.path}: {e}", report=SinkReport())

        logger.info("Wrote %d documents to %s", len(documents), self.path)
        return SinkReport(inserted=len(documents))
