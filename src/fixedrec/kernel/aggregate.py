"""Record aggregator: buckets decoded records by a grouping field."""

from typing import Dict, List, Mapping

from .decoder import DecodedRecord

DEFAULT_GROUP_FIELD = "isin"

AggregateResult = Dict[str, List[DecodedRecord]]


class RecordAggregator:
    """Append-only grouping of decoded records.

    Groups appear in first-seen order and records keep arrival order within
    a group. Records whose grouping value is absent or empty are dropped.
    """

    def __init__(self, group_field: str = DEFAULT_GROUP_FIELD):
        self.group_field = group_field
        self._groups: AggregateResult = {}
        self.accepted = 0
        self.dropped = 0

    def add(self, record: Mapping[str, str]) -> bool:
        """Add a record; returns False if it was dropped for lacking a grouping value."""
        identifier = record.get(self.group_field, "")
        if not identifier:
            self.dropped += 1
            return False
        self._groups.setdefault(identifier, []).append(dict(record))
        self.accepted += 1
        return True

    def groups(self) -> AggregateResult:
        """Return the aggregate result (a copy; the aggregator keeps accumulating)."""
        return {identifier: list(records) for identifier, records in self._groups.items()}

    def __len__(self) -> int:
        return len(self._groups)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._groups
