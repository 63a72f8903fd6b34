"""In-memory store of the result records of the active run."""

from collections.abc import Iterable, Sequence

from azure_run_reporter.models.results import TestResultRecord


class ResultAggregator:
    """Ordered collection of result records keyed by result id.

    Records keep the position of their first insertion. Every upsert marks the
    record as changed until the next ``take_changes`` call, so only records
    touched since the previous upload are sent again. Records of a failed
    upload are put back with ``mark_changed``.
    """

    def __init__(self) -> None:
        self._records: dict[int, TestResultRecord] = {}
        self._changed: set[int] = set()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, result_id: object) -> bool:
        return result_id in self._records

    def get(self, result_id: int) -> TestResultRecord | None:
        """Return the record stored for ``result_id``."""
        return self._records.get(result_id)

    def upsert(self, record: TestResultRecord) -> None:
        """Replace the record with the same id in place, or append it."""
        self._records[record.id] = record
        self._changed.add(record.id)

    def snapshot(self) -> Sequence[TestResultRecord]:
        """Return every record in insertion order."""
        return list(self._records.values())

    def take_changes(self) -> Sequence[TestResultRecord]:
        """Return records changed since the last call, in insertion order."""
        changed = [
            record
            for result_id, record in self._records.items()
            if result_id in self._changed
        ]
        self._changed.clear()
        return changed

    def mark_changed(self, result_ids: Iterable[int]) -> None:
        """Queue known records for the next ``take_changes`` again."""
        self._changed.update(
            result_id for result_id in result_ids if result_id in self._records
        )

    def clear(self) -> None:
        """Drop every record."""
        self._records.clear()
        self._changed.clear()
