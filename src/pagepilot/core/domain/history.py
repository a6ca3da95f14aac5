"""History ledger: append-only ordered step records of one task execution."""

from collections.abc import Iterator, Sequence
from typing import overload

from pagepilot.core.domain.models import StepRecord


class HistoryLedger(Sequence[StepRecord]):
    """
    Ordered sequence of StepRecord.

    Records can only be appended; there is no insertion, removal or
    replacement. Consumers get copies through snapshot().
    """

    def __init__(self) -> None:
        self._records: list[StepRecord] = []

    def append(self, record: StepRecord) -> None:
        if not isinstance(record, StepRecord):
            raise TypeError(f"Expected StepRecord, got {type(record).__name__}")
        self._records.append(record)

    def snapshot(self) -> list[StepRecord]:
        return list(self._records)

    @overload
    def __getitem__(self, index: int) -> StepRecord: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[StepRecord]: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return tuple(self._records[index])
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[StepRecord]:
        return iter(tuple(self._records))

    def __repr__(self) -> str:
        return f"HistoryLedger(steps={len(self._records)})"
