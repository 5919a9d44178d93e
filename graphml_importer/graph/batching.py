# -*- coding: utf-8 -*-
"""
Per-label record batching.

Records are grouped by their (decorated) label so that each UNWIND statement
creates entities of a single label. A batch is handed back to the caller as
soon as it reaches the threshold. drain() returns the partial batches left at
the end of a pass, in first-seen label order.

Example:
    batcher = LabelBatcher(batch_size=1000)
    for record in records:
        full = batcher.add(record.labels, record)
        if full:
            flush(record.labels, full)
    for label, batch in batcher.drain():
        flush(label, batch)
"""
from typing import Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class LabelBatcher(Generic[T]):

    def __init__(self, batch_size: int):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.batch_size = batch_size
        self._batches: Dict[str, List[T]] = {}

    def add(self, label: str, record: T) -> Optional[List[T]]:
        """Append a record; return and reset the label's batch once it is full."""
        batch = self._batches.setdefault(label, [])
        batch.append(record)
        if len(batch) >= self.batch_size:
            self._batches[label] = []
            return batch
        return None

    def pending(self) -> int:
        return sum(len(batch) for batch in self._batches.values())

    def drain(self) -> Iterator[Tuple[str, List[T]]]:
        """Yield and remove every non-empty partial batch."""
        batches, self._batches = self._batches, {}
        for label, batch in batches.items():
            if batch:
                yield label, batch
