"""FIFO that takes items one at a time and releases them in fixed-size batches."""

from typing import Generic, List, TypeVar

T = TypeVar("T")


class ChunkedBatcher(Generic[T]):
    """Accumulates ids for batched live-source lookups.

    Invariant: there is always at least one (possibly empty) batch.
    """

    def __init__(self, chunk_size: int, dispatch_ratio: float = 0.9) -> None:
        if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
            raise ValueError(f"chunk_size must be a positive integer, got {chunk_size!r}")
        self._chunk_size = chunk_size
        self._threshold = chunk_size * dispatch_ratio
        self._chunks: List[List[T]] = [[]]

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def push(self, item: T) -> None:
        """Append to the tail batch, starting a new one when it is full."""
        last = self._chunks[-1]
        if len(last) < self._chunk_size:
            last.append(item)
        else:
            self._chunks.append([item])

    def has_full_chunk(self) -> bool:
        """True once the head batch is full enough to dispatch."""
        return len(self._chunks[0]) >= self._threshold

    def is_empty(self) -> bool:
        return not self._chunks[0]

    def shift_chunk(self) -> List[T]:
        """Remove and return the head batch (possibly short or empty)."""
        first = self._chunks.pop(0)
        if not self._chunks:
            self._chunks.append([])
        return first

    def __len__(self) -> int:
        return sum(len(c) for c in self._chunks)
