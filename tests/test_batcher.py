"""Tests for ChunkedBatcher (FIFO released in fixed-size batches)."""

import pytest

from resurface.reconcile.batcher import ChunkedBatcher


class TestConstruction:
    """Chunk size validation."""

    @pytest.mark.parametrize("size", [0, -1, 2.5, "10", None, True])
    def test_rejects_non_positive_or_non_int(self, size) -> None:
        """Construction fails unless chunk_size is a positive integer."""
        with pytest.raises(ValueError):
            ChunkedBatcher(size)

    def test_starts_with_one_empty_batch(self) -> None:
        """A new batcher is empty but can still shift an (empty) batch."""
        b = ChunkedBatcher(3)
        assert b.is_empty()
        assert b.shift_chunk() == []
        assert b.is_empty()


class TestBatching:
    """push / has_full_chunk / shift_chunk."""

    def test_full_chunk_at_ninety_percent(self) -> None:
        """The head batch counts as full at 90% of chunk_size."""
        b = ChunkedBatcher(10)
        for i in range(8):
            b.push(i)
        assert not b.has_full_chunk()
        b.push(8)
        assert b.has_full_chunk()

    def test_custom_ratio(self) -> None:
        """dispatch_ratio changes the release threshold."""
        b = ChunkedBatcher(4, dispatch_ratio=0.5)
        b.push("a")
        assert not b.has_full_chunk()
        b.push("b")
        assert b.has_full_chunk()

    def test_batches_never_exceed_chunk_size(self) -> None:
        """Overflow goes into a new tail batch, in FIFO order."""
        b = ChunkedBatcher(3)
        for i in range(7):
            b.push(i)
        assert len(b) == 7
        assert b.shift_chunk() == [0, 1, 2]
        assert b.shift_chunk() == [3, 4, 5]
        assert b.shift_chunk() == [6]
        assert b.shift_chunk() == []
        assert len(b) == 0

    def test_always_has_a_batch_after_shift(self) -> None:
        """Shifting the only batch leaves an empty one for later pushes."""
        b = ChunkedBatcher(2)
        b.push("x")
        assert b.shift_chunk() == ["x"]
        b.push("y")
        assert not b.is_empty()
        assert b.shift_chunk() == ["y"]
