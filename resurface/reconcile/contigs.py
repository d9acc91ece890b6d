"""Sorted, non-overlapping list of downloaded (or downloading) timestamp ranges.

A contig is fetched page by page from the archival source. When a page runs
into the next contig the two are merged, so the list approximates the
thread's timeline with gaps where nothing has been requested yet.
"""

import logging
from typing import Iterator, List

from resurface.models import Contig

# The first_created of the contig that starts at a thread's first comment
EARLIEST = 1

LOG = logging.getLogger("resurface.reconcile.contigs")


class ContigTracker:
    """Contigs sorted ascending by first_created, with a cursor on the one being filled."""

    def __init__(self) -> None:
        self._contigs: List[Contig] = []
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._contigs)

    def __iter__(self) -> Iterator[Contig]:
        return iter(self._contigs)

    def __getitem__(self, idx: int) -> Contig:
        return self._contigs[idx]

    def index(self, contig: Contig) -> int:
        """Position of contig (by identity). Raises ValueError if absent."""
        for i, c in enumerate(self._contigs):
            if c is contig:
                return i
        raise ValueError("contig is not tracked")

    def insertion_point(self, created_utc: int) -> int:
        """Index of the first contig starting after created_utc (len if none)."""
        for i, c in enumerate(self._contigs):
            if created_utc < c.first_created:
                return i
        return len(self._contigs)

    def insert(self, first_created: int) -> int:
        """Insert a new contig in sorted position and return its index.

        Raises:
            ValueError: if first_created duplicates a contig or lies inside a downloaded range
        """
        idx = self.insertion_point(first_created)
        if idx > 0:
            prev = self._contigs[idx - 1]
            if prev.first_created == first_created:
                raise ValueError(f"contig starting at {first_created} already exists")
            if prev.last_created is not None and first_created <= prev.last_created:
                raise ValueError(f"{first_created} is inside contig {prev.first_created}..{prev.last_created}")
        self._contigs.insert(idx, Contig(first_created=first_created))
        if len(self._contigs) > 1 and idx <= self._cursor:
            self._cursor += 1
        return idx

    def remove(self, idx: int) -> Contig:
        """Drop contig idx, keeping the cursor on the same contig or the previous one."""
        contig = self._contigs.pop(idx)
        if self._cursor >= idx and self._cursor > 0:
            self._cursor -= 1
        return contig

    def find_containing(self, created_utc: int | None) -> int | None:
        """Index of the contig whose downloaded range holds created_utc, else None."""
        if created_utc is None or created_utc <= EARLIEST:
            return None
        for i, c in enumerate(self._contigs):
            if c.last_created is not None and c.first_created <= created_utc <= c.last_created:
                return i
        return None

    def merge_forward(self, idx: int | None = None) -> bool:
        """Absorb contig idx into the next one when their ranges meet.

        Archival pages can overshoot into the next contig, so last_created >=
        next.first_created means they are probably the same range. Anything
        else is logged and left untouched.
        """
        if idx is None:
            idx = self._cursor
        cur = self._contigs[idx]
        nxt = self._contigs[idx + 1] if idx + 1 < len(self._contigs) else None
        if nxt is None or cur.last_created is None or cur.last_created < nxt.first_created:
            LOG.warning("Can't merge contigs %s and %s", cur, nxt)
            return False
        self._contigs.pop(idx)
        nxt.first_created = cur.first_created
        if self._cursor > idx:
            self._cursor -= 1
        return True

    @property
    def current_index(self) -> int:
        return self._cursor

    def set_current(self, idx: int) -> Contig:
        if not 0 <= idx < len(self._contigs):
            raise IndexError(f"no contig at {idx}")
        self._cursor = idx
        return self._contigs[idx]

    def current(self) -> Contig | None:
        if self._cursor < len(self._contigs):
            return self._contigs[self._cursor]
        return None

    def next(self) -> Contig | None:
        if self._cursor + 1 < len(self._contigs):
            return self._contigs[self._cursor + 1]
        return None

    def previous(self) -> Contig | None:
        if 0 < self._cursor <= len(self._contigs):
            return self._contigs[self._cursor - 1]
        return None

    def fetch_bounds(self) -> tuple[int, int | None]:
        """Exclusive (after, before) bounds for the next archival page of the current contig.

        after re-includes last_created so items sharing the boundary second
        are not dropped; before includes the next contig's first item.
        """
        cur = self.current()
        if cur is None:
            raise IndexError("no current contig")
        after = cur.last_created - 1 if cur.last_created is not None else cur.first_created - 1
        nxt = self.next()
        before = nxt.first_created + 1 if nxt is not None else None
        return after, before
