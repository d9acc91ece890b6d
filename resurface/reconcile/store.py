"""Keyed table of canonical comments, merged from archival and live records.

One canonical Comment per id. Archival records are installed first and
amended in place by live lookups: the live source wins for score and
removed/deleted/restored state, the archival source wins for the original
body whenever both exist.
"""

import logging
from typing import Dict, Iterable, Iterator, List

from resurface.models import Comment
from resurface.text import is_deleted, is_removed

LOG = logging.getLogger("resurface.reconcile.store")


class CommentStore:
    """Id -> canonical Comment, in insertion order.

    An id may be claimed before any record exists (a parent queued for a
    live lookup); claimed ids count as present for dedup but not as comments.
    """

    def __init__(self) -> None:
        self._comments: Dict[str, Comment | None] = {}
        self._removed: set[str] = set()
        self._deleted: set[str] = set()

    def __contains__(self, comment_id: object) -> bool:
        return comment_id in self._comments

    def __len__(self) -> int:
        return sum(1 for c in self._comments.values() if c is not None)

    def __iter__(self) -> Iterator[Comment]:
        return (c for c in self._comments.values() if c is not None)

    def get(self, comment_id: str) -> Comment | None:
        return self._comments.get(comment_id)

    def has_record(self, comment_id: str) -> bool:
        """True if a real record (not just a claim) exists for comment_id."""
        return self._comments.get(comment_id) is not None

    def is_claimed(self, comment_id: str) -> bool:
        return comment_id in self._comments and self._comments[comment_id] is None

    def ids(self) -> List[str]:
        """Ids with records, in the order they were first seen."""
        return [i for i, c in self._comments.items() if c is not None]

    def as_dict(self) -> Dict[str, Comment]:
        return {i: c for i, c in self._comments.items() if c is not None}

    @property
    def removed(self) -> int:
        return len(self._removed)

    @property
    def deleted(self) -> int:
        return len(self._deleted)

    def claim(self, comment_id: str) -> bool:
        """Reserve an id so it is queued for lookup only once. False if already known."""
        if comment_id in self._comments:
            return False
        self._comments[comment_id] = None
        return True

    def record_archival(self, comment: Comment) -> bool:
        """Install an archival record unless one exists. Returns True if installed."""
        if self._comments.get(comment.id) is not None:
            return False
        self._comments[comment.id] = comment
        return True

    def _flag(self, comment: Comment, body: str) -> None:
        """Flag comment removed/deleted from a live body."""
        if is_removed(body):
            comment.removed = True
            self._removed.add(comment.id)
        elif is_deleted(body):
            comment.deleted = True
            self._deleted.add(comment.id)

    def use_live_comment(self, comment: Comment) -> Comment:
        """Install a live record as canonical (fallback when the archive lacks it)."""
        record = comment.model_copy()
        record.removed = False
        record.deleted = False
        self._removed.discard(record.id)
        self._deleted.discard(record.id)
        self._flag(record, record.body)
        self._comments[record.id] = record
        return record

    def merge_live(self, comments: Iterable[Comment]) -> int:
        """Reconcile a live batch into the store. Returns the number merged.

        Merging the same batch again leaves the store unchanged.
        """
        count = 0
        for live in comments:
            count += 1
            existing = self._comments.get(live.id)
            if existing is None:
                self.use_live_comment(live)
                continue

            # Live score is more current than the archived one
            existing.score = live.score

            if is_removed(live.body) or is_deleted(live.body):
                self._flag(existing, live.body)
            elif is_removed(existing.body):
                # Archived after removal but restored since: the live copy is the only content
                LOG.debug("Comment %s was restored, using live record", live.id)
                self._removed.discard(live.id)
                self.use_live_comment(live)
            elif existing.body != live.body:
                existing.edited_body = live.body
                existing.edited = live.edited
        return count
