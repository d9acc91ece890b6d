"""Context expansion: download the ancestors of a comment on demand.

Ancestors come from the live source. Each one the store does not know yet
either opens a small new contig at its timestamp (filled with the ancestor
as hint), or, when an earlier contig already covers that time and simply
missed it, is installed from the live copy.
"""

import logging
from typing import List

from resurface.models import Comment
from resurface.reconcile.contigs import EARLIEST
from resurface.reconcile.engine import FillResult, ReconciliationEngine

LOG = logging.getLogger("resurface.reconcile.context")


class ContextExpander:
    """Appends contigs for missing ancestors and delegates filling them to the engine."""

    def __init__(self, engine: ReconciliationEngine) -> None:
        self.engine = engine

    def _opens_new_contig(self, created_utc: int, insert_before: int) -> bool:
        """True if created_utc lies in a gap between contigs rather than inside the previous one."""
        if insert_before == 0:
            return True
        prev = self.engine.contigs[insert_before - 1]
        if prev.first_created == created_utc:
            return False
        return prev.last_created is None or created_utc > prev.last_created

    async def widen_context(self, thread_id: str, comment_id: str, depth: int) -> List[Comment]:
        """Fetch up to depth ancestors of comment_id and merge them into the store.

        The tracker's current contig is restored afterwards. Returns the chain
        as reported by the live source.
        """
        engine = self.engine
        contigs = engine.contigs
        chain = await engine.live.get_ancestor_chain(thread_id, comment_id, depth)
        if not chain:
            LOG.info("No context found for comment %s", comment_id)
            return chain

        orig = contigs.current()
        orig_first = orig.first_created if orig is not None else None
        chunk = engine.archive.page_size
        try:
            for i, comment in enumerate(chain):
                last = i == len(chain) - 1
                if engine.store.has_record(comment.id):
                    if last:
                        # Join live lookups still in flight from earlier ancestors
                        await engine.fill(target_count=0)
                    continue

                created = comment.created_utc
                insert_before = contigs.insertion_point(created)
                if created > EARLIEST and self._opens_new_contig(created, insert_before):
                    idx = contigs.insert(created)
                    contigs.set_current(idx)
                    result: FillResult = await engine.fill(
                        target_count=chunk, persistent=False, hint=comment, finalize=last
                    )
                    if result.cancelled:
                        break
                else:
                    # An earlier download should have held it; the archive is incomplete here
                    engine.store.use_live_comment(comment)
                    if last:
                        await engine.fill(target_count=0)
        finally:
            self._restore(orig_first)
        return chain

    def _restore(self, first_created: int | None) -> None:
        """Point the cursor back at the contig that was current, which may have been merged."""
        contigs = self.engine.contigs
        if first_created is None or not len(contigs):
            return
        for i, c in enumerate(contigs):
            if c.first_created == first_created:
                contigs.set_current(i)
                return
        idx = contigs.find_containing(first_created)
        if idx is None:
            idx = max(contigs.insertion_point(first_created) - 1, 0)
        contigs.set_current(idx)
