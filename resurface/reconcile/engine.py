"""Reconciliation engine: fills contigs from the archival source and verifies them live.

A fill pages through the archival source for the current contig, records
each new comment and queues its id (and its unknown parent's id) for a
batched live lookup. Live batches are dispatched as soon as a batch is
full enough and run concurrently with further paging; their results are
merged into the CommentStore as they arrive. Archival pages for a contig
are strictly sequential, since each page starts after the previous one's
last timestamp.
"""

import logging
import time
from typing import List

from pydantic import BaseModel

from resurface.adapters.base import ArchiveSource, LiveSource
from resurface.config import LoaderConfig
from resurface.models import Comment, Contig
from resurface.reconcile.batcher import ChunkedBatcher
from resurface.reconcile.contigs import ContigTracker
from resurface.reconcile.events import LoadObserver, LoggingObserver
from resurface.reconcile.pending import LoadSession, PendingSet
from resurface.reconcile.store import CommentStore

LOG = logging.getLogger("resurface.reconcile.engine")


class InconsistentLinkError(Exception):
    """A fetched comment belongs to a different thread than the one being loaded."""


class FillResult(BaseModel):
    """Outcome of one fill() call."""

    archive_comments: int = 0
    live_comments: int = 0
    loaded_all_comments: bool = False
    cancelled: bool = False


class ReconciliationEngine:
    """Owns the ContigTracker and CommentStore of one thread for the duration of a load."""

    def __init__(
        self,
        live: LiveSource,
        archive: ArchiveSource,
        thread_id: str,
        store: CommentStore | None = None,
        contigs: ContigTracker | None = None,
        config: LoaderConfig | None = None,
        observer: LoadObserver | None = None,
        single_comment: bool = False,
    ) -> None:
        self.live = live
        self.archive = archive
        self.thread_id = thread_id
        self.store = store if store is not None else CommentStore()
        self.contigs = contigs if contigs is not None else ContigTracker()
        self.config = config or LoaderConfig()
        self.observer = observer or LoggingObserver()
        # A single comment's subtree is shown; unknown parents are not looked up
        self.single_comment = single_comment
        self.session = LoadSession()
        self._batcher: ChunkedBatcher[str] = ChunkedBatcher(live.chunk_size, self.config.dispatch_ratio)
        self._pending = PendingSet()

    @property
    def shortfall_threshold(self) -> float:
        return self.config.shortfall_chunks * self.archive.page_size

    def new_session(self) -> LoadSession:
        """Start a fresh session after a failed or cancelled one, unless closed."""
        if self.session.cancelled and not self.session.closed:
            self.session = LoadSession()
        return self.session

    def close(self) -> None:
        self.session.close()

    async def fill(
        self,
        contig: Contig | None = None,
        target_count: int = 0,
        persistent: bool = False,
        hint: Comment | None = None,
        finalize: bool = True,
    ) -> FillResult:
        """Download up to target_count new archival comments into a contig and verify them live.

        Args:
            contig: Contig to fill; defaults to the tracker's current contig
            target_count: New archival comments wanted; 0 only joins pending live work
            persistent: Keep paging after the contig closes while the shortfall is large
            hint: Live comment to install if the archive should have had it but does not
            finalize: Flush queued ids and wait for all live lookups before returning

        Raises:
            SourceError: if any archival or live request fails
            InconsistentLinkError: if the archive returns a comment from another thread
        """
        if contig is not None:
            self.contigs.set_current(self.contigs.index(contig))
        session = self.session
        result = FillResult()
        started = time.monotonic()
        self.observer.emit("load-start", thread=self.thread_id, target=target_count, persistent=persistent)

        try:
            while True:
                round_mark = self._pending.mark()
                new = await self._page_archive(target_count) if target_count > 0 else 0
                await self._pending.drain(round_mark)
                self._check(session)
                if session.cancelled:
                    result.cancelled = True
                    return result
                result.archive_comments += new

                if hint is not None and self._use_hint(hint):
                    hint = None
                if not finalize:
                    return result

                cur = self.contigs.current()
                if (
                    persistent
                    and new > 0
                    and cur is not None
                    and not cur.loaded_all_comments
                    and new < target_count - self.shortfall_threshold
                ):
                    target_count -= new
                    LOG.debug("Persistent load continues for %s more comments", target_count)
                    continue
                break

            self._flush()
            result.live_comments = await self._pending.drain_all()
            self._check(session)
        except Exception as e:
            session.fail(e)
            # Lookups of the failed session must not be joined by the next load
            self._pending.discard()
            self._drop_unstarted_contig()
            LOG.warning("Load of thread %s failed: %s", self.thread_id, e)
            raise

        if session.cancelled:
            result.cancelled = True
            return result
        cur = self.contigs.current()
        result.loaded_all_comments = bool(cur and cur.loaded_all_comments)
        self.observer.emit(
            "load-end",
            thread=self.thread_id,
            archive=result.archive_comments,
            live=result.live_comments,
            total=len(self.store),
            removed=self.store.removed,
            deleted=self.store.deleted,
            loaded_all=result.loaded_all_comments,
            elapsed=round(time.monotonic() - started, 3),
        )
        return result

    @staticmethod
    def _check(session: LoadSession) -> None:
        if session.error is not None:
            raise session.error

    async def _page_archive(self, target_count: int) -> int:
        """Fetch archival pages for the current contig. Returns the number of new comments."""
        session = self.session
        page_size = self.archive.page_size
        fetched = new = 0
        while fetched < target_count and not session.cancelled:
            contig = self.contigs.current()
            after, before = self.contigs.fetch_bounds()
            size = min(page_size, target_count - fetched)
            page = await self.archive.get_comments_page(self.thread_id, size, after, before)
            if session.cancelled:
                break
            fetched += len(page)
            page_new = self._record_page(page)
            new += page_new
            self.observer.emit("archive-page", after=after, before=before, count=len(page), new=page_new)
            self._dispatch_full_chunks()

            nxt = self.contigs.next()
            if len(page) < size:
                # Exhausted: reached the thread's end or the next contig
                if nxt is not None:
                    contig.last_created = nxt.first_created
                    self.contigs.merge_forward()
                else:
                    if page:
                        contig.last_created = page[-1].created_utc
                    elif contig.last_created is None:
                        contig.last_created = contig.first_created
                    contig.loaded_all_comments = True
                break

            last = page[-1].created_utc
            if contig.last_created == last and not page_new:
                LOG.warning("Archive page after %s made no progress, stopping at %s", after, last)
                break
            contig.last_created = last
            if nxt is not None and last >= nxt.first_created:
                self.contigs.merge_forward()
                break
        return new

    def _record_page(self, page: List[Comment]) -> int:
        new = 0
        for comment in page:
            if comment.link_id != self.thread_id:
                raise InconsistentLinkError(
                    f"Comment {comment.id} belongs to thread {comment.link_id}, not {self.thread_id}"
                )
            queued = self.store.is_claimed(comment.id)
            if not self.store.record_archival(comment):
                continue
            new += 1
            if not queued:
                self._batcher.push(comment.id)
            parent_id = comment.parent_id
            if not self.single_comment and parent_id != self.thread_id and self.store.claim(parent_id):
                # Parent missing from the archive so far; look it up live
                self._batcher.push(parent_id)
        return new

    def _dispatch_full_chunks(self) -> None:
        while self._batcher.has_full_chunk() and not self.session.cancelled:
            self._dispatch(self._batcher.shift_chunk())

    def _flush(self) -> None:
        while not self._batcher.is_empty() and not self.session.cancelled:
            self._dispatch(self._batcher.shift_chunk())

    def _dispatch(self, ids: List[str]) -> None:
        if ids:
            self._pending.add(self._verify_batch(ids, self.session))

    async def _verify_batch(self, ids: List[str], session: LoadSession) -> int:
        try:
            comments = await self.live.get_comments(ids)
        except Exception as e:
            session.fail(e)
            raise
        if session.cancelled:
            return 0
        self.store.merge_live(comments)
        self.observer.emit("live-batch", requested=len(ids), returned=len(comments))
        self.observer.emit("counts", total=len(self.store), removed=self.store.removed, deleted=self.store.deleted)
        return len(comments)

    def _use_hint(self, hint: Comment) -> bool:
        """Install the hint if the archive should have returned it. True once it is no longer needed."""
        if self.store.has_record(hint.id):
            return True
        contig = self.contigs.current()
        if contig is None:
            return False
        created = hint.created_utc
        reached = contig.loaded_all_comments or (contig.last_created is not None and created < contig.last_created)
        if created >= contig.first_created and reached:
            LOG.info("Archive is missing comment %s, using the live copy", hint.id)
            self.store.use_live_comment(hint)
            return True
        return False

    def _drop_unstarted_contig(self) -> None:
        cur = self.contigs.current()
        if cur is not None and cur.last_created is None:
            self.contigs.remove(self.contigs.current_index)
