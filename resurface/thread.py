"""Thread loader: the post plus its reconciled comments, for one thread view.

Wraps one ReconciliationEngine and ContextExpander and decides which contig
to fill: the start of the thread, a permalinked comment's time, or more of
the current contig. Also reconciles the post itself between the two sources.
"""

import asyncio
import logging
from typing import Dict

from pydantic import BaseModel

from resurface.adapters.base import ArchiveSource, LiveSource, SourceError
from resurface.config import LoaderConfig
from resurface.models import Comment, Post
from resurface.reconcile import (
    EARLIEST,
    CommentStore,
    ContextExpander,
    ContigTracker,
    FillResult,
    InconsistentLinkError,
    LoadObserver,
    ReconciliationEngine,
)
from resurface.text import is_deleted, is_removed

LOG = logging.getLogger("resurface.thread")


class PostNotFoundError(Exception):
    """Neither the live nor the archival source has the post."""


class ThreadView(BaseModel):
    """Snapshot handed to whatever renders the thread."""

    post: Post
    comments: Dict[str, Comment]
    removed: int = 0
    deleted: int = 0
    loaded_all_comments: bool = False
    context: int = 0


class ThreadLoader:
    """Loads one thread, optionally focused on a permalinked comment."""

    def __init__(
        self,
        live: LiveSource,
        archive: ArchiveSource,
        thread_id: str,
        config: LoaderConfig | None = None,
        observer: LoadObserver | None = None,
        comment_id: str | None = None,
    ) -> None:
        self.live = live
        self.archive = archive
        self.thread_id = thread_id
        self.config = config or LoaderConfig()
        self.comment_id = comment_id
        self.store = CommentStore()
        self.contigs = ContigTracker()
        self.engine = ReconciliationEngine(
            live,
            archive,
            thread_id,
            store=self.store,
            contigs=self.contigs,
            config=self.config,
            observer=observer,
            single_comment=comment_id is not None,
        )
        self.expander = ContextExpander(self.engine)
        self.post: Post = Post(id=thread_id)
        self.context = 0
        # Permalinks already tried, so a failed lookup is not repeated
        self._attempted: set[str] = set()

    def close(self) -> None:
        """Stop any in-flight load (the view is gone)."""
        self.engine.close()

    @property
    def loaded_all_comments(self) -> bool:
        cur = self.contigs.current()
        return bool(cur and cur.loaded_all_comments)

    def view(self) -> ThreadView:
        return ThreadView(
            post=self.post,
            comments=self.store.as_dict(),
            removed=self.store.removed,
            deleted=self.store.deleted,
            loaded_all_comments=self.loaded_all_comments,
            context=self.context,
        )

    async def load(self, comment_id: str | None = None, context: int = 0) -> ThreadView:
        """Load the post and the first batch of comments concurrently."""
        if comment_id is not None:
            self.comment_id = comment_id
            self.engine.single_comment = True
        await asyncio.gather(
            self.load_post(),
            self.load_comments(self.comment_id, context=context),
        )
        return self.view()

    async def load_post(self) -> Post:
        """Fetch the post, restoring its archived version if it was removed, deleted or edited.

        Raises:
            PostNotFoundError: if the live source says 404 and the archive has nothing
            SourceError: on any other failure
        """
        try:
            post = await self.live.get_post(self.thread_id)
        except SourceError as e:
            if not (e.is_forbidden or e.is_not_found):
                raise
            # Quarantined/banned (403) or gone (404): the archive is the only copy
            archived = await self.archive.get_post(self.thread_id)
            if archived is not None:
                archived.removed = True
                self.post = archived
            elif e.is_forbidden:
                LOG.info("Post %s is restricted and not archived, using a placeholder", self.thread_id)
                self.post = Post(id=self.thread_id, removed=True)
            else:
                raise PostNotFoundError(f"404 Post not found: {self.thread_id}") from e
            return self.post

        if is_deleted(post.selftext):
            post.deleted = True
        elif is_removed(post.selftext) or post.removed_by_category:
            post.removed = True

        if post.is_self is False:
            intact = not post.deleted
        else:
            intact = not (post.deleted or post.removed or post.edited)
        if intact:
            self.post = post
            return post

        archived = await self.archive.get_post(self.thread_id)
        if archived is None:
            self.post = post
        elif post.deleted or post.removed:
            archived.score = post.score
            archived.num_comments = post.num_comments
            archived.edited = post.edited
            archived.deleted = post.deleted
            archived.removed = post.removed and not post.deleted
            self.post = archived
        else:
            # Only edited: the archive holds the original text
            if post.selftext != archived.selftext and not is_removed(archived.selftext):
                post.edited_selftext = post.selftext
                post.selftext = archived.selftext
            self.post = post
        return self.post

    async def load_comments(
        self,
        comment_id: str | None = None,
        max_comments: int | None = None,
        context: int = 0,
    ) -> FillResult:
        """Initial comment load, from the thread's start or from a permalink.

        Raises:
            InconsistentLinkError: if the permalinked comment is missing or from another thread
        """
        self.engine.new_session()
        max_comments = max_comments or self.config.max_comments
        if comment_id is None:
            return await self._fill_from_start(max_comments)

        self._attempted.add(comment_id)
        try:
            found = await self.live.get_comments([comment_id])
        except SourceError as e:
            LOG.warning("Permalink lookup for %s failed (%s), loading from the start", comment_id, e)
            return await self._fill_from_start(max_comments)

        comment = found[0] if found else None
        if comment is None or comment.link_id != self.thread_id:
            LOG.error("link_id mismatch for permalink %s: %s", comment_id, comment)
            raise InconsistentLinkError(f"Invalid permalink: {comment_id}")

        first = comment.created_utc if comment.created_utc > EARLIEST else EARLIEST
        idx = self._contig_at(first)
        result = await self.engine.fill(self.contigs[idx], max_comments, hint=comment)
        if context > 0 and not result.cancelled:
            await self.widen_context(comment_id, context)
        return result

    async def load_more(self, count: int | None = None) -> FillResult:
        """Download more comments into the current contig, persisting through merges."""
        self.engine.new_session()
        self._select_current()
        if self.contigs.current() is None:
            return await self._fill_from_start(count or self.config.max_comments)
        return await self.engine.fill(target_count=count or self.config.max_comments, persistent=True)

    async def jump_to(self, comment_id: str | None) -> FillResult | None:
        """Switch the view to a permalink (or back to the full thread), downloading as needed.

        Returns None when the target was already downloaded.
        """
        self.engine.new_session()
        self.comment_id = comment_id
        self.engine.single_comment = comment_id is not None
        self.context = 0
        if self._select_current():
            return None

        max_comments = self.config.max_comments
        if comment_id is None:
            return await self._fill_from_start(max_comments)
        if comment_id in self._attempted:
            return None
        self._attempted.add(comment_id)

        comment: Comment | None = None
        try:
            found = await self.live.get_comments([comment_id])
            comment = found[0] if found else None
        except SourceError as e:
            LOG.warning("Permalink lookup for %s failed: %s", comment_id, e)

        if comment is None or comment.created_utc <= EARLIEST:
            # Last resort: continue the previous contig, or start from the beginning
            if self.contigs.current_index > 0:
                self.contigs.set_current(self.contigs.current_index - 1)
                return await self.engine.fill(target_count=max_comments)
            return await self._fill_from_start(max_comments)

        created = comment.created_utc
        insert_before = self.contigs.insertion_point(created)
        prev = self.contigs[insert_before - 1] if insert_before > 0 else None
        if prev is None or (prev.first_created != created and (prev.last_created is None or created > prev.last_created)):
            idx = self.contigs.insert(created)
            self.contigs.set_current(idx)
            return await self.engine.fill(target_count=max_comments, hint=comment)

        # An earlier download covering this time turned up nothing for it
        self.store.use_live_comment(comment)
        self.contigs.set_current(insert_before - 1)
        return await self.engine.fill(target_count=0)

    async def widen_context(self, comment_id: str, depth: int) -> None:
        """Show depth ancestors of comment_id (capped at max_context)."""
        depth = min(depth, self.config.max_context)
        if depth <= self.context:
            self.context = depth
            return
        self.engine.new_session()
        self.context = depth
        await self.expander.widen_context(self.thread_id, comment_id, depth)

    def _select_current(self) -> bool:
        """Point the cursor at the contig holding the current view's root. False if none does."""
        if self.comment_id is None:
            if len(self.contigs) and self.contigs[0].first_created == EARLIEST:
                self.contigs.set_current(0)
                return True
            return False
        found = self.store.get(self.comment_id)
        idx = self.contigs.find_containing(found.created_utc if found else None)
        if idx is None:
            return False
        self.contigs.set_current(idx)
        return True

    def _contig_at(self, first_created: int) -> int:
        """Make the contig starting at first_created current, creating it if needed."""
        for i, c in enumerate(self.contigs):
            if c.first_created == first_created:
                return i
        idx = self.contigs.insert(first_created)
        self.contigs.set_current(idx)
        return idx

    async def _fill_from_start(self, max_comments: int) -> FillResult:
        idx = self._contig_at(EARLIEST)
        return await self.engine.fill(self.contigs[idx], max_comments)
