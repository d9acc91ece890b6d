"""Abstract base classes for the live and archival comment sources."""

import asyncio
import functools
from abc import ABC, abstractmethod
from typing import Any, Callable, List, TypeVar

from resurface.models import Comment, Post

T = TypeVar("T")


class SourceError(Exception):
    """Raised when a source API call fails (network error or HTTP status >= 400)."""

    def __init__(self, message: str, status_code: int | None = None, source: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.source = source

    @property
    def is_forbidden(self) -> bool:
        """The resource exists but access is restricted (quarantined, banned, private)."""
        return self.status_code == 403

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


async def run_blocking(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking HTTP call in the default executor, off the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))


class LiveSource(ABC):
    """Authoritative, real-time source. Blanks bodies of removed/deleted comments."""

    #: Max ids per get_comments call
    chunk_size: int = 100

    @abstractmethod
    async def get_post(self, thread_id: str) -> Post:
        """Fetch the thread's post.

        Raises:
            SourceError: on failure; status 403 and 404 are distinguishable
        """
        ...

    @abstractmethod
    async def get_comments(self, ids: List[str]) -> List[Comment]:
        """Batched lookup by short id. Ids that cannot be found are omitted."""
        ...

    @abstractmethod
    async def get_ancestor_chain(self, thread_id: str, comment_id: str, depth: int) -> List[Comment]:
        """Fetch up to depth ancestors of a comment.

        Returns:
            Comments ordered furthest-ancestor-first, ending with the comment itself
        """
        ...


class ArchiveSource(ABC):
    """Timestamp-indexed search index that keeps original bodies, possibly incomplete."""

    #: Max comments per get_comments_page call
    page_size: int = 100

    @abstractmethod
    async def get_post(self, thread_id: str) -> Post | None:
        """Fetch the archived post, or None if it was never archived."""
        ...

    @abstractmethod
    async def get_comments_page(
        self,
        thread_id: str,
        max_items: int,
        after: int,
        before: int | None = None,
    ) -> List[Comment]:
        """Fetch up to max_items comments with after < created_utc < before.

        Returns:
            Comments sorted ascending by created_utc
        """
        ...
