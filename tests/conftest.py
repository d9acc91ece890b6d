"""Shared fixtures: in-memory live and archival sources."""

import asyncio
from typing import Dict, List

import pytest

from resurface.adapters.base import ArchiveSource, LiveSource, SourceError
from resurface.models import Comment, Post

THREAD = "t1x"


def make_comment(
    id: str,
    created_utc: int,
    body: str = "",
    parent_id: str = THREAD,
    score: int = 1,
    link_id: str = THREAD,
    **kwargs,
) -> Comment:
    return Comment(
        id=id,
        parent_id=parent_id,
        link_id=link_id,
        author=kwargs.pop("author", "someone"),
        body=body or f"body of {id}",
        created_utc=created_utc,
        score=score,
        **kwargs,
    )


class FakeArchive(ArchiveSource):
    """Serves pages from a fixed list, honoring exclusive after/before bounds."""

    def __init__(self, comments: List[Comment] | None = None, page_size: int = 100, post: Post | None = None) -> None:
        self.comments = sorted(comments or [], key=lambda c: c.created_utc)
        self.page_size = page_size
        self.post = post
        self.calls: List[tuple[int, int, int | None]] = []
        self.error: Exception | None = None

    async def get_post(self, thread_id: str) -> Post | None:
        return self.post

    async def get_comments_page(
        self,
        thread_id: str,
        max_items: int,
        after: int,
        before: int | None = None,
    ) -> List[Comment]:
        self.calls.append((max_items, after, before))
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        matching = [
            c.model_copy()
            for c in self.comments
            if c.created_utc > after and (before is None or c.created_utc < before)
        ]
        return matching[:max_items]


class FakeLive(LiveSource):
    """Answers lookups from a dict; unknown ids are silently omitted."""

    def __init__(
        self,
        comments: Dict[str, Comment] | None = None,
        chunk_size: int = 100,
        post: Post | None = None,
    ) -> None:
        self.comments = dict(comments or {})
        self.chunk_size = chunk_size
        self.post = post
        self.post_error: SourceError | None = None
        self.error: Exception | None = None
        self.chains: Dict[str, List[Comment]] = {}
        self.calls: List[List[str]] = []

    async def get_post(self, thread_id: str) -> Post:
        if self.post_error is not None:
            raise self.post_error
        if self.post is None:
            raise SourceError("404: not found", status_code=404, source="fake")
        return self.post.model_copy()

    async def get_comments(self, ids: List[str]) -> List[Comment]:
        self.calls.append(list(ids))
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return [self.comments[i].model_copy() for i in ids if i in self.comments]

    async def get_ancestor_chain(self, thread_id: str, comment_id: str, depth: int) -> List[Comment]:
        return [c.model_copy() for c in self.chains.get(comment_id, [])][-(depth + 1) :]


@pytest.fixture
def archive() -> FakeArchive:
    return FakeArchive()


@pytest.fixture
def live() -> FakeLive:
    return FakeLive()
