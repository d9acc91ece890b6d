"""Pushshift search API adapter (archival source)."""

from typing import Any, Dict, List

import requests

from resurface.adapters.base import ArchiveSource, SourceError, run_blocking
from resurface.models import Comment, Post
from resurface.text import short_id

COMMENT_FIELDS = [
    "id",
    "author",
    "body",
    "created_utc",
    "parent_id",
    "score",
    "subreddit",
    "link_id",
    "retrieved_on",
    "retrieved_utc",
]


def _comment_from_api(data: Dict[str, Any], thread_id: str) -> Comment:
    # Missing parent id means a direct reply to the thread
    link_id = short_id(data.get("link_id"), thread_id)
    return Comment(
        id=short_id(data["id"]),
        parent_id=short_id(data.get("parent_id"), thread_id),
        link_id=link_id,
        author=data.get("author") or "",
        body=data.get("body") or "",
        created_utc=int(data["created_utc"]),
        score=data.get("score") or 0,
        subreddit=data.get("subreddit") or "",
        retrieved_on=data.get("retrieved_on") or data.get("retrieved_utc"),
    )


def _post_from_api(data: Dict[str, Any]) -> Post:
    return Post(
        id=short_id(data["id"]),
        subreddit=data.get("subreddit") or "",
        title=data.get("title") or "",
        author=data.get("author") or "",
        selftext=data.get("selftext") or "",
        url=data.get("url") or "",
        is_self=data.get("is_self"),
        score=data.get("score") or 0,
        num_comments=data.get("num_comments") or 0,
        created_utc=int(data["created_utc"]) if data.get("created_utc") else None,
    )


class PushshiftAdapter(ArchiveSource):
    """Pushshift implementation."""

    def __init__(self, api_url: str = "https://api.pushshift.io", page_size: int = 100, timeout: int = 30) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self.page_size = page_size
        self._session = requests.Session()

    def _request(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        url = f"{self._api_url}{path}"
        try:
            resp = self._session.request("GET", url, params=params, timeout=self._timeout)
        except requests.RequestException as e:
            raise SourceError(f"Could not reach Pushshift: {e}", source="pushshift") from e
        if resp.status_code >= 400:
            raise SourceError(
                f"{resp.status_code}: {resp.text or resp.reason}",
                status_code=resp.status_code,
                source="pushshift",
            )
        return (resp.json() or {}).get("data") or []

    def _get_post(self, thread_id: str) -> Post | None:
        data = self._request("/reddit/submission/search/", {"ids": thread_id})
        return _post_from_api(data[0]) if data else None

    def _get_comments_page(self, thread_id: str, max_items: int, after: int, before: int | None) -> List[Comment]:
        params: Dict[str, Any] = {
            "link_id": thread_id,
            "size": max_items,
            "after": after,
            "sort": "asc",
            "sort_type": "created_utc",
            "fields": ",".join(COMMENT_FIELDS),
        }
        if before is not None:
            params["before"] = before
        comments = [_comment_from_api(d, thread_id) for d in self._request("/reddit/comment/search/", params)]
        comments.sort(key=lambda c: c.created_utc)
        return comments

    async def get_post(self, thread_id: str) -> Post | None:
        return await run_blocking(self._get_post, thread_id)

    async def get_comments_page(
        self,
        thread_id: str,
        max_items: int,
        after: int,
        before: int | None = None,
    ) -> List[Comment]:
        return await run_blocking(self._get_comments_page, thread_id, max_items, after, before)
