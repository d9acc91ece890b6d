"""Reddit API adapter (live source)."""

from typing import Any, Dict, List

import requests

from resurface.adapters.base import LiveSource, SourceError, run_blocking
from resurface.models import Comment, Post
from resurface.text import short_id


def _edited_from_api(value: Any) -> int | None:
    # Reddit sends false when never edited, else a float timestamp
    if value is None or isinstance(value, bool):
        return None
    return int(value)


def _comment_from_api(data: Dict[str, Any], thread_id: str = "") -> Comment:
    link_id = short_id(data.get("link_id"), thread_id)
    return Comment(
        id=data["id"],
        parent_id=short_id(data.get("parent_id"), link_id),
        link_id=link_id,
        author=data.get("author") or "",
        body=data.get("body") or "",
        created_utc=int(data.get("created_utc") or 0),
        score=data.get("score") or 0,
        subreddit=data.get("subreddit") or "",
        edited=_edited_from_api(data.get("edited")),
    )


def _post_from_api(data: Dict[str, Any]) -> Post:
    return Post(
        id=data["id"],
        subreddit=data.get("subreddit") or "",
        title=data.get("title") or "",
        author=data.get("author") or "",
        selftext=data.get("selftext") or "",
        url=data.get("url") or "",
        is_self=data.get("is_self"),
        score=data.get("score") or 0,
        num_comments=data.get("num_comments") or 0,
        created_utc=int(data["created_utc"]) if data.get("created_utc") else None,
        edited=_edited_from_api(data.get("edited")),
        removed_by_category=data.get("removed_by_category"),
    )


def _flatten_chain(listing: Dict[str, Any], comment_id: str) -> List[Dict[str, Any]]:
    """Walk the single-branch context listing from the furthest ancestor down to comment_id."""
    chain: List[Dict[str, Any]] = []
    children = (listing.get("data") or {}).get("children") or []
    while children:
        node = children[0]
        if node.get("kind") != "t1":
            break
        data = node.get("data") or {}
        chain.append(data)
        if data.get("id") == comment_id:
            break
        replies = data.get("replies") or {}
        children = (replies.get("data") or {}).get("children") if isinstance(replies, dict) else None
    return chain


class RedditAdapter(LiveSource):
    """Reddit API implementation."""

    def __init__(
        self,
        api_url: str = "https://www.reddit.com",
        token: str | None = None,
        user_agent: str = "resurface/0.1",
        chunk_size: int = 100,
        timeout: int = 30,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self.chunk_size = chunk_size
        self._session = requests.Session()
        self._session.headers["User-Agent"] = user_agent
        if token:
            self._session.headers["Authorization"] = f"bearer {token}"

    def _request(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        url = f"{self._api_url}{path}"
        try:
            resp = self._session.request("GET", url, params=params, timeout=self._timeout)
        except requests.RequestException as e:
            raise SourceError(f"Could not reach Reddit: {e}", source="reddit") from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                msg = resp.json().get("message", msg)
            except Exception:
                pass
            raise SourceError(f"{resp.status_code}: {msg}", status_code=resp.status_code, source="reddit")
        return resp.json()

    def _info(self, fullnames: List[str]) -> List[Dict[str, Any]]:
        data = self._request("/api/info.json", params={"id": ",".join(fullnames), "raw_json": 1})
        return [child.get("data") or {} for child in ((data or {}).get("data") or {}).get("children") or []]

    def _get_post(self, thread_id: str) -> Post:
        found = self._info([f"t3_{thread_id}"])
        if not found:
            raise SourceError(f"404: post {thread_id} not found", status_code=404, source="reddit")
        return _post_from_api(found[0])

    def _get_comments(self, ids: List[str]) -> List[Comment]:
        if not ids:
            return []
        out: List[Comment] = []
        for start in range(0, len(ids), self.chunk_size):
            chunk = ids[start : start + self.chunk_size]
            out.extend(_comment_from_api(d) for d in self._info([f"t1_{i}" for i in chunk]) if d.get("id"))
        return out

    def _get_ancestor_chain(self, thread_id: str, comment_id: str, depth: int) -> List[Comment]:
        data = self._request(
            f"/comments/{thread_id}/_/{comment_id}.json",
            params={"context": depth, "limit": 1, "depth": 1, "raw_json": 1},
        )
        if not isinstance(data, list) or len(data) < 2:
            raise SourceError(f"Unexpected context response for comment {comment_id}", source="reddit")
        return [_comment_from_api(d, thread_id) for d in _flatten_chain(data[1], comment_id)]

    async def get_post(self, thread_id: str) -> Post:
        return await run_blocking(self._get_post, thread_id)

    async def get_comments(self, ids: List[str]) -> List[Comment]:
        return await run_blocking(self._get_comments, list(ids))

    async def get_ancestor_chain(self, thread_id: str, comment_id: str, depth: int) -> List[Comment]:
        return await run_blocking(self._get_ancestor_chain, thread_id, comment_id, depth)
