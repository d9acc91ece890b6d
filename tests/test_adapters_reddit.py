"""Unit tests for Reddit adapter (mocked API)."""

from unittest.mock import Mock, patch

import pytest
import requests

from resurface.adapters.base import SourceError
from resurface.adapters.reddit import RedditAdapter
from resurface.models import Comment, Post


@pytest.fixture
def adapter() -> RedditAdapter:
    return RedditAdapter(api_url="https://reddit.test", token="test-token", chunk_size=2)


def _listing(*items: dict, kind: str = "t1") -> dict:
    return {"kind": "Listing", "data": {"children": [{"kind": kind, "data": d} for d in items]}}


def _ok(payload: object) -> Mock:
    mock_resp = Mock()
    mock_resp.status_code = 200
    mock_resp.json.return_value = payload
    return mock_resp


def test_session_headers(adapter: RedditAdapter) -> None:
    """Token and user agent are sent with every request."""
    assert adapter._session.headers["Authorization"] == "bearer test-token"
    assert adapter._session.headers["User-Agent"] == "resurface/0.1"


@pytest.mark.asyncio
async def test_get_comments_maps_fields(adapter: RedditAdapter) -> None:
    """Fullnames are shortened and 'edited: false' becomes None."""
    raw = {
        "id": "abc",
        "parent_id": "t1_par",
        "link_id": "t3_xyz",
        "author": "alice",
        "body": "hello",
        "created_utc": 1600000000.0,
        "score": 5,
        "subreddit": "test",
        "edited": False,
    }
    with patch.object(adapter._session, "request", return_value=_ok(_listing(raw))) as req:
        comments = await adapter.get_comments(["abc"])

    assert len(comments) == 1
    c = comments[0]
    assert isinstance(c, Comment)
    assert c.id == "abc"
    assert c.parent_id == "par"
    assert c.link_id == "xyz"
    assert c.created_utc == 1600000000
    assert c.edited is None
    call_args = req.call_args
    assert call_args[0][0] == "GET"
    assert call_args[0][1] == "https://reddit.test/api/info.json"
    assert call_args[1]["params"]["id"] == "t1_abc"


def test_get_comments_splits_into_chunks(adapter: RedditAdapter) -> None:
    """More ids than chunk_size are looked up in several requests."""
    with patch.object(adapter._session, "request", return_value=_ok(_listing())) as req:
        assert adapter._get_comments(["a", "b", "c"]) == []

    assert req.call_count == 2
    assert req.call_args_list[0][1]["params"]["id"] == "t1_a,t1_b"
    assert req.call_args_list[1][1]["params"]["id"] == "t1_c"


def test_get_comments_empty_makes_no_request(adapter: RedditAdapter) -> None:
    with patch.object(adapter._session, "request") as req:
        assert adapter._get_comments([]) == []
    req.assert_not_called()


def test_edited_timestamp_kept(adapter: RedditAdapter) -> None:
    raw = {"id": "e", "parent_id": "t3_x", "link_id": "t3_x", "created_utc": 10, "edited": 1700000000.5}
    with patch.object(adapter._session, "request", return_value=_ok(_listing(raw))):
        (c,) = adapter._get_comments(["e"])
    assert c.edited == 1700000000
    assert c.parent_id == "x"


@pytest.mark.asyncio
async def test_get_post_success(adapter: RedditAdapter) -> None:
    raw = {
        "id": "xyz",
        "title": "A post",
        "selftext": "text",
        "is_self": True,
        "score": 12,
        "num_comments": 3,
        "created_utc": 1600000000,
        "removed_by_category": None,
    }
    with patch.object(adapter._session, "request", return_value=_ok(_listing(raw, kind="t3"))) as req:
        post = await adapter.get_post("xyz")

    assert isinstance(post, Post)
    assert post.title == "A post"
    assert post.is_self is True
    assert post.num_comments == 3
    assert req.call_args[1]["params"]["id"] == "t3_xyz"


def test_get_post_not_found(adapter: RedditAdapter) -> None:
    """An empty info listing is reported as a 404."""
    with patch.object(adapter._session, "request", return_value=_ok(_listing())):
        with pytest.raises(SourceError) as exc_info:
            adapter._get_post("gone")
    assert exc_info.value.is_not_found


def test_forbidden_raises(adapter: RedditAdapter) -> None:
    """HTTP 403 (quarantined or banned) is distinguishable from other failures."""
    mock_resp = Mock()
    mock_resp.status_code = 403
    mock_resp.text = "Forbidden"
    mock_resp.json.return_value = {"message": "Forbidden", "reason": "quarantined"}

    with patch.object(adapter._session, "request", return_value=mock_resp):
        with pytest.raises(SourceError) as exc_info:
            adapter._get_post("xyz")
    assert exc_info.value.is_forbidden
    assert not exc_info.value.is_not_found
    assert "403" in str(exc_info.value)
    assert exc_info.value.source == "reddit"


def test_network_error_raises(adapter: RedditAdapter) -> None:
    with patch.object(adapter._session, "request", side_effect=requests.ConnectionError("boom")):
        with pytest.raises(SourceError) as exc_info:
            adapter._get_comments(["a"])
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_ancestor_chain_furthest_first(adapter: RedditAdapter) -> None:
    """The nested context listing is flattened from the furthest ancestor down to the comment."""
    tgt = {"id": "tgt", "parent_id": "t1_p", "link_id": "t3_xyz", "created_utc": 30, "replies": ""}
    parent = {"id": "p", "parent_id": "t1_gp", "link_id": "t3_xyz", "created_utc": 20, "replies": _listing(tgt)}
    grandparent = {"id": "gp", "parent_id": "t3_xyz", "link_id": "t3_xyz", "created_utc": 10, "replies": _listing(parent)}
    payload = [_listing({"id": "xyz"}, kind="t3"), _listing(grandparent)]

    with patch.object(adapter._session, "request", return_value=_ok(payload)) as req:
        chain = await adapter.get_ancestor_chain("xyz", "tgt", 2)

    assert [c.id for c in chain] == ["gp", "p", "tgt"]
    assert chain[0].parent_id == "xyz"
    assert "/comments/xyz/_/tgt.json" in req.call_args[0][1]
    assert req.call_args[1]["params"]["context"] == 2


def test_ancestor_chain_unexpected_payload(adapter: RedditAdapter) -> None:
    with patch.object(adapter._session, "request", return_value=_ok({"error": 500})):
        with pytest.raises(SourceError):
            adapter._get_ancestor_chain("xyz", "tgt", 2)
