"""Thread submission (post)."""

from pydantic import BaseModel


class Post(BaseModel):
    """Post heading a thread."""

    id: str
    subreddit: str = ""
    title: str = ""
    author: str = ""
    selftext: str = ""
    url: str = ""
    is_self: bool | None = None
    score: int = 0
    num_comments: int = 0
    created_utc: int | None = None
    edited: int | None = None
    removed_by_category: str | None = None
    removed: bool = False
    deleted: bool = False
    edited_selftext: str | None = None
