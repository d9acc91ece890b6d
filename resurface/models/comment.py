"""Comment in a thread, as reconciled from the live and archival sources."""

from pydantic import BaseModel, Field


class Comment(BaseModel):
    """Canonical comment record.

    Ids are short (base36) ids; ``parent_id`` equals ``link_id`` for
    top-level replies. ``body`` is the best surviving copy of the original
    text, ``edited_body`` the current live text when it differs.
    """

    id: str
    parent_id: str
    link_id: str = Field(..., description="Id of the thread (post) the comment belongs to")
    author: str = ""
    body: str = ""
    created_utc: int = Field(..., description="Unix timestamp when the comment was created")
    score: int = 0
    subreddit: str = ""
    removed: bool = False
    deleted: bool = False
    edited_body: str | None = None
    edited: int | None = Field(default=None, description="Unix timestamp of the last edit, if edited")
    retrieved_on: int | None = Field(default=None, description="When the archival source captured the comment")
