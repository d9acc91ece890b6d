"""Data models for posts, comments and contigs (Pydantic)."""

from resurface.models.comment import Comment
from resurface.models.contig import Contig
from resurface.models.post import Post

__all__ = ["Comment", "Contig", "Post"]
