"""Live and archival source adapters."""

from resurface.adapters.base import ArchiveSource, LiveSource, SourceError
from resurface.adapters.pushshift import PushshiftAdapter
from resurface.adapters.reddit import RedditAdapter

__all__ = ["ArchiveSource", "LiveSource", "SourceError", "PushshiftAdapter", "RedditAdapter"]
