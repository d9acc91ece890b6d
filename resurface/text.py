"""Placeholder-body detection and id helpers."""

REMOVED_BODIES = frozenset(
    {
        "[removed]",
        "[ Removed by Reddit ]",
        "[removed by reddit]",
        "[removed too quickly to be archived]",
    }
)
DELETED_BODIES = frozenset({"[deleted]", "[deleted by user]"})


def is_removed(body: str | None) -> bool:
    """True if the body is a moderator/admin removal placeholder."""
    return (body or "").strip() in REMOVED_BODIES


def is_deleted(body: str | None) -> bool:
    """True if the body is an author deletion placeholder."""
    return (body or "").strip() in DELETED_BODIES


def short_id(fullname: str | None, default: str = "") -> str:
    """Strip a type prefix (t1_, t3_) from a fullname.

    Returns default when fullname is empty.
    """
    if not fullname:
        return default
    kind, sep, rest = fullname.partition("_")
    if sep and len(kind) == 2 and kind.startswith("t") and kind[1].isdigit():
        return rest
    return fullname
