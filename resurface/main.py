"""Resurface entry point.

Loads a thread from the live and archival sources and prints the
reconciled result. Usage: resurface THREAD_ID [--comment ID] [--context N].
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from resurface.adapters import PushshiftAdapter, RedditAdapter, SourceError
from resurface.config import AppConfig, load_config
from resurface.logging import ResurfaceLogging
from resurface.reconcile import InconsistentLinkError, LoggingObserver
from resurface.thread import PostNotFoundError, ThreadLoader, ThreadView


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="resurface",
        description="Resurface - show a thread with removed, deleted and edited comments restored",
    )
    parser.add_argument("thread_id", nargs="?", help="Thread (post) short id, e.g. 1abcde")
    parser.add_argument("--comment", help="Permalinked comment id; loads that comment's subtree")
    parser.add_argument("--context", type=int, default=0, help="Ancestors to show above --comment")
    parser.add_argument("--max-comments", type=int, default=None, help="Archival comments to download")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    parser.add_argument("--json", action="store_true", help="Print canonical comments as JSON")
    return parser.parse_args(argv)


def make_loader(config: AppConfig, thread_id: str, comment_id: str | None = None) -> ThreadLoader:
    """Build a ThreadLoader with HTTP adapters from config."""
    live = RedditAdapter(
        api_url=config.reddit.api_url,
        token=config.reddit_token_resolved,
        user_agent=config.reddit.user_agent,
        chunk_size=config.reddit.chunk_size,
        timeout=config.reddit.timeout,
    )
    archive = PushshiftAdapter(
        api_url=config.pushshift.api_url,
        page_size=config.pushshift.page_size,
        timeout=config.pushshift.timeout,
    )
    return ThreadLoader(
        live,
        archive,
        thread_id,
        config=config.loader,
        observer=LoggingObserver(),
        comment_id=comment_id,
    )


def format_summary(view: ThreadView) -> str:
    """Human-readable summary of a loaded thread."""
    post = view.post
    status = "removed" if post.removed else "deleted" if post.deleted else "live"
    lines = [
        f"{post.title or '(untitled)'} [{post.id}, {status}]",
        f"comments: {len(view.comments)} (removed {view.removed}, deleted {view.deleted})",
        f"loaded all comments: {'yes' if view.loaded_all_comments else 'no'}",
    ]
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """Entry point for resurface."""
    args = parse_args(argv)

    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")

    config = load_config(config_path)
    ResurfaceLogging(config.logging).setup()
    log = logging.getLogger("resurface.main")

    if args.check:
        print("Config OK:", config.reddit.api_url, config.pushshift.api_url)
        return 0
    if not args.thread_id:
        log.error("thread_id is required")
        return 2
    if args.max_comments:
        config.loader.max_comments = args.max_comments

    loader = make_loader(config, args.thread_id, args.comment)
    try:
        view = asyncio.run(loader.load(args.comment, context=args.context))
    except KeyboardInterrupt:
        loader.close()
        return 0
    except (SourceError, InconsistentLinkError, PostNotFoundError) as e:
        log.error("Could not load thread %s: %s", args.thread_id, e)
        return 1

    if args.json:
        payload = {
            "post": view.post.model_dump(mode="json"),
            "comments": [c.model_dump(mode="json", exclude_none=True) for c in view.comments.values()],
            "removed": view.removed,
            "deleted": view.deleted,
            "loaded_all_comments": view.loaded_all_comments,
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(format_summary(view))
    return 0


if __name__ == "__main__":
    sys.exit(main())
