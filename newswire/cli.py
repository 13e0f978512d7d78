"""Command line: run the HTTP server or print a one-off digest."""
from __future__ import annotations

import argparse
import asyncio
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from .classifier import Digest, build_digest
from .core import NewsAggregator
from .log import configure_logging
from .models import Story
from .settings import get_settings


def _story_line(item: Story) -> str:
    when = item.published_at.strftime("%Y-%m-%d %H:%M") if item.published_at else "time unknown"
    return f"{item.title}\n  {item.source} - {when}\n  <{item.link}>"


def render_digest(digest: Digest, limit: int = 5) -> str:
    if digest.lead is None:
        return "No stories available right now."

    lines: List[str] = [f"Top story ({digest.total} stories)", "", _story_line(digest.lead), f"  {digest.lead.tldr}"]
    if digest.related:
        lines += ["", "Related:"]
        lines += [f"  - {it.title} <{it.link}>" for it in digest.related]
    for group in digest.groups:
        lines += ["", f"{group.topic} ({len(group.items)})"]
        lines += [_story_line(it) for it in group.items[:limit]]
    return "\n".join(lines)


async def _digest_once() -> Digest:
    result = await NewsAggregator.from_settings(get_settings()).aggregate()
    return build_digest(result)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="newswire", description="Aggregate news feeds.")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("serve", help="run the HTTP API")
    digest = sub.add_parser("digest", help="aggregate once and print a digest")
    digest.add_argument("--limit", type=int, default=5, help="stories shown per topic")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    if args.command == "serve":
        import uvicorn

        from .api import create_app

        uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)
        return 0

    print(render_digest(asyncio.run(_digest_once()), limit=max(1, args.limit)))
    return 0
