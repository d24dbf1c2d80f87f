"""Rich rendering helpers for the CLI."""

from datetime import datetime
from typing import Dict, Iterable, Optional

from rich.table import Table
from rich.text import Text

from ..types import Post, Profile, RepairResult, utc_now


def format_time_ago(when: datetime, now: Optional[datetime] = None) -> str:
    """Human-readable age, e.g. "3 hours ago". Future times read "just now"."""
    now = now or utc_now()
    seconds = int((now - when).total_seconds())
    if seconds < 60:
        return "just now"

    for unit, size in (
        ("year", 365 * 86400),
        ("month", 30 * 86400),
        ("week", 7 * 86400),
        ("day", 86400),
        ("hour", 3600),
        ("minute", 60),
    ):
        count = seconds // size
        if count >= 1:
            return f"{count} {unit}{'s' if count > 1 else ''} ago"
    return "just now"


def profiles_table(uids: Iterable[str], profiles: Dict[str, Profile]) -> Table:
    table = Table(title="Profiles")
    table.add_column("UID", style="cyan", no_wrap=True)
    table.add_column("Display name")
    table.add_column("Avatar", style="dim")
    table.add_column("Updated", style="dim")

    for uid in uids:
        profile = profiles.get(uid)
        if profile is None:
            table.add_row(uid, "[red]not found[/red]", "-", "-")
        else:
            table.add_row(uid, profile.display_name, profile.photo_url or "-",
                          format_time_ago(profile.updated_at))
    return table


def post_text(post: Post) -> Text:
    """One post with its comments, indented."""
    text = Text()
    text.append(post.author_name or post.author_id, style="bold")
    text.append(f"  {format_time_ago(post.created_at)}  ({post.id})\n", style="dim")
    text.append(f"{post.content}\n")
    if post.likes:
        text.append(f"{len(post.likes)} likes\n", style="dim")
    for comment in post.comments:
        text.append(f"  {comment.author_name or comment.author_id}: ", style="cyan")
        text.append(f"{comment.content}\n")
    return text


def repair_summary(result: RepairResult) -> str:
    return (
        f"Repaired {result.posts_matched} posts and {result.comments_rewritten} comments "
        f"({result.operations} writes in {result.batches} batches, {result.duration_ms}ms)"
    )
