"""Profile lookup and update commands."""

import asyncio
from typing import List, Optional, Tuple

import click
from rich.console import Console

from ...errors import ProfileSyncError
from ...events import RepairEvent, RepairStatus
from ..app import build_sync
from ..display import post_text, profiles_table, repair_summary

console = Console()


@click.command()
@click.argument("uids", nargs=-1, required=True)
@click.pass_context
def show(ctx: click.Context, uids: Tuple[str, ...]) -> None:
    """Show profiles, resolved through the cache in one batched lookup.

    Examples:

        profile-sync -s store.json show u1 u2 u3
    """
    asyncio.run(_show_async(ctx, list(uids)))


async def _show_async(ctx: click.Context, uids: List[str]) -> None:
    sync = build_sync(ctx)
    try:
        profiles = await sync.get_profiles(uids)
    except ProfileSyncError as e:
        raise click.ClickException(str(e))
    console.print(profiles_table(uids, profiles))


@click.command()
@click.argument("uid")
@click.option("--limit", "-n", type=int, default=20, help="Max posts to show")
@click.pass_context
def posts(ctx: click.Context, uid: str, limit: int) -> None:
    """Show a user's posts, newest first, with current author data.

    Examples:

        profile-sync -s store.json posts u1 -n 5
    """
    asyncio.run(_posts_async(ctx, uid, limit))


async def _posts_async(ctx: click.Context, uid: str, limit: int) -> None:
    sync = build_sync(ctx)
    try:
        user_posts = await sync.get_user_posts(uid)
    except ProfileSyncError as e:
        raise click.ClickException(str(e))

    if not user_posts:
        console.print("[dim]No posts found[/dim]")
        return
    for post in user_posts[:limit]:
        console.print(post_text(post))


@click.command()
@click.argument("uid")
@click.option("--name", "display_name", default=None, help="New display name")
@click.option("--photo-url", default=None, help="New avatar URL")
@click.option("--bio", default=None, help="New bio")
@click.pass_context
def update(
    ctx: click.Context,
    uid: str,
    display_name: Optional[str],
    photo_url: Optional[str],
    bio: Optional[str],
) -> None:
    """Update a profile and repair copies of its name and avatar.

    Waits for the repair to finish before exiting.

    Examples:

        profile-sync -s store.json update u1 --name "Ada L."

        profile-sync -s store.json update u1 --photo-url https://img/ada.png
    """
    if display_name is None and photo_url is None and bio is None:
        raise click.UsageError("Nothing to update: pass --name, --photo-url or --bio")
    asyncio.run(_update_async(ctx, uid, display_name, photo_url, bio))


async def _update_async(
    ctx: click.Context,
    uid: str,
    display_name: Optional[str],
    photo_url: Optional[str],
    bio: Optional[str],
) -> None:
    sync = build_sync(ctx)
    outcome: List[RepairEvent] = []

    @sync.on(RepairEvent)
    def on_repair(event: RepairEvent) -> None:
        if event.status is not RepairStatus.STARTED:
            outcome.append(event)

    try:
        await sync.update_profile(uid, display_name=display_name, photo_url=photo_url, bio=bio)
    except ProfileSyncError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]Updated profile {uid}[/green]")

    await sync.close()

    for event in outcome:
        if event.status is RepairStatus.COMPLETED and event.result:
            console.print(repair_summary(event.result))
        elif event.status is RepairStatus.FAILED:
            console.print(f"[red]Repair failed:[/red] {event.error}")
            ctx.exit(1)
