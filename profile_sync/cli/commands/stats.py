"""Cache statistics command."""

import asyncio
from typing import List, Tuple

import click
from rich.console import Console
from rich.table import Table

from ...errors import ProfileSyncError
from ..app import build_sync

console = Console()


@click.command()
@click.argument("uids", nargs=-1, required=True)
@click.option("--rounds", "-r", type=int, default=2, help="Times to resolve the uids")
@click.pass_context
def stats(ctx: click.Context, uids: Tuple[str, ...], rounds: int) -> None:
    """Resolve uids repeatedly and report cache behaviour.

    The first round is served by the store, later rounds by the cache.

    Examples:

        profile-sync -s store.json stats u1 u2 u3 -r 3
    """
    asyncio.run(_stats_async(ctx, list(uids), rounds))


async def _stats_async(ctx: click.Context, uids: List[str], rounds: int) -> None:
    sync = build_sync(ctx)
    try:
        for _ in range(rounds):
            await sync.get_profiles(uids)
    except ProfileSyncError as e:
        raise click.ClickException(str(e))

    table = Table(title="Profile cache")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in sync.cache.stats().items():
        shown = f"{value:.0%}" if key == "hit_rate" else str(value)
        table.add_row(key, shown)
    console.print(table)
