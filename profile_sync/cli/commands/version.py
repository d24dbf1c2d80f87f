"""Version command."""

import click
from rich.console import Console

from ... import __version__

console = Console()


@click.command()
def version() -> None:
    """Show Profile Sync version.

    Examples:

        profile-sync version
    """
    console.print(f"[bold]Profile Sync[/bold] v{__version__}")
