"""Profile Sync CLI application."""

import os
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from .. import __version__
from ..config import SyncConfig
from ..service import ProfileSync
from ..utils.logging import setup_logging

console = Console()


def find_config() -> Optional[str]:
    """
    Find config file using standard priority order:

    1. PROFILE_SYNC_CONFIG environment variable
    2. .profile-sync.yaml in current directory (project config)
    3. ~/.config/profile-sync/config.yaml (user config)

    Returns None if no config found.
    """
    env_config = os.environ.get("PROFILE_SYNC_CONFIG")
    if env_config:
        path = Path(env_config)
        if path.exists():
            return str(path)

    project_config = Path.cwd() / ".profile-sync.yaml"
    if project_config.exists():
        return str(project_config)

    user_config = Path.home() / ".config" / "profile-sync" / "config.yaml"
    if user_config.exists():
        return str(user_config)

    return None


def build_sync(ctx: click.Context) -> ProfileSync:
    """
    Build a ProfileSync from the CLI context.

    --store always selects the JSON store at that path, overriding config.
    """
    obj = ctx.obj or {}
    config_path = obj.get("config")
    config = SyncConfig.load(config_path) if config_path else SyncConfig()

    if obj.get("store"):
        config.store_backend = "json"
        config.store_path = obj["store"]
    if config.store_backend != "json":
        raise click.UsageError("The CLI needs a JSON store: pass --store PATH or set store.path")

    if obj.get("debug"):
        config.log_level = "DEBUG"
    elif obj.get("verbose"):
        config.log_level = "INFO"
    else:
        config.log_level = "WARNING"
    setup_logging(config)

    return ProfileSync.from_config(config)


@click.group()
@click.version_option(version=__version__, prog_name="profile-sync")
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
@click.option("--no-config", is_flag=True, help="Disable config auto-loading")
@click.option("--store", "-s", type=click.Path(dir_okay=False), help="JSON store file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--debug", is_flag=True, help="Debug mode")
@click.pass_context
def cli(ctx: click.Context, config: str, no_config: bool, store: str, verbose: bool, debug: bool) -> None:
    """Profile Sync: profile cache and denormalized-reference repair.

    Config file locations (in priority order):

        1. -c/--config PATH (explicit)

        2. PROFILE_SYNC_CONFIG env var

        3. .profile-sync.yaml (project config)

        4. ~/.config/profile-sync/config.yaml (user config)

    Examples:

        profile-sync -s store.json show u1 u2

        profile-sync -s store.json posts u1

        profile-sync -s store.json update u1 --name "New Name"
    """
    ctx.ensure_object(dict)

    if no_config:
        config = None
    elif config is None:
        config = find_config()
        if config and verbose:
            console.print(f"[dim]Using config: {config}[/dim]")

    ctx.obj["config"] = config
    ctx.obj["store"] = store
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug


# Import and register commands
from .commands import profiles, stats, version  # noqa: E402

cli.add_command(profiles.show)
cli.add_command(profiles.posts)
cli.add_command(profiles.update)
cli.add_command(stats.stats)
cli.add_command(version.version)
