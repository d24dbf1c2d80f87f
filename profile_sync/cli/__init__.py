"""Profile Sync command line interface."""

from .app import cli

__all__ = ["cli"]


def main() -> None:
    """Console script entry point."""
    cli(obj={})
