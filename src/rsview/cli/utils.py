"""
CLI Utilities - Shared helper functions for command line operations.

Formatted printing plus access to the ClientConfig that the ``rsview`` group
stores on the click context.
"""

import click

from ..config import ClientConfig


def echo_success(message: str) -> None:
    """Green checkmark line on stdout."""
    click.echo(click.style(f"✅ {message}", fg="green"))


def echo_error(message: str) -> None:
    """Red cross line on stderr, leaving stdout to ``--json`` output."""
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str, err: bool = False) -> None:
    """
    Print a warning message with a yellow alert symbol.

    Args:
        message (str): The warning message to display.
        err (bool): Write to stderr, keeping stdout clean for piped output.
    """
    click.echo(click.style(f"⚠️  {message}", fg="yellow"), err=err)


def echo_info(message: str) -> None:
    click.echo(click.style(f"   {message}", dim=True))


def get_config(ctx: click.Context) -> ClientConfig:
    """Config loaded by the group, or a fresh one when run standalone."""
    obj = ctx.find_object(dict) or {}
    config = obj.get("config")
    if config is None:
        config = ClientConfig.load()
    return config
