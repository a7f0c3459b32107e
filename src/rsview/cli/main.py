"""
rsview CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from ..config import ClientConfig
from .commands import analyze, info, render, sanitize, status
from .utils import echo_error


@click.group()
@click.version_option(package_name="rsview")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--server", help="Analysis server URL (overrides config and environment)")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Config file (default: .rsview/config.yaml)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, server: str, config_path: str):
    """rsview: Source analysis client and parse-tree viewer.

    Sends source files to an analysis server and renders the returned
    parse tree as SVG.

    \b
    Quick Start:
      rsview status
      rsview analyze main.rs --svg-out tree.svg
      rsview render tree.dot -o tree.svg
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="[%X]",
    )

    try:
        config = ClientConfig.load(Path(config_path) if config_path else None)
        if server:
            config.server_url = server
    except ValidationError as e:
        echo_error(f"Invalid configuration: {e}")
        sys.exit(2)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# Register commands
main.add_command(analyze.analyze)
main.add_command(status.status)
main.add_command(info.info)
main.add_command(render.render)
main.add_command(sanitize.sanitize)

if __name__ == "__main__":
    main()
