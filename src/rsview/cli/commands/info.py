"""
Info Command - Show what the analysis server reports about itself.
"""

import asyncio
import json
import sys

import click

from ...client.service import AnalysisService
from ..utils import echo_error, get_config


@click.command()
@click.pass_context
def info(ctx: click.Context):
    """
    Print the server's /info document as JSON.
    """
    service = AnalysisService.from_config(get_config(ctx))
    data = asyncio.run(service.get_server_info())

    if data is None:
        echo_error(f"No server info available from {service.server_url}")
        sys.exit(1)

    click.echo(json.dumps(data, indent=2, sort_keys=True))
