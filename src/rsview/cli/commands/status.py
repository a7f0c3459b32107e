"""
Status Command - Probe the analysis server's health endpoint.
"""

import asyncio
import sys

import click

from ...client.service import AnalysisService
from ..utils import echo_error, echo_success, get_config


@click.command()
@click.pass_context
def status(ctx: click.Context):
    """
    Check whether the analysis server is reachable.

    Exits with code 1 when the server is offline.
    """
    service = AnalysisService.from_config(get_config(ctx))
    result = asyncio.run(service.check_status())

    if result.online:
        echo_success(f"{service.server_url}: {result.message}")
        return

    echo_error(f"{service.server_url} is offline: {result.message}")
    sys.exit(1)
