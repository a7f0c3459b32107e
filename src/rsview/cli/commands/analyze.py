"""
Analyze Command - Submit a source file to the analysis server.

Prints the token stream and any syntax errors, and optionally saves the
parse tree as DOT and as rendered SVG.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ...client.service import AnalysisService
from ...core.errors import AnalysisValidationError, TransportError
from ...core.types import AnalysisResult
from ...graph.renderer import GraphRenderer
from ..utils import echo_error, echo_success, echo_warning, get_config

logger = logging.getLogger(__name__)

console = Console()

SURFACE_ID = "parse_tree"


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Output the raw result as JSON")
@click.option("--dot-out", type=click.Path(dir_okay=False), help="Save the parse tree DOT here")
@click.option("--svg-out", type=click.Path(dir_okay=False), help="Render the parse tree to this SVG")
@click.option("--no-cache", is_flag=True, help="Bypass the result cache")
@click.pass_context
def analyze(
    ctx: click.Context,
    file: str,
    as_json: bool,
    dot_out: Optional[str],
    svg_out: Optional[str],
    no_cache: bool,
):
    """
    Analyze FILE on the server.
    """
    config = get_config(ctx)
    if no_cache:
        config = config.model_copy(update={"cache_enabled": False})

    code = Path(file).read_text(encoding="utf-8")
    service = AnalysisService.from_config(config)

    try:
        result = asyncio.run(service.analyze(code))
    except AnalysisValidationError as e:
        echo_error(str(e))
        sys.exit(2)
    except TransportError as e:
        echo_error(f"Analysis failed ({service.server_url}): {e}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_payload(), indent=2))
    else:
        _print_result(result)

    if dot_out:
        Path(dot_out).write_text(result.parse_tree.dot, encoding="utf-8")
        if not as_json:
            echo_success(f"Parse tree DOT saved to {dot_out}")

    if svg_out:
        renderer = GraphRenderer()
        surface = asyncio.run(renderer.render(result.parse_tree.dot, SURFACE_ID))
        if not surface.is_rendered:
            echo_warning(surface.content, err=True)
            sys.exit(1)
        artifact = renderer.export_artifact(SURFACE_ID)
        Path(svg_out).write_text(artifact.content, encoding="utf-8")
        if not as_json:
            echo_success(f"Parse tree SVG saved to {svg_out}")


def _print_result(result: AnalysisResult) -> None:
    tokens = Table(title=f"Tokens ({len(result.tokens)})")
    tokens.add_column("Type", style="cyan")
    tokens.add_column("Text")
    tokens.add_column("Line", justify="right")
    tokens.add_column("Column", justify="right")
    for token in result.tokens:
        tokens.add_row(token.type, token.text, str(token.line), str(token.column))
    console.print(tokens)

    if not result.errors:
        echo_success("No syntax errors")
        return

    errors = Table(title=f"Errors ({len(result.errors)})", title_style="bold red")
    errors.add_column("Line", justify="right")
    errors.add_column("Column", justify="right")
    errors.add_column("Message", style="red")
    for err in result.errors:
        errors.add_row(str(err.line), str(err.column), err.message)
    console.print(errors)
