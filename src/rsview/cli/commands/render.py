"""
Render Command - Render a DOT file to SVG.

The DOT text goes through the same repair pass as server output before
Graphviz sees it.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click

from ...graph.renderer import GraphRenderer
from ..utils import echo_error, echo_success


@click.command()
@click.argument("dot_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False),
    help="Output SVG (default: <name>_<timestamp>.svg in the current directory)",
)
def render(dot_file: str, output: Optional[str]):
    """
    Sanitize and render DOT_FILE to SVG.
    """
    source = Path(dot_file)
    surface_id = source.stem

    renderer = GraphRenderer()
    surface = asyncio.run(renderer.render(source.read_text(encoding="utf-8"), surface_id))
    if not surface.is_rendered:
        echo_error(surface.content)
        sys.exit(1)

    artifact = renderer.export_artifact(surface_id)
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(artifact.content, encoding="utf-8")
    else:
        path = artifact.write_to(Path.cwd())

    echo_success(f"Rendered {source.name} -> {path}")
