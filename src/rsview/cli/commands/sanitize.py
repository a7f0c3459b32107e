"""
Sanitize Command - Print the repaired form of a DOT file.
"""

from pathlib import Path

import click

from ...graph.sanitizer import DotSanitizer
from ..utils import echo_warning


@click.command()
@click.argument("dot_file", type=click.Path(exists=True, dir_okay=False))
def sanitize(dot_file: str):
    """
    Repair DOT_FILE and print the result to stdout.

    When repair is abandoned, the decoded input is printed and the reason is
    reported on stderr.
    """
    sanitizer = DotSanitizer()
    outcome = sanitizer.sanitize(Path(dot_file).read_text(encoding="utf-8"))

    if outcome.is_ok():
        click.echo(outcome.value)
        return

    warning = outcome.unwrap_err()
    echo_warning(f"Repair skipped: {warning.reason}", err=True)
    click.echo(warning.text)
