"""``trustvet criteria``: List the audit criteria trustvet publishes."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from trustvet.config import load_config
from trustvet.core.model import STANDARD_CRITERIA
from trustvet.exceptions import TrustVetError


@click.command("criteria")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Also show the thresholds and caps of this configuration.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def criteria_command(config_path: str | None, output_format: str) -> None:
    """Show the standard criteria and the effective configuration."""
    try:
        config = load_config(Path(config_path) if config_path else None)
    except TrustVetError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if output_format == "json":
        click.echo(json.dumps({
            "criteria": {n: d.to_dict() for n, d in sorted(STANDARD_CRITERIA.items())},
            "config": config.to_dict(),
        }, indent=2))
        return

    from trustvet.cli.output import print_criteria
    print_criteria(STANDARD_CRITERIA)
    click.echo("\nThresholds:")
    for level, names in config.thresholds.to_dict().items():
        click.echo(f"  {level}: {', '.join(names) or '-'}")
    click.echo("Corroboration caps:")
    for source, names in config.corroboration.to_dict()["sources"].items():
        click.echo(f"  {source}: {', '.join(names)}")
