"""trustvet CLI: Web-of-trust reviews to criteria-based audits.

Entry point for the ``trustvet`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    convert   Convert trust verdicts and update the audit ledger.
    show      Display (and optionally validate) an audit ledger.
    fetch     Download a curated package list for corroboration.
    criteria  List the published criteria and effective configuration.

Usage::

    trustvet convert --verdicts verdicts.json
    trustvet convert --verdicts verdicts.json --corroborations guix.yaml \\
        --known-versions releases.json --ledger supply-chain/audits.json
    trustvet show supply-chain/audits.json --check
    trustvet fetch debian --cache-dir ~/.cache/trustvet -o debian.json
    trustvet criteria --config trustvet.yaml
"""

from __future__ import annotations

import logging

import click

from trustvet import __version__, _PRODUCT_ID
from trustvet.cli.convert_cmd import convert_command
from trustvet.cli.criteria_cmd import criteria_command
from trustvet.cli.fetch_cmd import fetch_command
from trustvet.cli.show_cmd import show_command


@click.group()
@click.version_option(version=__version__, prog_name=_PRODUCT_ID)
@click.option("--verbose", "-v", count=True, help="Log more (repeat for debug output).")
def cli(verbose: int) -> None:
    """trustvet: Turn web-of-trust package reviews into audit records.

    Maps reviewer trust levels to audit criteria, merges consecutive
    versions into ranges, corroborates with curated distributions, and
    reconciles the result with hand-written audits.
    """
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# Register all subcommands
cli.add_command(convert_command)
cli.add_command(show_command)
cli.add_command(fetch_command)
cli.add_command(criteria_command)
