"""CLI entry point for gitgandalf.

Commands:
  review   - review a diff read from stdin and exit 0 (proceed) or 1 (stop)
  init     - write .gitgandalf.yml and optionally install a pre-commit hook
"""

from __future__ import annotations

import importlib.metadata
import logging
import sys

import click

from gitgandalf_cli.commands.init import init_cmd
from gitgandalf_cli.commands.review import review_cmd


def _setup_logging(verbose: bool) -> None:
    # stderr only: stdout carries the report (and --json output)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("gitgandalf"),
    prog_name="gitgandalf",
)
@click.option(
    "--config",
    "config_path",
    default=".gitgandalf.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="GITGANDALF_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log pipeline diagnostics to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Local-LLM commit gate: reviews a diff and decides ALLOW, WARN or BLOCK."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(init_cmd)
