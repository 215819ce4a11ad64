"""CLI entry point for reviewbot.

Commands:
  review        — analyze a pull request and post inline comments plus a summary
  handle-event  — run a saved pull_request webhook payload through the pipeline
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from reviewbot_cli.commands.event import handle_event_cmd
from reviewbot_cli.commands.review import review_cmd

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("reviewbot"),
    prog_name="reviewbot",
)
@click.option(
    "--config",
    "config_path",
    default=".reviewbot.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVIEWBOT_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Automated pull request analysis: security patterns, complexity, lint and AI review."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(handle_event_cmd)
