"""handle-event command — feed a saved webhook payload through the pipeline."""

from __future__ import annotations

import asyncio
import json

import click
from rich.console import Console

from reviewbot_core.reviewer import handle_pull_request_event, should_process

console = Console()


@click.command("handle-event")
@click.argument("payload_file", type=click.File("r"))
@click.option(
    "--event",
    "event_name",
    default="pull_request",
    show_default=True,
    help="Value of the X-GitHub-Event header the payload was delivered with.",
)
@click.pass_context
def handle_event_cmd(ctx, payload_file, event_name: str):
    """Process a pull_request webhook payload saved as JSON.

    The payload is assumed to be already validated; only opened, reopened
    and synchronize actions are reviewed.
    """
    from reviewbot_core.config import load_config

    try:
        payload = json.load(payload_file)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="PAYLOAD_FILE")

    if not should_process(event_name, payload):
        console.print(f"[yellow]Nothing to do for {event_name} event.[/yellow]")
        return

    config = load_config(ctx.obj["config_path"])
    summary = asyncio.run(handle_pull_request_event(payload, config))
    if summary is None:
        console.print("[yellow]No review was produced. See the log for details.[/yellow]")
    else:
        console.print(f"[green]Posted review: score {summary.score}/100, {summary.total_issues} issue(s).[/green]")
