"""review command — analyze a pull request."""

from __future__ import annotations

import asyncio

import click
from rich.console import Console

from reviewbot_core.errors import ReviewBotError
from reviewbot_core.reviewer import run_review

console = Console()


@click.command("review")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="Completion provider for AI review. Overrides config file.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the review instead of posting it to GitHub.",
)
@click.pass_context
def review_cmd(ctx, repo: str, pr_number: int, model: str | None, shadow: bool):
    """Analyze a GitHub pull request and post the findings.

    Runs the security, complexity, ESLint and AI analyzers over the changed
    files, posts up to 30 inline comments and a scored summary comment.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token with pull request write access
      ANTHROPIC_API_KEY    Enables AI review with --model anthropic
      OPENAI_API_KEY       Enables AI review with --model openai
    """
    from reviewbot_core.config import load_config

    config = load_config(ctx.obj["config_path"], cli_overrides={"model": model})

    if not config.get("github_token"):
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN.\n" "Create a token at https://github.com/settings/tokens"
        )
    if not config.get(f"{config['model']}_api_key"):
        console.print(
            f"[yellow]{config['model'].upper()}_API_KEY is not set; running without AI review.[/yellow]"
        )

    try:
        summary = asyncio.run(run_review(repo=repo, pr_number=pr_number, config=config, shadow=shadow))
    except (ValueError, ReviewBotError) as e:
        raise click.ClickException(str(e))

    if summary is not None:
        console.print(
            f"[bold]Score:[/bold] {summary.score}/100  [bold]Risk:[/bold] {summary.risk_level}  "
            f"[bold]Issues:[/bold] {summary.total_issues}"
        )
