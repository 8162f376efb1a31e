"""review command - gate a diff read from stdin."""

from __future__ import annotations

import json

import click
from rich.console import Console

from gitgandalf_core.config import load_config
from gitgandalf_core.decision import Action, Decision
from gitgandalf_core.errors import GandalfError
from gitgandalf_core.reviewer import STATUS_BINARY_ONLY, STATUS_NO_CHANGES, ReviewOutcome, run_review

console = Console()

_ACTION_STYLE = {
    Action.ALLOW: "green",
    Action.WARN: "yellow",
    Action.BLOCK: "red",
}


def print_decision(decision: Decision) -> None:
    """Render the gate decision for a human at a terminal."""
    style = _ACTION_STYLE.get(decision.action, "white")
    console.print(
        f"\n[bold {style}]{decision.action.value}[/bold {style}]  " f"risk [bold]{decision.risk.value}[/bold]"
    )
    console.print(f"  {decision.summary}", highlight=False, markup=False)
    if decision.issues:
        console.print(f"\n[bold]{len(decision.issues)} issue(s):[/bold]")
        for issue in decision.issues:
            console.print(f"  - {issue}", highlight=False, markup=False)
    else:
        console.print("  [dim]No issues reported.[/dim]")


def print_outcome(outcome: ReviewOutcome) -> None:
    if outcome.status == STATUS_NO_CHANGES:
        console.print("[yellow]Nothing to review: the diff is empty.[/yellow]")
        return
    if outcome.status == STATUS_BINARY_ONLY:
        console.print("[yellow]Only binary files changed. Skipping review.[/yellow]")
        return
    meta = outcome.metadata
    console.print(
        f"[dim]{meta.files_changed} file(s) changed, "
        f"+{meta.lines_added}/-{meta.lines_removed} line(s).[/dim]"
    )
    print_decision(outcome.decision)


@click.command("review")
@click.option("--model", default=None, help="Model identifier passed to the engine. Overrides config file.")
@click.option(
    "--timeout",
    "timeout_seconds",
    type=float,
    default=None,
    help="Seconds to wait for the engine before terminating it. Overrides config file.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the outcome as a JSON object.")
@click.pass_context
def review_cmd(ctx, model: str | None, timeout_seconds: float | None, as_json: bool):
    """Review a unified diff read from stdin.

    Exits 0 when it is safe to proceed (ALLOW, WARN, nothing to review,
    binary-only changes) and 1 otherwise (BLOCK or any failure).

    \b
    Example:
      git diff --cached | gitgandalf review
    """
    config_path = ctx.obj.get("config_path", ".gitgandalf.yml") if ctx.obj else ".gitgandalf.yml"
    stdin = click.get_text_stream("stdin")

    if not as_json:
        console.print("\n[bold cyan]Git Gandalf Review[/bold cyan]")
        console.print("[dim](reading input...)[/dim]")

    try:
        config = load_config(config_path, cli_overrides={"model": model, "timeout_seconds": timeout_seconds})
        outcome = run_review(stdin, config)
    except GandalfError as e:
        if as_json:
            click.echo(json.dumps({"status": "error", "error": type(e).__name__, "message": str(e)}))
        else:
            console.print(str(e), style="red", markup=False, highlight=False)
        ctx.exit(1)

    if as_json:
        click.echo(json.dumps(outcome.to_dict()))
    else:
        print_outcome(outcome)
    ctx.exit(outcome.exit_code)
