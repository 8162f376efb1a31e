"""init command - write the config file and install the pre-commit hook.

The hook pipes the staged diff into `gitgandalf review`; a non-zero exit
from the review (BLOCK or any failure) aborts the commit.
"""

from __future__ import annotations

import logging
import stat
import subprocess
from pathlib import Path

import click
import yaml
from rich.console import Console

from gitgandalf_core.config import DEFAULT_CONFIG

console = Console()
logger = logging.getLogger(__name__)

_HOOK_MARKER = "# installed by gitgandalf init"

_HOOK_TEMPLATE = """\
#!/bin/sh
{marker}
# Reviews the staged diff with a local model; BLOCK (or any failure) aborts the commit.
git diff --cached | gitgandalf --config "{config_path}" review
"""


@click.command("init")
@click.option("--model", default=None, help=f"Model identifier. Defaults to {DEFAULT_CONFIG['model']}.")
@click.option("--hook/--no-hook", default=True, show_default=True, help="Install a git pre-commit hook.")
@click.option("--force", is_flag=True, help="Overwrite an existing pre-commit hook without asking.")
@click.pass_context
def init_cmd(ctx, model: str | None, hook: bool, force: bool):
    """Set up gitgandalf for this repository.

    Creates (or updates) the config file and, unless --no-hook is given,
    installs a pre-commit hook that gates every commit.
    """
    config_path = ctx.obj.get("config_path", ".gitgandalf.yml") if ctx.obj else ".gitgandalf.yml"

    console.print("\n[bold cyan]gitgandalf init[/bold cyan]\n")

    _write_config(Path(config_path), {"model": model or DEFAULT_CONFIG["model"]})
    console.print(f"[green]Wrote {config_path}[/green]")

    if not hook:
        return

    hooks_dir = _detect_hooks_dir()
    if hooks_dir is None:
        raise click.ClickException("Not inside a git repository; cannot install the pre-commit hook.")

    hook_path = hooks_dir / "pre-commit"
    if hook_path.exists() and _HOOK_MARKER not in hook_path.read_text(errors="replace") and not force:
        if not click.confirm(f"{hook_path} already exists and was not written by gitgandalf. Overwrite?"):
            console.print("[yellow]Left the existing pre-commit hook untouched.[/yellow]")
            return

    _write_hook(hook_path, config_path)
    console.print(f"[green]Installed pre-commit hook at {hook_path}[/green]")


def _detect_hooks_dir() -> Path | None:
    """Return the repository's hooks directory, honouring core.hooksPath."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--git-path", "hooks"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        logger.debug("git rev-parse failed: %s", result.stderr.strip())
        return None
    return Path(result.stdout.strip())


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _write_hook(hook_path: Path, config_path: str) -> None:
    hook_path.parent.mkdir(parents=True, exist_ok=True)
    hook_path.write_text(_HOOK_TEMPLATE.format(marker=_HOOK_MARKER, config_path=config_path))
    mode = hook_path.stat().st_mode
    hook_path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
