"""Command-line interface for autoland."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from . import __version__
from .auto_approve import auto_approve_prs
from .auto_merge import auto_merge_prs
from .config import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    load_approve_config,
    resolve_repository,
    resolve_token,
)
from .github_client import GitHubClient
from .output import RunLog
from .readiness import DETAIL, POLICIES, Evidence, PolicyContext, evaluate
from .runner import PullOutcome, evidence_loader

app = typer.Typer(
    name="autoland",
    help="autoland -- approve and merge green pull requests from CI.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _client(repo: Optional[str]) -> GitHubClient:
    try:
        owner, name = resolve_repository(repo)
        token = resolve_token()
    except ConfigError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(2)
    return GitHubClient(owner, name, token)


def _load_config(config: Optional[str]):
    try:
        return load_approve_config(Path(config) if config else None)
    except ConfigError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(2)


def _log(as_json: bool) -> RunLog:
    # Keep stdout clean for the JSON document.
    return RunLog(err_console if as_json else console)


def _report(outcomes: list[PullOutcome], as_json: bool) -> None:
    if as_json:
        console.print_json(json.dumps([o.to_dict() for o in outcomes]))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def version() -> None:
    """Print the autoland version."""
    console.print(f"autoland {__version__}")


@app.command()
def approve(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help=f"Allow-list JSON (default: {DEFAULT_CONFIG_PATH})"
    ),
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help="owner/repo (default: $GITHUB_REPOSITORY)"),
    dry_run: bool = typer.Option(False, "--dry-run"),
    as_json: bool = typer.Option(False, "--json", help="Print per-PR outcomes as JSON"),
) -> None:
    """Approve open PRs from authorized authors whose CI is green."""
    cfg = _load_config(config)
    client = _client(repo)
    outcomes = auto_approve_prs(client, cfg, log=_log(as_json), dry_run=dry_run)
    _report(outcomes, as_json)


@app.command()
def merge(
    repo: Optional[str] = typer.Option(None, "--repo", "-r", help="owner/repo (default: $GITHUB_REPOSITORY)"),
    dry_run: bool = typer.Option(False, "--dry-run"),
    as_json: bool = typer.Option(False, "--json", help="Print per-PR outcomes as JSON"),
) -> None:
    """Squash-merge approved, green, conflict-free PRs."""
    client = _client(repo)
    outcomes = auto_merge_prs(client, log=_log(as_json), dry_run=dry_run)
    _report(outcomes, as_json)


@app.command()
def check(
    pr_number: int = typer.Argument(..., help="Pull-request number"),
    policy: str = typer.Option("merge", "--policy", "-p", help="approve | merge"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Allow-list JSON (approve policy only)"),
    repo: Optional[str] = typer.Option(None, "--repo", "-r"),
) -> None:
    """Show whether one PR is ready, without approving or merging it."""
    if policy not in POLICIES:
        err_console.print(f"[red]Unknown policy: {policy} (choose from {', '.join(POLICIES)})[/red]")
        raise typer.Exit(2)

    ctx = PolicyContext()
    if policy == "approve":
        cfg = _load_config(config)
        ctx = PolicyContext(authorized_users=cfg.authorized_users, bot_login=cfg.bot_login)

    client = _client(repo)
    pr = client.get_pull(pr_number)
    log = RunLog(console)
    log.header(f"PR #{pr.number}: {pr.title} ({policy})")
    # The PR was just fetched on its own, so its mergeability is already current.
    evidence = Evidence(pr=pr, loaded=frozenset({DETAIL}))
    decision = evaluate(POLICIES[policy], evidence, ctx, evidence_loader(client))
    log.decision(decision)
    if not decision.ready:
        raise typer.Exit(1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
