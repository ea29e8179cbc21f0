"""CLI entry point for branchsync."""

import asyncio
from enum import IntEnum

import structlog
import typer
from pydantic import ValidationError

from branchsync.app import build_orchestrator, configure_logging
from branchsync.core.config import BranchSyncConfig
from branchsync.exceptions import BranchSyncError
from branchsync.git import formatter
from branchsync.git.models import SyncPolicy
from branchsync.sync.orchestrator import SyncOrchestrator

logger = structlog.get_logger()


class ExitCode(IntEnum):
    SUCCESS = 0
    SYNC_FAILED = 1
    USER_ERROR = 2


app = typer.Typer(
    name="branchsync",
    help="Keep local branches in step with their upstreams.",
    no_args_is_help=True,
)
upstream_app = typer.Typer(help="Manage upstream branch relationships.")
app.add_typer(upstream_app, name="upstream")

_MERGE_OPTION = typer.Option(
    False, "--merge", help="Use merge instead of rebase to reconcile."
)
_DRY_RUN_OPTION = typer.Option(
    False, "--dry-run", help="Show what would be synced without doing it."
)


def _load_orchestrator() -> SyncOrchestrator:
    try:
        config = BranchSyncConfig()
    except ValidationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(ExitCode.USER_ERROR) from e
    configure_logging(config)
    return build_orchestrator(config)


def _fail(error: BranchSyncError) -> typer.Exit:
    logger.error("command_failed", error=str(error), error_type=type(error).__name__)
    typer.echo(f"\u274c {error}", err=True)
    details = getattr(error, "details", "")
    if details:
        typer.echo(details, err=True)
    return typer.Exit(ExitCode.USER_ERROR)


@app.command()
def sync(
    branch: str | None = typer.Argument(
        None, help="Branch to sync (default: the current branch)."
    ),
    merge: bool = _MERGE_OPTION,
    dry_run: bool = _DRY_RUN_OPTION,
    fetch: bool = typer.Option(
        True, "--fetch/--no-fetch", help="Fetch the upstream's remote first."
    ),
) -> None:
    """Sync one branch with its upstream (fetch + rebase by default)."""
    orchestrator = _load_orchestrator()
    policy = SyncPolicy(use_merge=merge, dry_run=dry_run)
    try:
        outcome = asyncio.run(
            orchestrator.sync_branch(policy, branch=branch, fetch=fetch)
        )
    except BranchSyncError as e:
        raise _fail(e) from e

    typer.echo(formatter.format_sync_outcome(outcome, policy))
    if outcome.failed:
        raise typer.Exit(ExitCode.SYNC_FAILED)


@upstream_app.command("sync-all")
def sync_all(merge: bool = _MERGE_OPTION, dry_run: bool = _DRY_RUN_OPTION) -> None:
    """Sync every local branch that has an upstream."""
    orchestrator = _load_orchestrator()
    policy = SyncPolicy(use_merge=merge, dry_run=dry_run)
    try:
        report = asyncio.run(orchestrator.sync_all(policy))
    except BranchSyncError as e:
        raise _fail(e) from e

    typer.echo(formatter.format_sync_report(report))
    if report.failed:
        raise typer.Exit(ExitCode.SYNC_FAILED)


@upstream_app.command("status")
def upstream_status() -> None:
    """Show upstream and sync status for all branches."""
    orchestrator = _load_orchestrator()
    try:
        entries = asyncio.run(orchestrator.upstream_status())
    except BranchSyncError as e:
        raise _fail(e) from e
    typer.echo(formatter.format_upstream_status(entries))


@upstream_app.command("set")
def upstream_set(
    upstream: str = typer.Argument(..., help="Upstream reference, e.g. origin/main."),
) -> None:
    """Set the upstream of the current branch."""
    orchestrator = _load_orchestrator()
    try:
        result = asyncio.run(orchestrator.set_upstream(upstream))
    except BranchSyncError as e:
        raise _fail(e) from e

    icon = "\U0001f517" if result.success else ""
    typer.echo(formatter.format_git_result(result, emoji=icon))
    if not result.success:
        raise typer.Exit(ExitCode.USER_ERROR)


def run() -> None:
    app()
