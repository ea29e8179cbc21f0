"""Apply or simulate the reconciling merge/rebase for one branch."""

from pathlib import Path

import structlog

from branchsync.git.models import (
    Ahead,
    GitResult,
    ResultUpToDate,
    SkippedAhead,
    SyncFailed,
    SyncPolicy,
    SyncResult,
    SyncStatus,
    Synced,
    Unknown,
    UpToDate,
    WouldSync,
)
from branchsync.git.service import GitService

logger = structlog.get_logger()


class ReconciliationExecutor:
    """Runs ``git merge`` or ``git rebase`` of an upstream into a branch.

    Failures are reported as SyncFailed with git's output preserved. Nothing
    is aborted, retried or rolled back: a conflicted merge or rebase is left
    exactly as git left it.
    """

    def __init__(self, service: GitService, cwd: Path) -> None:
        self._service = service
        self._cwd = cwd
        # Branch whose merge/rebase last stopped unfinished.
        self._blocked_by: str | None = None

    async def apply(
        self, branch: str, upstream: str, status: SyncStatus, policy: SyncPolicy
    ) -> SyncResult:
        match status:
            case UpToDate():
                return ResultUpToDate()
            case Ahead():
                return SkippedAhead()
            case Unknown():
                return SyncFailed(reason="Unable to determine sync status")

        if policy.dry_run:
            logger.info(
                "sync_would_apply",
                branch=branch,
                upstream=upstream,
                strategy=policy.strategy,
            )
            return WouldSync()

        pending = await self._service.operation_in_progress(self._cwd)
        if pending is not None:
            return self._blocked(branch, pending)

        current = await self._service.current_branch(self._cwd)
        if current != branch:
            switched = await self._service.checkout(self._cwd, branch)
            if not switched.success:
                return _failed(switched, branch)

        if policy.use_merge:
            result = await self._service.merge(self._cwd, upstream)
        else:
            result = await self._service.rebase(self._cwd, upstream)

        if not result.success:
            self._blocked_by = branch
            return _failed(result, branch)

        logger.info(
            "sync_applied", branch=branch, upstream=upstream, strategy=policy.strategy
        )
        return Synced()

    def _blocked(self, branch: str, pending: str) -> SyncFailed:
        origin = f" on '{self._blocked_by}'" if self._blocked_by else ""
        logger.warning(
            "sync_blocked",
            branch=branch,
            operation=pending,
            blocked_by=self._blocked_by,
        )
        return SyncFailed(
            reason=(
                f"A {pending} is in progress{origin}; "
                f"resolve or abort it before syncing '{branch}'"
            )
        )


def _failed(result: GitResult, branch: str) -> SyncFailed:
    logger.warning(
        "sync_failed", branch=branch, message=result.message, details=result.details
    )
    reason = f"{result.message}: {result.details}" if result.details else result.message
    return SyncFailed(reason=reason)
