"""Drive resolve -> classify -> reconcile for one branch or every branch."""

from pathlib import Path

import structlog

from branchsync.exceptions import (
    BranchSyncError,
    CountParseError,
    GitCommandError,
    GitEnvironmentError,
)
from branchsync.git.models import (
    Ahead,
    BranchSyncOutcome,
    GitResult,
    ResultUpToDate,
    SkippedAhead,
    SyncFailed,
    SyncPolicy,
    SyncReport,
    SyncStatus,
    Unknown,
    UpToDate,
    UpstreamEntry,
)
from branchsync.git.service import GitService
from branchsync.sync.classifier import classify
from branchsync.sync.executor import ReconciliationExecutor
from branchsync.sync.resolver import UpstreamResolver, remote_of

logger = structlog.get_logger()


class SyncOrchestrator:
    """Entry point for single-branch and batch synchronization.

    Branches are processed one at a time: the working tree is a single
    exclusive resource and every git call completes before the next starts.
    """

    def __init__(
        self,
        service: GitService,
        cwd: Path,
        *,
        resolver: UpstreamResolver | None = None,
        executor: ReconciliationExecutor | None = None,
    ) -> None:
        self._service = service
        self._cwd = cwd
        self._resolver = resolver or UpstreamResolver(service, cwd)
        self._executor = executor or ReconciliationExecutor(service, cwd)

    async def sync_branch(
        self, policy: SyncPolicy, branch: str | None = None, *, fetch: bool = True
    ) -> BranchSyncOutcome:
        """Sync one branch (the current one by default) with its upstream.

        A missing upstream ends the pipeline with an outcome whose result is
        None. Unknown branch names, environment failures, fetch failures and
        malformed counts raise.
        """
        await self._ensure_repo()
        if branch is None:
            branch = await self._service.current_branch(self._cwd)
        elif not await self._service.ref_exists(self._cwd, f"refs/heads/{branch}"):
            raise GitCommandError(f"Branch '{branch}' does not exist")

        upstream = await self._resolver.resolve(branch)
        if upstream is None:
            logger.info("sync_no_upstream", branch=branch)
            return BranchSyncOutcome(branch=branch)

        if fetch and not policy.dry_run:
            await self._fetch(upstream)

        status = await self._status_of(branch, upstream)
        return await self._reconcile(branch, upstream, status, policy)

    async def sync_all(self, policy: SyncPolicy) -> SyncReport:
        """Sync every local branch that has an upstream.

        A failure on one branch is recorded and the batch moves on; the
        returned report always covers every tracked branch.
        """
        await self._ensure_repo()
        branches = await self._service.local_branches(self._cwd)
        logger.info(
            "sync_all_started",
            branches=len(branches),
            strategy=policy.strategy,
            dry_run=policy.dry_run,
        )

        outcomes: list[BranchSyncOutcome] = []
        excluded: list[str] = []
        for branch in branches:
            try:
                upstream = await self._resolver.resolve(branch)
            except GitCommandError as e:
                outcomes.append(
                    BranchSyncOutcome(branch=branch, result=_error_from(e))
                )
                continue
            if upstream is None:
                excluded.append(branch)
                continue
            outcomes.append(await self._sync_tracked(branch, upstream, policy))

        report = SyncReport(policy=policy, outcomes=outcomes, excluded=excluded)
        logger.info(
            "sync_all_finished",
            classified=report.classified,
            synced=report.synced,
            would_sync=report.would_sync,
            ahead=report.ahead,
            failed=report.failed,
            excluded=len(report.excluded),
        )
        return report

    async def upstream_status(self) -> list[UpstreamEntry]:
        """Every local branch with its upstream and sync status."""
        await self._ensure_repo()
        branches = await self._service.local_branches(self._cwd)
        try:
            current = await self._service.current_branch(self._cwd)
        except GitCommandError:
            current = None

        entries: list[UpstreamEntry] = []
        for branch in branches:
            try:
                upstream = await self._resolver.resolve(branch)
            except GitCommandError as e:
                entries.append(
                    UpstreamEntry(
                        branch=branch,
                        is_current=branch == current,
                        error=_error_from(e).reason,
                    )
                )
                continue
            status: SyncStatus = Unknown()
            if upstream is not None:
                try:
                    status = await self._status_of(branch, upstream)
                except CountParseError:
                    status = Unknown()
            entries.append(
                UpstreamEntry(
                    branch=branch,
                    upstream=upstream,
                    status=status,
                    is_current=branch == current,
                )
            )
        return entries

    async def set_upstream(self, upstream: str, branch: str | None = None) -> GitResult:
        """Point branch (the current one by default) at a remote-tracking ref."""
        error = validate_upstream_format(upstream)
        if error:
            return GitResult(success=False, message=error)

        await self._ensure_repo()
        if not await self._service.ref_exists(self._cwd, upstream):
            return GitResult(
                success=False, message=f"Upstream branch '{upstream}' does not exist"
            )
        if branch is None:
            branch = await self._service.current_branch(self._cwd)
        result = await self._service.set_upstream(self._cwd, branch, upstream)
        logger.info(
            "upstream_set", branch=branch, upstream=upstream, success=result.success
        )
        return result

    async def _sync_tracked(
        self, branch: str, upstream: str, policy: SyncPolicy
    ) -> BranchSyncOutcome:
        """Batch pipeline for one branch; never raises BranchSyncError."""
        try:
            status = await self._status_of(branch, upstream)
        except BranchSyncError as e:
            return BranchSyncOutcome(
                branch=branch, upstream=upstream, result=_error_from(e)
            )
        try:
            return await self._reconcile(branch, upstream, status, policy)
        except BranchSyncError as e:
            return BranchSyncOutcome(
                branch=branch,
                upstream=upstream,
                status=status,
                result=_error_from(e),
                attempted=True,
            )

    async def _reconcile(
        self, branch: str, upstream: str, status: SyncStatus, policy: SyncPolicy
    ) -> BranchSyncOutcome:
        match status:
            case UpToDate():
                logger.debug("sync_skipped", branch=branch, reason="up_to_date")
                return BranchSyncOutcome(
                    branch=branch,
                    upstream=upstream,
                    status=status,
                    result=ResultUpToDate(),
                )
            case Ahead():
                logger.debug("sync_skipped", branch=branch, reason="ahead")
                return BranchSyncOutcome(
                    branch=branch,
                    upstream=upstream,
                    status=status,
                    result=SkippedAhead(),
                )
            case Unknown():
                return BranchSyncOutcome(
                    branch=branch,
                    upstream=upstream,
                    status=status,
                    result=SyncFailed(reason="Unable to determine sync status"),
                )

        result = await self._executor.apply(branch, upstream, status, policy)
        return BranchSyncOutcome(
            branch=branch,
            upstream=upstream,
            status=status,
            result=result,
            attempted=True,
        )

    async def _status_of(self, branch: str, upstream: str) -> SyncStatus:
        """Classify branch against upstream.

        A failed count query yields Unknown; malformed output raises
        CountParseError.
        """
        try:
            raw = await self._service.ahead_behind_counts(self._cwd, branch, upstream)
        except GitCommandError as e:
            logger.warning(
                "sync_status_unknown", branch=branch, upstream=upstream, error=str(e)
            )
            return Unknown()
        return classify(raw)

    async def _fetch(self, upstream: str) -> None:
        remote = remote_of(upstream)
        if remote is None:
            return
        result = await self._service.fetch(self._cwd, remote)
        if not result.success:
            raise GitCommandError(result.message, details=result.details)

    async def _ensure_repo(self) -> None:
        if not await self._service.is_repo(self._cwd):
            raise GitEnvironmentError(f"Not a git repository: {self._cwd}")


def validate_upstream_format(upstream: str) -> str | None:
    """Return an error message unless upstream looks like ``remote/branch``."""
    if not upstream:
        return "Upstream cannot be empty"
    remote, sep, branch = upstream.partition("/")
    if not sep:
        return "Upstream must be in format 'remote/branch' (e.g., origin/main)"
    if not remote or not branch:
        return "Invalid upstream format. Use 'remote/branch' format"
    return None


def _error_from(exc: BranchSyncError) -> SyncFailed:
    message = str(exc)
    details = getattr(exc, "details", "")
    return SyncFailed(reason=f"{message}: {details}" if details else message)
