"""Tests for ReconciliationExecutor."""

import pytest

from branchsync.git.models import (
    Ahead,
    Behind,
    Diverged,
    ResultUpToDate,
    SkippedAhead,
    SyncFailed,
    SyncPolicy,
    Synced,
    Unknown,
    UpToDate,
    WouldSync,
)
from branchsync.sync.executor import ReconciliationExecutor


@pytest.fixture
def executor(fake_git, tmp_path):
    return ReconciliationExecutor(fake_git, tmp_path)  # type: ignore[arg-type]


class TestNoAction:
    async def test_up_to_date(self, executor, fake_git):
        result = await executor.apply("main", "origin/main", UpToDate(), SyncPolicy())
        assert result == ResultUpToDate()
        assert fake_git.mutations() == []

    async def test_ahead_is_never_reconciled(self, executor, fake_git):
        for policy in (
            SyncPolicy(),
            SyncPolicy(use_merge=True),
            SyncPolicy(dry_run=True),
        ):
            result = await executor.apply("main", "origin/main", Ahead(count=2), policy)
            assert result == SkippedAhead()
        assert fake_git.mutations() == []

    async def test_unknown_reports_error(self, executor, fake_git):
        result = await executor.apply("main", "origin/main", Unknown(), SyncPolicy())
        assert isinstance(result, SyncFailed)
        assert fake_git.mutations() == []


class TestDryRun:
    async def test_behind_would_sync(self, executor, fake_git):
        result = await executor.apply(
            "main", "origin/main", Behind(count=3), SyncPolicy(dry_run=True)
        )
        assert result == WouldSync()
        assert fake_git.mutations() == []

    async def test_diverged_would_sync_with_merge(self, executor, fake_git):
        result = await executor.apply(
            "main",
            "origin/main",
            Diverged(behind=2, ahead=4),
            SyncPolicy(use_merge=True, dry_run=True),
        )
        assert result == WouldSync()
        assert fake_git.mutations() == []


class TestApply:
    async def test_rebase_by_default(self, executor, fake_git):
        result = await executor.apply(
            "main", "origin/main", Behind(count=3), SyncPolicy()
        )
        assert result == Synced()
        assert fake_git.mutations() == [("rebase", "main", "origin/main")]

    async def test_merge_when_requested(self, executor, fake_git):
        result = await executor.apply(
            "main", "origin/main", Behind(count=1), SyncPolicy(use_merge=True)
        )
        assert result == Synced()
        assert fake_git.mutations() == [("merge", "main", "origin/main")]

    async def test_checks_out_other_branch_first(self, executor, fake_git):
        fake_git.current = "main"
        result = await executor.apply(
            "develop", "origin/develop", Behind(count=1), SyncPolicy()
        )
        assert result == Synced()
        assert fake_git.mutations() == [
            ("checkout", "develop"),
            ("rebase", "develop", "origin/develop"),
        ]

    async def test_checkout_failure_is_error(self, executor, fake_git):
        fake_git.fail_checkout.add("develop")
        result = await executor.apply(
            "develop", "origin/develop", Behind(count=1), SyncPolicy()
        )
        assert isinstance(result, SyncFailed)
        assert "Failed to checkout 'develop'" in result.reason
        assert "local changes" in result.reason
        assert ("rebase", "develop", "origin/develop") not in fake_git.calls

    async def test_conflict_preserves_reason(self, executor, fake_git):
        fake_git.fail_rebase["main"] = "CONFLICT (content): Merge conflict in app.py"
        result = await executor.apply(
            "main", "origin/main", Diverged(behind=2, ahead=4), SyncPolicy()
        )
        assert isinstance(result, SyncFailed)
        assert result.reason.startswith("Rebase failed")
        assert "CONFLICT (content)" in result.reason

    async def test_failure_is_not_retried_or_aborted(self, executor, fake_git):
        fake_git.fail_merge["main"] = "CONFLICT"
        await executor.apply(
            "main", "origin/main", Behind(count=1), SyncPolicy(use_merge=True)
        )
        assert fake_git.mutations() == [("merge", "main", "origin/main")]


class TestPendingOperation:
    async def test_pending_rebase_blocks_without_git_mutation(self, executor, fake_git):
        fake_git.in_progress = "rebase"
        result = await executor.apply(
            "develop", "origin/develop", Behind(count=1), SyncPolicy()
        )
        assert isinstance(result, SyncFailed)
        assert "rebase is in progress" in result.reason
        assert fake_git.mutations() == []

    async def test_names_branch_left_unfinished(self, executor, fake_git):
        fake_git.conflicts_stay_pending = True
        fake_git.fail_rebase["main"] = "CONFLICT"
        await executor.apply("main", "origin/main", Behind(count=1), SyncPolicy())

        result = await executor.apply(
            "develop", "origin/develop", Behind(count=1), SyncPolicy()
        )
        assert result == SyncFailed(
            reason="A rebase is in progress on 'main'; "
            "resolve or abort it before syncing 'develop'"
        )
        assert ("checkout", "develop") not in fake_git.calls

    async def test_dry_run_does_not_inspect_state(self, executor, fake_git):
        fake_git.in_progress = "merge"
        result = await executor.apply(
            "main", "origin/main", Behind(count=1), SyncPolicy(dry_run=True)
        )
        assert result == WouldSync()
        assert ("operation_in_progress",) not in fake_git.calls
