"""Shared fixtures and an in-memory git service for testing."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from branchsync.core.config import BranchSyncConfig
from branchsync.exceptions import GitEnvironmentError
from branchsync.git.models import GitResult
from branchsync.sync.orchestrator import SyncOrchestrator


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Prevent .env file and shell env from leaking into tests."""
    monkeypatch.setitem(BranchSyncConfig.model_config, "env_file", None)
    for key in list(os.environ):
        if key.startswith("BRANCHSYNC_"):
            monkeypatch.delenv(key, raising=False)


class FakeGitService:
    """In-memory stand-in for GitService.

    Branches map to an upstream (or None) and the raw rev-list text the
    count query returns. Every call is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.is_repository = True
        self.current = "main"
        self.branches: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.fail_merge: dict[str, str] = {}
        self.fail_rebase: dict[str, str] = {}
        self.fail_checkout: set[str] = set()
        self.fail_fetch = False
        self.existing_refs: set[str] = set()
        self.in_progress: str | None = None
        # Failed merges/rebases leave the operation pending, as git does.
        self.conflicts_stay_pending = False

    def add_branch(
        self,
        name: str,
        upstream: str | None = None,
        counts: str | Exception = "0\t0\n",
    ) -> None:
        self.branches[name] = {"upstream": upstream, "counts": counts}

    def mutations(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("merge", "rebase", "checkout")]

    async def is_repo(self, cwd: Path) -> bool:
        self.calls.append(("is_repo",))
        return self.is_repository

    async def current_branch(self, cwd: Path) -> str:
        self.calls.append(("current_branch",))
        if not self.is_repository:
            raise GitEnvironmentError("fatal: not a git repository")
        return self.current

    async def upstream_branch(self, cwd: Path, branch: str) -> str | None:
        self.calls.append(("upstream_branch", branch))
        if branch not in self.branches:
            return None
        upstream = self.branches[branch]["upstream"]
        if isinstance(upstream, Exception):
            raise upstream
        return upstream

    async def ahead_behind_counts(self, cwd: Path, branch: str, upstream: str) -> str:
        self.calls.append(("ahead_behind_counts", branch, upstream))
        counts = self.branches[branch]["counts"]
        if isinstance(counts, Exception):
            raise counts
        return counts

    async def local_branches(self, cwd: Path) -> list[str]:
        self.calls.append(("local_branches",))
        return list(self.branches)

    async def ref_exists(self, cwd: Path, ref: str) -> bool:
        self.calls.append(("ref_exists", ref))
        if ref.startswith("refs/heads/"):
            return ref[len("refs/heads/") :] in self.branches
        return ref in self.existing_refs

    async def operation_in_progress(self, cwd: Path) -> str | None:
        self.calls.append(("operation_in_progress",))
        return self.in_progress

    async def checkout(self, cwd: Path, branch: str) -> GitResult:
        self.calls.append(("checkout", branch))
        if branch in self.fail_checkout:
            return GitResult(
                success=False,
                message=f"Failed to checkout '{branch}'",
                details="error: Your local changes would be overwritten by checkout",
            )
        self.current = branch
        return GitResult(success=True, message=f"Switched to branch '{branch}'")

    async def fetch(self, cwd: Path, remote: str) -> GitResult:
        self.calls.append(("fetch", remote))
        if self.fail_fetch:
            return GitResult(
                success=False,
                message=f"Failed to fetch from '{remote}'",
                details="fatal: unable to access remote",
            )
        return GitResult(success=True, message=f"Fetched from '{remote}'")

    async def merge(self, cwd: Path, upstream: str) -> GitResult:
        self.calls.append(("merge", self.current, upstream))
        if self.current in self.fail_merge:
            if self.conflicts_stay_pending:
                self.in_progress = "merge"
            return GitResult(
                success=False,
                message="Merge failed",
                details=self.fail_merge[self.current],
            )
        return GitResult(success=True, message=f"Merged '{upstream}'")

    async def rebase(self, cwd: Path, upstream: str) -> GitResult:
        self.calls.append(("rebase", self.current, upstream))
        if self.current in self.fail_rebase:
            if self.conflicts_stay_pending:
                self.in_progress = "rebase"
            return GitResult(
                success=False,
                message="Rebase failed",
                details=self.fail_rebase[self.current],
            )
        return GitResult(success=True, message=f"Rebased onto '{upstream}'")

    async def set_upstream(self, cwd: Path, branch: str, upstream: str) -> GitResult:
        self.calls.append(("set_upstream", branch, upstream))
        return GitResult(
            success=True, message=f"Upstream for '{branch}' set to '{upstream}'"
        )


@pytest.fixture
def fake_git():
    return FakeGitService()


@pytest.fixture
def orchestrator(fake_git, tmp_path):
    return SyncOrchestrator(fake_git, tmp_path)  # type: ignore[arg-type]
