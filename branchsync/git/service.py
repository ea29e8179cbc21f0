"""Async wrapper for the git CLI queries and mutations used by sync."""

import asyncio
import contextlib
from pathlib import Path
from typing import NoReturn

import structlog

from branchsync.exceptions import GitCommandError, GitEnvironmentError
from branchsync.git.models import GitResult

logger = structlog.get_logger()

_NO_UPSTREAM_MARKERS = (
    "no upstream configured",
    "no such branch",
    "does not point to a branch",
    "not stored as a remote-tracking branch",
)
_ENVIRONMENT_MARKERS = (
    "not a git repository",
    "is not installed or not in path",
    "directory does not exist",
)


class GitService:
    """Async wrapper for git CLI operations.

    Every call is a single subprocess awaited to completion. ``timeout`` of
    None waits for git however long it takes.
    """

    def __init__(
        self, *, git_executable: str = "git", timeout: float | None = None
    ) -> None:
        self._git = git_executable
        self._timeout = timeout

    async def is_repo(self, cwd: Path) -> bool:
        """Check if cwd is inside a git repository."""
        code, _, _ = await self._run("rev-parse", "--is-inside-work-tree", cwd=cwd)
        return code == 0

    async def current_branch(self, cwd: Path) -> str:
        """Name of the checked-out branch."""
        code, stdout, stderr = await self._run(
            "rev-parse", "--abbrev-ref", "HEAD", cwd=cwd
        )
        if code != 0:
            _raise_for_failure("Failed to get current branch", stderr)
        branch = stdout.strip()
        if not branch or branch == "HEAD":
            raise GitCommandError("HEAD is detached; no current branch")
        return branch

    async def upstream_branch(self, cwd: Path, branch: str) -> str | None:
        """Return the upstream of branch, or None when none is configured."""
        code, stdout, stderr = await self._run(
            "rev-parse",
            "--abbrev-ref",
            "--symbolic-full-name",
            f"{branch}@{{upstream}}",
            cwd=cwd,
        )
        if code == 0:
            return stdout.strip() or None
        lowered = stderr.lower()
        if any(marker in lowered for marker in _NO_UPSTREAM_MARKERS):
            return None
        _raise_for_failure(f"Failed to resolve upstream of '{branch}'", stderr)

    async def ahead_behind_counts(self, cwd: Path, branch: str, upstream: str) -> str:
        """Raw ``<behind>\\t<ahead>`` text from rev-list.

        Left side counts commits only on upstream, right side commits only
        on branch.
        """
        code, stdout, stderr = await self._run(
            "rev-list",
            "--left-right",
            "--count",
            f"{upstream}...{branch}",
            "--",
            cwd=cwd,
        )
        if code != 0:
            _raise_for_failure(
                f"Failed to compare '{branch}' with '{upstream}'", stderr
            )
        return stdout

    async def local_branches(self, cwd: Path) -> list[str]:
        """Local branch names in git's ref order."""
        code, stdout, stderr = await self._run(
            "branch", "--format=%(refname:short)", cwd=cwd
        )
        if code != 0:
            _raise_for_failure("Failed to list local branches", stderr)
        branches: list[str] = []
        for line in stdout.splitlines():
            name = line.strip()
            # Skip detached HEAD
            if not name or name.startswith("("):
                continue
            branches.append(name)
        return branches

    async def ref_exists(self, cwd: Path, ref: str) -> bool:
        code, _, _ = await self._run("rev-parse", "--verify", "--quiet", ref, cwd=cwd)
        return code == 0

    async def operation_in_progress(self, cwd: Path) -> str | None:
        """Return "rebase" or "merge" when one is waiting to be resolved."""
        code, stdout, stderr = await self._run(
            "rev-parse",
            "--git-path",
            "rebase-merge",
            "--git-path",
            "rebase-apply",
            "--git-path",
            "MERGE_HEAD",
            cwd=cwd,
        )
        if code != 0:
            _raise_for_failure("Failed to inspect repository state", stderr)
        paths = stdout.splitlines()
        if len(paths) != 3:
            raise GitCommandError(
                "Unexpected output inspecting repository state", details=stdout
            )
        rebase_merge, rebase_apply, merge_head = (cwd / p for p in paths)
        if rebase_merge.exists() or rebase_apply.exists():
            return "rebase"
        if merge_head.exists():
            return "merge"
        return None

    async def checkout(self, cwd: Path, branch: str) -> GitResult:
        """Checkout an existing local branch."""
        if not branch or branch.startswith("-"):
            return GitResult(success=False, message=f"Invalid branch name: {branch}")

        code, stdout, stderr = await self._run("checkout", branch, "--", cwd=cwd)
        if code == 0:
            return GitResult(
                success=True,
                message=f"Switched to branch '{branch}'",
                details=stdout.strip() or stderr.strip(),
            )
        return GitResult(
            success=False,
            message=f"Failed to checkout '{branch}'",
            details=stderr.strip() or stdout.strip(),
        )

    async def fetch(self, cwd: Path, remote: str) -> GitResult:
        code, stdout, stderr = await self._run("fetch", remote, cwd=cwd)
        output = stderr.strip() or stdout.strip()
        if code == 0:
            return GitResult(
                success=True, message=f"Fetched from '{remote}'", details=output
            )
        return GitResult(
            success=False, message=f"Failed to fetch from '{remote}'", details=output
        )

    async def merge(self, cwd: Path, upstream: str) -> GitResult:
        """Merge upstream into the checked-out branch."""
        code, stdout, stderr = await self._run(
            "merge", "--no-edit", upstream, cwd=cwd
        )
        if code == 0:
            return GitResult(
                success=True,
                message=f"Merged '{upstream}'",
                details=stdout.strip(),
            )
        return GitResult(
            success=False,
            message="Merge failed",
            details=_failure_output(stdout, stderr),
        )

    async def rebase(self, cwd: Path, upstream: str) -> GitResult:
        """Rebase the checked-out branch onto upstream."""
        code, stdout, stderr = await self._run("rebase", upstream, cwd=cwd)
        if code == 0:
            return GitResult(
                success=True,
                message=f"Rebased onto '{upstream}'",
                details=stdout.strip() or stderr.strip(),
            )
        return GitResult(
            success=False,
            message="Rebase failed",
            details=_failure_output(stdout, stderr),
        )

    async def set_upstream(self, cwd: Path, branch: str, upstream: str) -> GitResult:
        code, stdout, stderr = await self._run(
            "branch", f"--set-upstream-to={upstream}", branch, cwd=cwd
        )
        if code == 0:
            return GitResult(
                success=True,
                message=f"Upstream for '{branch}' set to '{upstream}'",
                details=stdout.strip(),
            )
        return GitResult(
            success=False,
            message=f"Failed to set upstream for '{branch}'",
            details=stderr.strip() or stdout.strip(),
        )

    async def _run(self, *args: str, cwd: Path) -> tuple[int, str, str]:
        """Execute a git command via asyncio.create_subprocess_exec."""
        if not cwd.is_dir():
            return 1, "", f"Directory does not exist: {cwd}"

        cmd = (self._git, *args)
        logger.debug("git_exec", command=cmd, cwd=str(cwd))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout
            )
            stdout = stdout_bytes.decode("utf-8", errors="replace")
            stderr = stderr_bytes.decode("utf-8", errors="replace")
            return proc.returncode or 0, stdout, stderr
        except TimeoutError:
            logger.warning("git_exec_timeout", command=cmd, timeout=self._timeout)
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            return 1, "", f"Command timed out after {self._timeout}s"
        except FileNotFoundError:
            return 1, "", f"{self._git} is not installed or not in PATH"
        except OSError as e:
            logger.error("git_exec_error", command=cmd, error=str(e))
            return 1, "", str(e)


def _raise_for_failure(message: str, stderr: str) -> NoReturn:
    """Raise the exception type matching a failed git query."""
    details = stderr.strip()
    if any(marker in details.lower() for marker in _ENVIRONMENT_MARKERS):
        raise GitEnvironmentError(details or message)
    raise GitCommandError(message, details=details)


def _failure_output(stdout: str, stderr: str) -> str:
    """Combine git's output streams so conflict listings are not lost."""
    return "\n".join(part for part in (stderr.strip(), stdout.strip()) if part)
