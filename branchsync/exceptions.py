"""Shared exception types for branchsync."""


class BranchSyncError(Exception):
    """Base exception for all branchsync errors."""


class GitEnvironmentError(BranchSyncError):
    """Not inside a git repository, or git itself is unavailable."""


class GitCommandError(BranchSyncError):
    """A git query failed for a reason other than a missing upstream."""

    def __init__(self, message: str, *, details: str = "") -> None:
        super().__init__(message)
        self.details = details


class CountParseError(BranchSyncError, ValueError):
    """Ahead/behind counts could not be parsed from git output."""
