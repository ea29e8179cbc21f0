"""Resolve the configured upstream of a local branch."""

from pathlib import Path

import structlog

from branchsync.git.service import GitService

logger = structlog.get_logger()


class UpstreamResolver:
    """Looks up ``<branch>@{upstream}``.

    A branch without upstream yields None. Only failures unrelated to the
    upstream configuration (not a repository, git missing) raise.
    """

    def __init__(self, service: GitService, cwd: Path) -> None:
        self._service = service
        self._cwd = cwd

    async def resolve(self, branch: str) -> str | None:
        if not branch:
            raise ValueError("branch name must not be empty")
        upstream = await self._service.upstream_branch(self._cwd, branch)
        if upstream is None:
            logger.debug("upstream_absent", branch=branch)
        return upstream


def remote_of(upstream: str) -> str | None:
    """Remote component of a ``remote/branch`` upstream name.

    None for an upstream that is another local branch.
    """
    remote, sep, _ = upstream.partition("/")
    if not sep or not remote:
        return None
    return remote
