"""Data models for upstream sync state and reconciliation outcomes."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

BranchName = Annotated[str, Field(min_length=1)]


class GitResult(BaseModel):
    """Generic result from a git mutation operation."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    details: str = ""


class SyncPolicy(BaseModel):
    """How to reconcile a branch with its upstream, resolved once per run."""

    model_config = ConfigDict(frozen=True)

    use_merge: bool = False
    dry_run: bool = False

    @property
    def strategy(self) -> Literal["merge", "rebase"]:
        return "merge" if self.use_merge else "rebase"


# --- SyncStatus: how a branch relates to its upstream ---


class UpToDate(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["up_to_date"] = "up_to_date"


class Behind(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["behind"] = "behind"
    count: PositiveInt


class Ahead(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["ahead"] = "ahead"
    count: PositiveInt


class Diverged(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["diverged"] = "diverged"
    behind: PositiveInt
    ahead: PositiveInt


class Unknown(BaseModel):
    """Upstream missing, or the ahead/behind query could not run."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unknown"] = "unknown"


SyncStatus = Annotated[
    UpToDate | Behind | Ahead | Diverged | Unknown, Field(discriminator="kind")
]


# --- SyncResult: outcome of reconciling one branch ---


class ResultUpToDate(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["up_to_date"] = "up_to_date"


class Synced(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["synced"] = "synced"


class WouldSync(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["would_sync"] = "would_sync"


class SkippedAhead(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["ahead"] = "ahead"


class SyncFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    reason: str


SyncResult = Annotated[
    ResultUpToDate | Synced | WouldSync | SkippedAhead | SyncFailed,
    Field(discriminator="kind"),
]


class BranchSyncOutcome(BaseModel):
    """Terminal state of the per-branch pipeline.

    ``result`` is None only when no upstream is configured; ``attempted`` is
    True when the reconciliation executor was invoked for the branch.
    """

    model_config = ConfigDict(frozen=True)

    branch: BranchName
    upstream: str | None = None
    status: SyncStatus | None = None
    result: SyncResult | None = None
    attempted: bool = False

    @property
    def has_upstream(self) -> bool:
        return self.upstream is not None

    @property
    def failed(self) -> bool:
        return isinstance(self.result, SyncFailed)


class SyncReport(BaseModel):
    """Aggregate of a batch run over every tracked branch."""

    model_config = ConfigDict(frozen=True)

    policy: SyncPolicy
    outcomes: list[BranchSyncOutcome] = []
    excluded: list[str] = []

    def _count(self, kind: str) -> int:
        return sum(
            1 for o in self.outcomes if o.result is not None and o.result.kind == kind
        )

    @property
    def synced(self) -> int:
        return self._count("synced")

    @property
    def would_sync(self) -> int:
        return self._count("would_sync")

    @property
    def up_to_date(self) -> int:
        return self._count("up_to_date")

    @property
    def ahead(self) -> int:
        return self._count("ahead")

    @property
    def failed(self) -> int:
        return self._count("error")

    @property
    def classified(self) -> int:
        return len(self.outcomes)


class UpstreamEntry(BaseModel):
    """One row of the upstream status listing."""

    model_config = ConfigDict(frozen=True)

    branch: BranchName
    upstream: str | None = None
    status: SyncStatus = Unknown()
    is_current: bool = False
    error: str | None = None
