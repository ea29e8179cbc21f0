"""Pure functions to format sync state for terminal display."""

from branchsync.git.models import (
    Ahead,
    Behind,
    BranchSyncOutcome,
    Diverged,
    GitResult,
    ResultUpToDate,
    SkippedAhead,
    SyncFailed,
    SyncPolicy,
    SyncReport,
    SyncResult,
    SyncStatus,
    Synced,
    UpToDate,
    UpstreamEntry,
    WouldSync,
)

_NO_UPSTREAM = "no upstream"


def format_status(status: SyncStatus) -> str:
    """Glyph and text for a SyncStatus."""
    match status:
        case UpToDate():
            return "\u2705 up-to-date"
        case Behind(count=count):
            return f"\u2b07\ufe0f {count} behind"
        case Ahead(count=count):
            return f"\u2b06\ufe0f {count} ahead"
        case Diverged(behind=behind, ahead=ahead):
            return f"\U0001f500 {behind} behind, {ahead} ahead"
        case _:
            return "\u2753 unknown"


def format_result(result: SyncResult, policy: SyncPolicy) -> str:
    """Glyph and text for a SyncResult."""
    match result:
        case ResultUpToDate():
            return "\u2705 already up-to-date"
        case Synced():
            verb = "merged" if policy.use_merge else "rebased"
            return f"\u2705 synced ({verb})"
        case WouldSync():
            return f"\U0001f504 would be synced ({policy.strategy})"
        case SkippedAhead():
            return "\u2b06\ufe0f ahead of upstream (skipped)"
        case SyncFailed(reason=reason):
            return f"\u274c {reason}"
        case _:
            return "\u2753 unknown result"


def format_sync_result_line(outcome: BranchSyncOutcome, policy: SyncPolicy) -> str:
    """One branch-attributed line: ``branch -> upstream: <result>``."""
    upstream = outcome.upstream or f"({_NO_UPSTREAM})"
    if outcome.result is None:
        return f"  \u2139\ufe0f {outcome.branch} -> {upstream}: no upstream configured"
    text = format_result(outcome.result, policy)
    if outcome.status is not None and outcome.result.kind in ("would_sync", "synced"):
        text += f" [{format_status(outcome.status)}]"
    return f"  {outcome.branch} -> {upstream}: {text}"


def format_sync_outcome(outcome: BranchSyncOutcome, policy: SyncPolicy) -> str:
    """Full single-branch report."""
    if outcome.upstream is None:
        return format_no_upstream(outcome.branch)

    lines = [f"\U0001f504 Syncing '{outcome.branch}' with '{outcome.upstream}'..."]
    if outcome.status is not None:
        lines.append(f"Status: {format_status(outcome.status)}")
    lines.append(format_sync_result_line(outcome, policy).strip())
    if outcome.result is not None and outcome.result.kind == "error":
        lines.append(
            "\U0001f4a1 Resolve the conflict manually, then continue or abort "
            f"the {policy.strategy}."
        )
    return "\n".join(lines)


def format_no_upstream(branch: str) -> str:
    return (
        f"\u2139\ufe0f No upstream configured for '{branch}'.\n"
        "\U0001f4a1 Set one with: branchsync upstream set <remote>/<branch>"
    )


def format_sync_start(count: int, policy: SyncPolicy) -> str:
    if policy.dry_run:
        return (
            f"\U0001f9ea (dry run) Would sync {count} branch(es) with upstream "
            f"using {policy.strategy}:"
        )
    return (
        f"\U0001f504 Syncing {count} branch(es) with upstream "
        f"using {policy.strategy}:"
    )


def format_no_tracked_branches() -> str:
    return "\u2139\ufe0f No branches with upstream configuration found"


def format_sync_summary(report: SyncReport) -> str:
    """Closing summary; always present, even when nothing was synced."""
    if report.policy.dry_run:
        headline = (
            f"\U0001f4a1 Would sync {report.would_sync} branch(es). "
            "Run without --dry-run to apply changes."
        )
    else:
        headline = f"\u2705 Synced {report.synced} branch(es)."

    extras: list[str] = []
    if report.up_to_date:
        extras.append(f"{report.up_to_date} up-to-date")
    if report.ahead:
        extras.append(f"{report.ahead} ahead (skipped)")
    if report.failed:
        extras.append(f"{report.failed} failed")
    if report.excluded:
        extras.append(f"{len(report.excluded)} without upstream")
    if extras:
        headline += f" ({', '.join(extras)})"
    return headline


def format_sync_report(report: SyncReport) -> str:
    """Start line, per-branch lines and summary for a batch run."""
    if not report.outcomes:
        return "\n".join(
            [format_no_tracked_branches(), "", format_sync_summary(report)]
        )

    lines = [format_sync_start(len(report.outcomes), report.policy), ""]
    lines.append("\U0001f4ca Sync results:")
    for outcome in report.outcomes:
        lines.append(format_sync_result_line(outcome, report.policy))
    lines.append("")
    lines.append(format_sync_summary(report))
    return "\n".join(lines)


def format_upstream_entry(entry: UpstreamEntry) -> str:
    marker = "* " if entry.is_current else "  "
    if entry.error is not None:
        return f"{marker}{entry.branch} -> {format_status(entry.status)}: {entry.error}"
    if entry.upstream is None:
        return f"{marker}{entry.branch} -> ({_NO_UPSTREAM})"
    return f"{marker}{entry.branch} -> {entry.upstream} ({format_status(entry.status)})"


def format_upstream_status(entries: list[UpstreamEntry]) -> str:
    if not entries:
        return "\u2139\ufe0f No local branches found"
    lines = ["\U0001f517 Upstream status for all branches:", ""]
    lines.extend(format_upstream_entry(e) for e in entries)
    return "\n".join(lines)


def format_git_result(result: GitResult, emoji: str = "") -> str:
    """Format a GitResult with success/failure indicator."""
    icon = emoji or ("\u2705" if result.success else "\u274c")
    text = f"{icon} {result.message}"
    if result.details:
        text += f"\n{result.details}"
    return text
