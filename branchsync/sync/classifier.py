"""Classify ahead/behind counts into a SyncStatus.

Pure functions over the text produced by
``git rev-list --left-right --count <upstream>...<branch>``, whose left
field counts commits only on the upstream (behind) and right field counts
commits only on the branch (ahead).
"""

import re

from branchsync.exceptions import CountParseError
from branchsync.git.models import Ahead, Behind, Diverged, SyncStatus, UpToDate

MAX_COUNT = 2**32 - 1

_DIGITS_RE = re.compile(r"^[0-9]+$")


def parse_counts(raw: str) -> tuple[int, int]:
    """Parse ``"<behind> <ahead>"`` into a ``(behind, ahead)`` pair.

    Raises CountParseError for anything other than exactly two unsigned
    decimal fields no larger than MAX_COUNT.
    """
    fields = raw.split()
    if len(fields) != 2:
        raise CountParseError(
            f"Invalid sync count format: expected 2 fields, got {len(fields)}"
        )

    counts: list[int] = []
    for field in fields:
        if not _DIGITS_RE.match(field):
            raise CountParseError(f"Invalid sync count: {field!r}")
        value = int(field)
        if value > MAX_COUNT:
            raise CountParseError(f"Sync count out of range: {field}")
        counts.append(value)

    return counts[0], counts[1]


def status_from_counts(behind: int, ahead: int) -> SyncStatus:
    """Map non-negative counts to exactly one status case."""
    if behind < 0 or ahead < 0:
        raise CountParseError(f"Negative sync count: behind={behind} ahead={ahead}")
    if behind and ahead:
        return Diverged(behind=behind, ahead=ahead)
    if behind:
        return Behind(count=behind)
    if ahead:
        return Ahead(count=ahead)
    return UpToDate()


def classify(raw: str) -> SyncStatus:
    return status_from_counts(*parse_counts(raw))
