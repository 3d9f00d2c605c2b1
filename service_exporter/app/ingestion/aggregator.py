"""
Time-in-status aggregation.

Reconstructs, from an issue's changelog, how long the issue spent in each
workflow status it left. Only closed intervals are measured: every interval
ends at a recorded status transition. The time between the issue's creation
and its first transition is attributed to the status that transition left,
which is the only place the tracker records an issue's initial status. Time
spent in the current status since the last transition is not counted.
"""

import re
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Sequence

from shared.errors import DecodeError, TimestampParseError
from ..tracker.models import ChangelogEntry, Issue

# Jira timestamps, e.g. 2024-01-03T00:00:00.000+0000
TRACKER_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"
_TRACKER_TIME_SHAPE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}[+-]\d{4}", re.ASCII)

SECONDS_PER_HOUR = 3600.0


def parse_tracker_timestamp(value: Any) -> datetime:
    """Parse a tracker timestamp, raising TimestampParseError on anything unexpected."""
    # strptime alone would also take "Z", "+00:00" and other fraction widths
    if not isinstance(value, str) or not _TRACKER_TIME_SHAPE.fullmatch(value):
        raise TimestampParseError(value)
    try:
        return datetime.strptime(value, TRACKER_TIME_FORMAT)
    except ValueError as e:
        raise TimestampParseError(value) from e


def chronological(histories: Sequence[ChangelogEntry]) -> List[ChangelogEntry]:
    """Histories in ascending time order. The tracker delivers them newest first."""
    return list(reversed(histories))


def previous_status(issue_key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise DecodeError(
            "Status change without a string previous value",
            details={"issue": issue_key, "from_string": repr(value)}
        )
    return value


def status_durations(issue: Issue) -> Dict[str, float]:
    """Hours the issue spent in each status it has left, keyed by status name.

    The issue is not modified, so repeated calls return equal mappings.
    """
    durations: Dict[str, timedelta] = defaultdict(timedelta)
    cursor = parse_tracker_timestamp(issue.created)

    for entry in chronological(issue.histories):
        changed_at = parse_tracker_timestamp(entry.created)
        for item in entry.status_changes():
            durations[previous_status(issue.key, item.from_string)] += changed_at - cursor
            cursor = changed_at

    return {
        status: elapsed.total_seconds() / SECONDS_PER_HOUR
        for status, elapsed in durations.items()
    }
