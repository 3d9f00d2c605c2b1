"""
Turns fetched issues into issue count and time-in-status samples.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.errors import DecodeError, TimestampParseError, UnknownStatusError
from ..ingestion.aggregator import status_durations
from ..ingestion.catalog import StatusCatalog
from ..tracker.models import Issue
from .prometheus import IssueMetricsSink

# Errors caused by one issue's data rather than by the tracker as a whole
ISSUE_DATA_ERRORS = (DecodeError, TimestampParseError, UnknownStatusError)


@dataclass
class PublishResult:
    """Outcome of publishing one batch of issues."""
    published: int = 0
    skipped: int = 0
    duration_samples: int = 0


def issue_count_labels(issue: Issue) -> Dict[str, str]:
    return {
        "project": issue.project_key,
        "priority": issue.priority_name,
        "status": issue.status_name,
        "statusCategory": issue.status_category_name,
        "assignee": issue.assignee_id,
        "issueType": issue.issue_type_name,
    }


def time_in_status_samples(catalog: StatusCatalog, issue: Issue) -> List[Tuple[Dict[str, str], float]]:
    """Labeled hours per status left by the issue.

    Every status is resolved against the catalog before anything is returned,
    so an unknown status yields no samples at all for the issue.
    """
    samples = []
    for status, hours in status_durations(issue).items():
        samples.append(({
            "project": issue.project_key,
            "priority": issue.priority_name,
            "assignee": issue.assignee_id,
            "issueType": issue.issue_type_name,
            "status": status,
            "statusCategory": catalog.category_of(status),
        }, hours))
    return samples


class MetricsPublisher:
    """Publishes issues into an IssueMetricsSink."""

    def __init__(self, skip_invalid_issues: bool = False, metrics: Optional[MetricsCollector] = None):
        self.skip_invalid_issues = skip_invalid_issues
        self.metrics = metrics
        self.logger = get_logger("exporter.publisher")

    def publish(self, catalog: StatusCatalog, issues: Iterable[Issue], sink: IssueMetricsSink) -> PublishResult:
        """Reset the sink and publish every issue into it.

        With skip_invalid_issues unset the first invalid issue aborts the
        whole batch; otherwise that issue is left out entirely and counted.
        """
        sink.reset()
        result = PublishResult()

        for issue in issues:
            try:
                samples = time_in_status_samples(catalog, issue)
            except ISSUE_DATA_ERRORS as e:
                if not self.skip_invalid_issues:
                    raise
                self.logger.warning(
                    "Skipping issue with invalid data",
                    issue=issue.key,
                    code=e.code,
                    error=e.message
                )
                if self.metrics:
                    self.metrics.record_skipped_issue(e.code.lower())
                result.skipped += 1
                continue

            sink.inc_issue_count(issue_count_labels(issue))
            for labels, hours in samples:
                sink.observe_duration(labels, hours)
            result.published += 1
            result.duration_samples += len(samples)

        return result
