"""
Prometheus series for Jira issues.

Each refresh cycle fills a fresh IssueMetricsSink and then swaps it into the
LiveIssueMetrics collector registered with the service registry, so a scrape
always sees one complete cycle.
"""

import threading
from typing import Dict, Iterable, List, Optional

from prometheus_client import Gauge, Histogram
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

HOURS_PER_DAY = 24.0
HOURS_PER_WEEK = 7 * HOURS_PER_DAY
HOURS_PER_MONTH = 30.41 * HOURS_PER_DAY
HOURS_PER_YEAR = 12 * HOURS_PER_MONTH

TIME_IN_STATUS_BUCKETS = (
    1.0,
    HOURS_PER_DAY,
    2 * HOURS_PER_DAY,
    4 * HOURS_PER_DAY,
    HOURS_PER_WEEK,
    2 * HOURS_PER_WEEK,
    HOURS_PER_MONTH,
    2 * HOURS_PER_MONTH,
    4 * HOURS_PER_MONTH,
    HOURS_PER_YEAR,
    2 * HOURS_PER_YEAR,
)

ISSUE_COUNT_LABELS = ("project", "priority", "status", "statusCategory", "assignee", "issueType")
TIME_IN_STATUS_LABELS = ("project", "priority", "assignee", "issueType", "status", "statusCategory")


class IssueMetricsSink:
    """Issue count and time-in-status series for one refresh cycle."""

    def __init__(self):
        # Not registered anywhere: exposed through LiveIssueMetrics
        self.issue_count = Gauge(
            "jira_issue_count",
            "Count of Jira issues by various labels.",
            ISSUE_COUNT_LABELS,
            registry=None
        )
        self.time_in_status = Histogram(
            "jira_issue_time_in_status_hours",
            "Time spent by issues in each status.",
            TIME_IN_STATUS_LABELS,
            buckets=TIME_IN_STATUS_BUCKETS,
            registry=None
        )

    def reset(self):
        """Drop every labeled series."""
        self.issue_count.clear()
        self.time_in_status.clear()

    def inc_issue_count(self, labels: Dict[str, str]):
        self.issue_count.labels(**labels).inc()

    def observe_duration(self, labels: Dict[str, str], hours: float):
        self.time_in_status.labels(**labels).observe(hours)

    def collect(self) -> List[Metric]:
        return [*self.issue_count.collect(), *self.time_in_status.collect()]


class LiveIssueMetrics(Collector):
    """Registry collector serving whichever sink was swapped in last."""

    def __init__(self, sink: Optional[IssueMetricsSink] = None):
        self._sink = sink if sink is not None else IssueMetricsSink()
        self._lock = threading.Lock()

    @property
    def sink(self) -> IssueMetricsSink:
        with self._lock:
            return self._sink

    def swap(self, sink: IssueMetricsSink) -> IssueMetricsSink:
        """Make sink the live one and return the sink it replaced."""
        with self._lock:
            previous, self._sink = self._sink, sink
        return previous

    def describe(self) -> Iterable[Metric]:
        return self.sink.collect()

    def collect(self) -> Iterable[Metric]:
        return self.sink.collect()
