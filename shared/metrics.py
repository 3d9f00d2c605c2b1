"""
Self-observability metrics for the Jira issues exporter.
"""

from typing import Dict, Any, Optional
import time
import threading

from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry


class MetricsCollector:
    """Holds the exporter's own operational metrics in a given registry."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._setup_refresh_metrics()

    def _setup_refresh_metrics(self):
        """Set up refresh cycle metrics."""
        self._metrics["refresh_total"] = Counter(
            "jira_exporter_refresh_total",
            "Total refresh cycles by result",
            ["result"],
            registry=self.registry
        )

        self._metrics["refresh_duration_seconds"] = Histogram(
            "jira_exporter_refresh_duration_seconds",
            "Refresh cycle duration in seconds",
            buckets=(0.5, 1, 2.5, 5, 10, 30, 60, 120, 300),
            registry=self.registry
        )

        self._metrics["last_refresh_success_timestamp_seconds"] = Gauge(
            "jira_exporter_last_refresh_success_timestamp_seconds",
            "Unix timestamp of the last successful refresh",
            registry=self.registry
        )

        self._metrics["issues_fetched"] = Gauge(
            "jira_exporter_issues_fetched",
            "Number of issues fetched in the last successful refresh",
            registry=self.registry
        )

        self._metrics["skipped_issues_total"] = Counter(
            "jira_exporter_skipped_issues_total",
            "Issues left out of publication because of invalid data",
            ["reason"],
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_refresh(self, result: str, duration: float, issues: Optional[int] = None):
        """Record the outcome of one refresh cycle."""
        with self._lock:
            self._metrics["refresh_total"].labels(result=result).inc()
            self._metrics["refresh_duration_seconds"].observe(duration)
            if result == "success":
                self._metrics["last_refresh_success_timestamp_seconds"].set(time.time())
                if issues is not None:
                    self._metrics["issues_fetched"].set(issues)

    def record_skipped_issue(self, reason: str):
        """Record an issue skipped during publication."""
        self._metrics["skipped_issues_total"].labels(reason=reason).inc()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
