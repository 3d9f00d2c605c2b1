"""
Refresh orchestration: catalog, fetch, publish and swap, as one unit of work.
"""

import asyncio
import time
from typing import Optional

from shared.logging import get_logger, set_refresh_id
from shared.metrics import MetricsCollector
from shared.errors import ExporterException
from .ingestion.catalog import StatusCatalogBuilder
from .ingestion.fetcher import IssueFetcher
from .exporters.prometheus import IssueMetricsSink, LiveIssueMetrics
from .exporters.publisher import MetricsPublisher, PublishResult


class RefreshOrchestrator:
    """Runs refresh cycles, on demand or in a background loop."""

    def __init__(
        self,
        catalog_builder: StatusCatalogBuilder,
        fetcher: IssueFetcher,
        publisher: MetricsPublisher,
        live_metrics: LiveIssueMetrics,
        metrics: Optional[MetricsCollector] = None,
        interval_seconds: float = 300.0
    ):
        self.catalog_builder = catalog_builder
        self.fetcher = fetcher
        self.publisher = publisher
        self.live_metrics = live_metrics
        self.metrics = metrics
        self.interval_seconds = interval_seconds
        self.logger = get_logger("exporter.refresh")

        self._refresh_lock = asyncio.Lock()
        self.refresh_task: Optional[asyncio.Task] = None
        self.running = False
        self.last_success: Optional[float] = None

    async def refresh(self) -> PublishResult:
        """Run one full refresh cycle.

        Builds a new sink off to the side and swaps it in only once every
        issue has been published. Any error leaves the live series untouched
        and propagates to the caller. Concurrent callers are serialized.
        """
        async with self._refresh_lock:
            set_refresh_id()
            started = time.perf_counter()
            try:
                catalog = await self.catalog_builder.build()
                issues = await self.fetcher.fetch_all()
                fetched_in = time.perf_counter() - started
                self.logger.info(
                    "Fetched issues",
                    issues=len(issues),
                    statuses=len(catalog),
                    duration_ms=round(fetched_in * 1000, 2)
                )

                publish_started = time.perf_counter()
                sink = IssueMetricsSink()
                result = self.publisher.publish(catalog, issues, sink)
                self.live_metrics.swap(sink)
                self.logger.info(
                    "Metrics updated",
                    published=result.published,
                    skipped=result.skipped,
                    duration_samples=result.duration_samples,
                    duration_ms=round((time.perf_counter() - publish_started) * 1000, 2)
                )
            except ExporterException as e:
                self.logger.error(
                    "Refresh failed",
                    code=e.code,
                    error=e.message,
                    details=e.details
                )
                self._record("failure", started)
                raise
            except Exception as e:
                self.logger.error("Refresh failed unexpectedly", error=str(e), exc_info=True)
                self._record("failure", started)
                raise

            self.last_success = time.time()
            self._record("success", started, issues=len(issues))
            return result

    def _record(self, result: str, started: float, issues: Optional[int] = None):
        if self.metrics:
            self.metrics.record_refresh(result, time.perf_counter() - started, issues=issues)

    async def start(self):
        """Start the background refresh loop."""
        self.running = True
        self.refresh_task = asyncio.create_task(self._refresh_loop())
        self.logger.info("Refresh loop started", interval_seconds=self.interval_seconds)

    async def stop(self):
        """Stop the background refresh loop."""
        self.running = False
        if self.refresh_task:
            self.refresh_task.cancel()
            try:
                await self.refresh_task
            except asyncio.CancelledError:
                pass
            self.refresh_task = None

        self.logger.info("Refresh loop stopped")

    async def _refresh_loop(self):
        """Refresh immediately, then every interval. A failed cycle waits for the next one."""
        while self.running:
            try:
                await self.refresh()
            except Exception:
                pass  # logged by refresh(); the next cycle is the retry
            await asyncio.sleep(self.interval_seconds)
