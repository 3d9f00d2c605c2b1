"""
Unit tests for the refresh orchestrator.
"""

import pytest
import asyncio
from unittest.mock import AsyncMock, MagicMock

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_exporter.app.exporters.prometheus import LiveIssueMetrics
from service_exporter.app.exporters.publisher import MetricsPublisher
from service_exporter.app.ingestion.catalog import StatusCatalog
from service_exporter.app.refresh import RefreshOrchestrator
from service_exporter.app.tracker.models import Issue
from shared.errors import FetchError
from shared.metrics import MetricsCollector
from shared.test_helpers import create_issue_payload, create_scenario_issue_payload

DONE_LABELS = {
    "project": "OPS",
    "priority": "Medium",
    "status": "Done",
    "statusCategory": "Done",
    "assignee": "dev@example.com",
    "issueType": "Task",
}


class TestRefreshOrchestrator:
    """Test cases for RefreshOrchestrator."""

    @pytest.fixture
    def catalog_builder(self):
        """Create mock catalog builder."""
        builder = MagicMock()
        builder.build = AsyncMock(return_value=StatusCatalog(
            {"Open": "To Do", "In Progress": "In Progress", "Done": "Done"}
        ))
        return builder

    @pytest.fixture
    def fetcher(self):
        """Create mock issue fetcher."""
        fetcher = MagicMock()
        fetcher.fetch_all = AsyncMock(return_value=[Issue.model_validate(create_scenario_issue_payload())])
        return fetcher

    @pytest.fixture
    def metrics(self):
        """Create self-observability metrics."""
        return MetricsCollector("exporter")

    @pytest.fixture
    def live_metrics(self, metrics):
        """Create live issue metrics registered with the service registry."""
        live = LiveIssueMetrics()
        metrics.registry.register(live)
        return live

    @pytest.fixture
    def orchestrator(self, catalog_builder, fetcher, live_metrics, metrics):
        """Create RefreshOrchestrator instance."""
        return RefreshOrchestrator(
            catalog_builder=catalog_builder,
            fetcher=fetcher,
            publisher=MetricsPublisher(),
            live_metrics=live_metrics,
            metrics=metrics,
            interval_seconds=0.01
        )

    @pytest.mark.asyncio
    async def test_refresh_publishes_and_swaps(self, orchestrator, live_metrics, metrics):
        """Test a successful refresh replaces the live sink."""
        initial_sink = live_metrics.sink

        result = await orchestrator.refresh()

        assert result.published == 1
        assert live_metrics.sink is not initial_sink
        assert metrics.registry.get_sample_value("jira_issue_count", DONE_LABELS) == 1.0
        assert metrics.registry.get_sample_value("jira_exporter_refresh_total", {"result": "success"}) == 1.0
        assert metrics.registry.get_sample_value("jira_exporter_issues_fetched") == 1.0
        assert orchestrator.last_success is not None

    @pytest.mark.asyncio
    async def test_sequence(self, orchestrator, catalog_builder, fetcher):
        """Test the catalog is built before issues are fetched."""
        calls = []
        catalog_builder.build.side_effect = lambda: calls.append("catalog") or StatusCatalog({})
        fetcher.fetch_all.side_effect = lambda: calls.append("fetch") or []

        await orchestrator.refresh()

        assert calls == ["catalog", "fetch"]

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_metrics(self, orchestrator, fetcher, live_metrics, metrics):
        """Test a failing cycle leaves the last published series in place."""
        await orchestrator.refresh()
        published_sink = live_metrics.sink
        fetcher.fetch_all.side_effect = FetchError("Unexpected status 502")

        with pytest.raises(FetchError):
            await orchestrator.refresh()

        assert live_metrics.sink is published_sink
        assert metrics.registry.get_sample_value("jira_issue_count", DONE_LABELS) == 1.0
        assert metrics.registry.get_sample_value("jira_exporter_refresh_total", {"result": "failure"}) == 1.0

    @pytest.mark.asyncio
    async def test_publish_failure_keeps_previous_metrics(self, orchestrator, catalog_builder, live_metrics, metrics):
        """Test an unknown status discards the shadow sink."""
        await orchestrator.refresh()
        published_sink = live_metrics.sink
        catalog_builder.build.return_value = StatusCatalog({"Done": "Done"})

        with pytest.raises(Exception) as exc_info:
            await orchestrator.refresh()

        assert exc_info.value.code == "UNKNOWN_STATUS"
        assert live_metrics.sink is published_sink

    @pytest.mark.asyncio
    async def test_stale_series_disappear(self, orchestrator, fetcher, metrics):
        """Test issues no longer returned stop being exposed."""
        await orchestrator.refresh()
        fetcher.fetch_all.return_value = [Issue.model_validate(create_issue_payload(key="OPS-9", project="DEV"))]

        await orchestrator.refresh()

        assert metrics.registry.get_sample_value("jira_issue_count", DONE_LABELS) is None

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_are_serialized(self, orchestrator, fetcher):
        """Test overlapping refresh calls never run their fetches concurrently."""
        active = 0
        peak = 0

        async def slow_fetch():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return []

        fetcher.fetch_all.side_effect = slow_fetch

        await asyncio.gather(orchestrator.refresh(), orchestrator.refresh(), orchestrator.refresh())

        assert peak == 1
        assert fetcher.fetch_all.await_count == 3

    @pytest.mark.asyncio
    async def test_background_loop_survives_failures(self, orchestrator, fetcher):
        """Test the loop keeps refreshing after a failed cycle."""
        fetcher.fetch_all.side_effect = [FetchError("timeout"), [], [], [], []]

        await orchestrator.start()
        for _ in range(100):
            if fetcher.fetch_all.await_count >= 3:
                break
            await asyncio.sleep(0.01)
        await orchestrator.stop()

        assert fetcher.fetch_all.await_count >= 3
        assert orchestrator.running is False
        assert orchestrator.refresh_task is None

    @pytest.mark.asyncio
    async def test_stop_without_start(self, orchestrator):
        """Test stopping an idle orchestrator is harmless."""
        await orchestrator.stop()

        assert orchestrator.refresh_task is None
