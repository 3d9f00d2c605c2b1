"""
Jira issues exporter service.
"""

import sys
from typing import Optional

from prometheus_client import CollectorRegistry

from shared.base_service import BaseService
from shared.config import ExporterConfig, get_config
from shared.logging import configure_logging, get_logger
from shared.errors import ConfigError, ExporterException

from .tracker.client import JiraClient
from .ingestion.catalog import StatusCatalogBuilder
from .ingestion.fetcher import IssueFetcher
from .exporters.prometheus import LiveIssueMetrics
from .exporters.publisher import MetricsPublisher
from .refresh import RefreshOrchestrator


class ExporterService(BaseService):
    """Exporter service implementation."""

    def __init__(
        self,
        config: Optional[ExporterConfig] = None,
        client: Optional[JiraClient] = None,
        registry: Optional[CollectorRegistry] = None
    ):
        super().__init__("exporter", config if config is not None else get_config(), registry)

        # Initialize components
        self.client = client or JiraClient(
            self.config.jira_url,
            self.config.jira_user,
            self.config.jira_api_token,
            timeout=self.config.jira_request_timeout
        )
        self.live_metrics = LiveIssueMetrics()
        self.registry.register(self.live_metrics)

        self.orchestrator = RefreshOrchestrator(
            catalog_builder=StatusCatalogBuilder(self.client),
            fetcher=IssueFetcher(
                self.client,
                self.config.project_keys,
                lookback_days=self.config.analyze_period_days,
                page_size=self.config.jira_page_size
            ),
            publisher=MetricsPublisher(
                skip_invalid_issues=self.config.skip_invalid_issues,
                metrics=self.metrics
            ),
            live_metrics=self.live_metrics,
            metrics=self.metrics,
            interval_seconds=self.config.refresh_interval_seconds
        )

        self._setup_exporter_routes()

    @property
    def scrape_triggered(self) -> bool:
        return self.config.refresh_mode == "scrape"

    def _setup_exporter_routes(self):
        """Set up exporter-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "exporter",
                "message": "Jira issues Prometheus exporter",
                "version": "1.0.0",
                "projects": self.config.project_keys,
                "refresh_mode": self.config.refresh_mode,
                "last_refresh_success": self.orchestrator.last_success
            }

    async def _check_readiness(self) -> bool:
        """Ready when the tracker accepts our credentials."""
        try:
            await self.client.fetch_myself()
        except ExporterException as e:
            self.logger.warning("Readiness check failed", code=e.code, error=e.message)
            return False
        return True

    async def _prepare_metrics(self) -> None:
        # In scrape mode a failed refresh fails the scrape
        if self.scrape_triggered:
            await self.orchestrator.refresh()

    async def start(self):
        """Start exporter components."""
        if not self.scrape_triggered:
            await self.orchestrator.start()

        self.logger.info(
            "Exporter started",
            refresh_mode=self.config.refresh_mode,
            listen=self.config.listen,
            projects=self.config.project_keys
        )

    async def stop(self):
        """Stop exporter components."""
        await self.orchestrator.stop()

        self.logger.info("Exporter stopped")


def create_app():
    """Create exporter service application."""
    service = ExporterService()
    return service.app


def main():
    try:
        config = get_config()
    except ConfigError as e:
        configure_logging("exporter")
        get_logger("exporter.main").critical("Invalid configuration", error=e.message, details=e.details)
        sys.exit(1)

    service = ExporterService(config)
    service.run()


if __name__ == "__main__":
    main()
