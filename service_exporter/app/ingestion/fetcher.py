"""
Issue fetching: pages through the issue search until the tracker returns an empty page.
"""

from typing import List, Optional, Sequence

from shared.logging import get_logger
from ..tracker.client import JiraClient
from ..tracker.models import Issue


def build_jql(project_keys: Sequence[str], lookback_days: int) -> str:
    """JQL selecting issues of the given projects updated within the lookback window."""
    return f"updated >= -{lookback_days}d AND project in ({', '.join(project_keys)})"


class IssueFetcher:
    """Collects every issue matching the exporter's query, with change history."""

    def __init__(self, client: JiraClient, project_keys: Sequence[str], lookback_days: int = 90,
                 page_size: Optional[int] = None):
        self.client = client
        self.project_keys = list(project_keys)
        self.lookback_days = lookback_days
        self.page_size = page_size
        self.logger = get_logger("exporter.ingestion.fetcher")

    @property
    def jql(self) -> str:
        return build_jql(self.project_keys, self.lookback_days)

    async def fetch_all(self) -> List[Issue]:
        """Fetch all matching issues.

        Pages are requested from offset 0, advancing by the number of issues
        each page returned, and stop at the first empty page. There is no page
        cap: the tracker is trusted to eventually return an empty page. Any
        error propagates and the issues collected so far are discarded.
        """
        jql = self.jql
        issues: List[Issue] = []
        start_at = 0

        while True:
            self.logger.debug("Fetching issues page", start_at=start_at)
            page = await self.client.search_issues(jql, start_at=start_at, max_results=self.page_size)
            if not page.issues:
                break
            issues.extend(page.issues)
            start_at += len(page.issues)

        self.logger.info("Issues fetched", count=len(issues), jql=jql)
        return issues
