"""
Status catalog: tracker-wide lookup from status name to status category.
"""

from collections.abc import Mapping
from typing import Dict, Iterable, Iterator

from shared.logging import get_logger
from shared.errors import UnknownStatusError
from ..tracker.client import JiraClient
from ..tracker.models import Status


class StatusCatalog(Mapping):
    """Read-only mapping of status name -> category name for one refresh cycle."""

    def __init__(self, categories: Dict[str, str]):
        self._categories = dict(categories)

    @classmethod
    def from_statuses(cls, statuses: Iterable[Status]) -> "StatusCatalog":
        return cls({status.name: status.category_name for status in statuses})

    def category_of(self, status: str) -> str:
        """Category of a status, raising UnknownStatusError if it is not catalogued."""
        try:
            return self._categories[status]
        except KeyError:
            raise UnknownStatusError(status) from None

    def __getitem__(self, status: str) -> str:
        return self._categories[status]

    def __iter__(self) -> Iterator[str]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)


class StatusCatalogBuilder:
    """Builds the status catalog from the tracker's status list."""

    def __init__(self, client: JiraClient):
        self.client = client
        self.logger = get_logger("exporter.ingestion.catalog")

    async def build(self) -> StatusCatalog:
        statuses = await self.client.fetch_statuses()
        catalog = StatusCatalog.from_statuses(statuses)
        self.logger.debug("Status catalog built", statuses=len(catalog))
        return catalog
