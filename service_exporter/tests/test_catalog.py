"""
Unit tests for the status catalog.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_exporter.app.ingestion.catalog import StatusCatalog, StatusCatalogBuilder
from service_exporter.app.tracker.models import Status
from shared.errors import FetchError, UnknownStatusError
from shared.test_helpers import create_default_statuses, create_status


class TestStatusCatalog:
    """Test cases for StatusCatalog."""

    @pytest.fixture
    def catalog(self):
        """Create catalog from the default statuses."""
        return StatusCatalog.from_statuses(
            Status.model_validate(status) for status in create_default_statuses()
        )

    def test_category_of(self, catalog):
        """Test status names resolve to their category."""
        assert catalog.category_of("Open") == "To Do"
        assert catalog.category_of("In Progress") == "In Progress"
        assert catalog.category_of("Done") == "Done"

    def test_unknown_status(self, catalog):
        """Test an absent status raises UnknownStatusError."""
        with pytest.raises(UnknownStatusError) as exc_info:
            catalog.category_of("Blocked")

        assert exc_info.value.status == "Blocked"
        assert exc_info.value.code == "UNKNOWN_STATUS"

    def test_mapping_interface(self, catalog):
        """Test the catalog behaves as a read-only mapping."""
        assert len(catalog) == 3
        assert set(catalog) == {"Open", "In Progress", "Done"}
        assert dict(catalog)["Done"] == "Done"
        assert "Blocked" not in catalog


class TestStatusCatalogBuilder:
    """Test cases for StatusCatalogBuilder."""

    @pytest.fixture
    def client(self):
        """Create mock tracker client."""
        client = MagicMock()
        client.fetch_statuses = AsyncMock(return_value=[
            Status.model_validate(create_status("Open", "To Do")),
            Status.model_validate(create_status("Review", "In Progress")),
        ])
        return client

    @pytest.mark.asyncio
    async def test_build(self, client):
        """Test building the catalog from the tracker status list."""
        catalog = await StatusCatalogBuilder(client).build()

        assert dict(catalog) == {"Open": "To Do", "Review": "In Progress"}
        client.fetch_statuses.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_build_propagates_fetch_error(self, client):
        """Test tracker failures propagate unchanged."""
        client.fetch_statuses.side_effect = FetchError("Unexpected status 503")

        with pytest.raises(FetchError):
            await StatusCatalogBuilder(client).build()
