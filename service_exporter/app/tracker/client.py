"""
Jira REST client for the exporter.
"""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from shared.logging import get_logger
from shared.errors import DecodeError, FetchError
from .models import Myself, SearchPage, Status

SEARCH_FIELDS = "created,status,assignee,project,issuetype,priority"

_STATUS_LIST = TypeAdapter(List[Status])


def _summarize(error: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()[:5]
    ]


class JiraClient:
    """Client for the Jira Cloud REST API (v3)."""

    def __init__(self, base_url: str, user: str, api_token: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip('/')
        self.auth = httpx.BasicAuth(user, api_token)
        self.timeout = timeout
        self.logger = get_logger("exporter.tracker.client")

    async def fetch_statuses(self) -> List[Status]:
        """Fetch every workflow status defined on the tracker."""
        payload = await self._get_json("/rest/api/3/status")
        try:
            return _STATUS_LIST.validate_python(payload)
        except ValidationError as e:
            raise DecodeError(
                "Unexpected status list payload",
                details={"errors": _summarize(e)}
            ) from e

    async def search_issues(self, jql: str, start_at: int = 0, max_results: Optional[int] = None) -> SearchPage:
        """Fetch one page of issues matching a JQL query, with changelogs expanded."""
        params: Dict[str, Any] = {
            "jql": jql,
            "startAt": start_at,
            "expand": "changelog",
            "fields": SEARCH_FIELDS,
        }
        if max_results is not None:
            params["maxResults"] = max_results

        payload = await self._get_json("/rest/api/3/search", params=params)
        try:
            return SearchPage.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(
                "Unexpected issue search payload",
                details={"start_at": start_at, "errors": _summarize(e)}
            ) from e

    async def fetch_myself(self) -> Myself:
        """Fetch the authenticated user. Used as a cheap credentials check."""
        payload = await self._get_json("/rest/api/3/myself")
        try:
            return Myself.model_validate(payload)
        except ValidationError as e:
            raise DecodeError("Unexpected myself payload") from e

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a tracker resource and decode its JSON body."""
        url = f"{self.base_url}{path}"
        self.logger.debug("Tracker request", url=url, params=params)

        try:
            async with httpx.AsyncClient(auth=self.auth, timeout=self.timeout) as client:
                response = await client.get(url, params=params, headers={"Accept": "application/json"})
        except httpx.TimeoutException as e:
            self.logger.error("Tracker request timed out", url=url, timeout=self.timeout)
            raise FetchError(
                f"Tracker request timed out after {self.timeout}s",
                details={"url": url},
                code="TRACKER_TIMEOUT"
            ) from e
        except httpx.RequestError as e:
            self.logger.error("Tracker request error", url=url, error=str(e))
            raise FetchError(
                "Tracker unavailable",
                details={"url": url, "error": str(e)}
            ) from e

        if response.status_code != 200:
            self.logger.error(
                "Tracker request failed",
                url=url,
                status_code=response.status_code,
                response=response.text[:200]
            )
            raise FetchError(
                f"Unexpected status {response.status_code}",
                details={"url": url, "status_code": response.status_code, "body": response.text[:200]}
            )

        try:
            return response.json()
        except ValueError as e:
            raise DecodeError("Tracker response is not valid JSON", details={"url": url}) from e
