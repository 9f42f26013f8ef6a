"""HTTP data source for report queries.

Every fetch first exchanges the configured basic-auth credential for a
bearer token, then queries `{api_url}/{report_id}`.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol

import httpx

from reportcast.config.models import SourceConfig
from reportcast.errors import AuthError, FetchError
from reportcast.reports.types import Row

logger = logging.getLogger(__name__)


class DataSource(Protocol):
    async def fetch(self, report_id: str) -> list[Row]: ...


class HttpDataSource:
    """Fetches report rows from the query API."""

    def __init__(self, config: SourceConfig, client: httpx.AsyncClient | None = None):
        self._config = config
        self._client = client

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
            yield client

    async def get_token(self, client: httpx.AsyncClient) -> str:
        """Exchange the basic-auth credential for an access token.

        Raises:
            AuthError: If the token endpoint fails or returns no token.
        """
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        if self._config.basic_auth_token is not None:
            headers["Authorization"] = self._config.basic_auth_token.get_secret_value()

        try:
            response = await client.post(self._config.token_url, headers=headers)
        except httpx.HTTPError as e:
            logger.error("token_request_failed", extra={"error.message": str(e)})
            raise AuthError(f"Token request failed: {e}") from e

        logger.info("token_requested", extra={"http.status_code": response.status_code})
        if response.status_code != 200:
            raise AuthError(f"Token request failed: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError("Token response is not JSON") from e
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise AuthError("Token response missing access_token")
        return token

    async def fetch(self, report_id: str) -> list[Row]:
        """Fetch the rows for one report.

        Raises:
            AuthError: If no access token could be acquired.
            FetchError: If the query fails or returns something other than
                a list of records.
        """
        url = f"{self._config.api_url.rstrip('/')}/{report_id}"
        async with self._session() as client:
            token = await self.get_token(client)
            try:
                response = await client.get(
                    url, headers={"Authorization": f"Bearer {token}"}
                )
            except httpx.HTTPError as e:
                logger.error(
                    "report_query_failed",
                    extra={"job.report_id": report_id, "error.message": str(e)},
                )
                raise FetchError(f"Query {report_id} failed: {e}") from e

        logger.info(
            "report_queried",
            extra={"job.report_id": report_id, "http.status_code": response.status_code},
        )
        if response.status_code != 200:
            raise FetchError(f"Query {report_id} failed: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"Query {report_id} returned invalid JSON") from e

        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise FetchError(f"Query {report_id} did not return a list of records")
        return data
