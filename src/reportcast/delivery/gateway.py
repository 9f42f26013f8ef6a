"""HTTP messaging gateway client.

Text artifacts are posted as JSON; documents are uploaded as multipart
form data. One call is one delivery attempt: retrying is the caller's job
(see `reportcast.delivery.retry`).
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol

import httpx

from reportcast.config.models import GatewayConfig
from reportcast.errors import GatewayError
from reportcast.reports.types import Artifact

logger = logging.getLogger(__name__)


class MessagingGateway(Protocol):
    async def deliver(self, delivery_target: str, artifact: Artifact) -> None: ...


class HttpMessagingGateway:
    """Delivers artifacts to a group or channel through the gateway API."""

    def __init__(self, config: GatewayConfig, client: httpx.AsyncClient | None = None):
        self._config = config
        self._client = client

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
            yield client

    def _auth_headers(self) -> dict[str, str]:
        if self._config.api_token is None:
            return {}
        return {"Authorization": f"Bearer {self._config.api_token.get_secret_value()}"}

    async def deliver(self, delivery_target: str, artifact: Artifact) -> None:
        """Send one artifact.

        Raises:
            GatewayError: If the request fails or the gateway rejects it.
        """
        async with self._session() as client:
            try:
                if artifact.is_document:
                    response = await self._send_document(client, delivery_target, artifact)
                else:
                    response = await client.post(
                        self._config.url,
                        json={"to": delivery_target, "message": artifact.text or ""},
                        headers=self._auth_headers(),
                    )
            except httpx.HTTPError as e:
                raise GatewayError(f"Gateway request failed: {e}") from e

        if not response.is_success:
            raise GatewayError(
                f"Gateway rejected {artifact.kind.value}: {response.status_code}",
                status_code=response.status_code,
            )
        logger.info(
            "artifact_delivered",
            extra={
                "messaging.target": delivery_target,
                "artifact.kind": artifact.kind.value,
            },
        )

    async def _send_document(
        self, client: httpx.AsyncClient, delivery_target: str, artifact: Artifact
    ) -> httpx.Response:
        if artifact.path is None:
            raise GatewayError("Document artifact has no file")
        # Read per attempt; the file stays in place until the sequence ends
        content = artifact.path.read_bytes()
        return await client.post(
            self._config.url,
            data={"to": delivery_target, "caption": artifact.display_name},
            files={"file": (artifact.filename, content, "text/html")},
            headers=self._auth_headers(),
        )
