"""
Result submission client.

Handles HTTP communication with the quiz application's result endpoint.
The endpoint is expected to deduplicate on the payload's clientResultId, so a
payload may be posted more than once.
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx
from loguru import logger

from .models import CLIENT_RESULT_ID_KEY


class ResultSender(Protocol):
    """Anything that can deliver one payload and report acceptance."""

    async def submit(self, payload: dict[str, Any]) -> bool: ...


class SubmissionClient:
    """HTTP client for the result submission endpoint."""

    def __init__(
        self,
        results_url: str,
        token: str | None = None,
        timeout_seconds: float = 30.0,
    ):
        """
        Initialize submission client.

        Args:
            results_url: Full URL of the result endpoint
            token: Optional bearer token
            timeout_seconds: Transport timeout per request
        """
        self.results_url = results_url
        self.token = token
        self.timeout_seconds = timeout_seconds
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            follow_redirects=True,
        )

    async def __aenter__(self) -> "SubmissionClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def submit(self, payload: dict[str, Any]) -> bool:
        """
        Post one result payload.

        Args:
            payload: Result payload including its clientResultId

        Returns:
            True if the server accepted the result (2xx), False otherwise.
            Transport and HTTP errors are logged, never raised.
        """
        client_result_id = payload.get(CLIENT_RESULT_ID_KEY)
        try:
            response = await self.client.post(
                self.results_url,
                json=payload,
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            logger.error("Network error syncing result {}: {}", client_result_id, e)
            return False

        if response.is_success:
            logger.info("Successfully synced result: {}", client_result_id)
            return True

        logger.error(
            "Server error syncing result {}: {} {}",
            client_result_id,
            response.status_code,
            response.text,
        )
        return False
