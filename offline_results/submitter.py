"""
Direct result submission with offline fallback.

Assigns the idempotency token before the first network attempt, so a result
that reached the server but whose response was lost is retried under the same
clientResultId.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger

from .client import ResultSender
from .models import CLIENT_RESULT_ID_KEY, with_client_result_id
from .queue import ResultQueue


@dataclass
class SubmissionOutcome:
    """Result of submitting a payload."""

    client_result_id: str
    delivered: bool
    queued: bool = False
    local_id: str | None = None


class ResultSubmitter:
    """Submit a result now, or queue it for the delivery engine."""

    def __init__(self, queue: ResultQueue, sender: ResultSender):
        self.queue = queue
        self.sender = sender

    async def submit(self, payload: dict[str, Any]) -> SubmissionOutcome:
        """
        Try the endpoint once and queue the payload on failure.

        Raises:
            ResultQueueError: If delivery failed and the result could not be queued
        """
        prepared = with_client_result_id(payload)
        client_result_id = prepared[CLIENT_RESULT_ID_KEY]

        try:
            delivered = bool(await self.sender.submit(prepared))
        except Exception as exc:
            logger.error("Submission of {} raised: {}", client_result_id, exc)
            delivered = False

        if delivered:
            return SubmissionOutcome(client_result_id=client_result_id, delivered=True)

        local_id = self.queue.enqueue(prepared)
        logger.warning("Result {} queued for later delivery", client_result_id)
        return SubmissionOutcome(
            client_result_id=client_result_id,
            delivered=False,
            queued=True,
            local_id=local_id,
        )
