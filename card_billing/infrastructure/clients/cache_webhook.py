"""Cache invalidation webhook client with exponential backoff retry logic"""

import httpx
import asyncio
import logging
from typing import Dict, Any
from card_billing.config import settings
from card_billing.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter

logger = logging.getLogger(__name__)


class InvalidationWebhookClient:
    """Client forwarding cache invalidation events to the host caching layer"""

    def __init__(self, webhook_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.webhook_url = webhook_url or settings.cache_webhook_url
        self.timeout = settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.transport = transport

    async def send_invalidation(self, payload: Dict[str, Any]) -> None:
        """
        Deliver one invalidation event with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s, 16s (base^attempt)
        - Retries on 5xx errors and network failures
        - Tracks latency histogram and failure counter

        Args:
            payload: Event data to send
        """
        attempt = 0
        async with httpx.AsyncClient(transport=self.transport) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(
                            self.webhook_url,
                            json=payload,
                            timeout=self.timeout,
                        )
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        logger.error(
                            f"Invalidation webhook failed after {attempt} attempts: {e}",
                            extra={"kind": payload.get("kind")},
                        )
                        raise

                    # Exponential backoff: 1s, 2s, 4s, 8s, 16s
                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
