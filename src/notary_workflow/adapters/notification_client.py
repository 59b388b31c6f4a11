"""Client notification adapters for finalized sessions."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from notary_workflow.domain.sessions import ClientNotification

_logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Interface for delivering the certified document to a client."""

    async def notify_client(self, notification: ClientNotification) -> None:
        """Request delivery of the final document to the client."""


@dataclass
class HttpxNotificationClient:
    """Posts delivery requests to an external email webhook."""

    webhook_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, webhook_url: str) -> "HttpxNotificationClient":
        """Create a notification client with a managed httpx session."""
        return cls(webhook_url=webhook_url, http_client=httpx.AsyncClient())

    async def notify_client(self, notification: ClientNotification) -> None:
        """Send the delivery request to the webhook."""
        payload: dict[str, object] = {
            "to": notification.client_email,
            "voucher_code": notification.voucher_code,
            "document_url": notification.document_url,
        }
        response = await self.http_client.post(
            self.webhook_url, json=payload, timeout=10
        )
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()


@dataclass
class LoggingNotifier:
    """Notifier that only logs, used when no webhook is configured."""

    async def notify_client(self, notification: ClientNotification) -> None:
        """Log the delivery request."""
        _logger.info(
            "Client notification: voucher=%s email=%s document=%s",
            notification.voucher_code,
            notification.client_email,
            notification.document_url,
        )

    async def close(self) -> None:
        """Nothing to release."""
