"""Tests for HTTP-based adapters."""

import asyncio
import json
import logging

import httpx
import pytest

from notary_workflow.adapters.notification_client import (
    HttpxNotificationClient,
    LoggingNotifier,
)
from notary_workflow.domain.sessions import ClientNotification

_NOTIFICATION = ClientNotification(
    client_email="maria@example.com",
    voucher_code="AB12CD34",
    document_url="/docs/certified-AB12CD34.pdf",
)


def test_notification_client_posts_delivery_request() -> None:
    seen: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/hooks/email"
        seen.append(json.loads(request.content.decode()))
        return httpx.Response(202, json={"queued": True})

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxNotificationClient(
        webhook_url="https://mail.test/hooks/email", http_client=async_client
    )

    asyncio.run(client.notify_client(_NOTIFICATION))
    asyncio.run(client.close())

    assert seen == [
        {
            "to": "maria@example.com",
            "voucher_code": "AB12CD34",
            "document_url": "/docs/certified-AB12CD34.pdf",
        }
    ]


def test_notification_client_raises_on_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxNotificationClient(
        webhook_url="https://mail.test/hooks/email", http_client=async_client
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.notify_client(_NOTIFICATION))


def test_logging_notifier_logs_request(caplog, monkeypatch) -> None:
    monkeypatch.setattr(logging.getLogger("notary_workflow"), "propagate", True)
    caplog.set_level(logging.INFO, logger="notary_workflow")

    asyncio.run(LoggingNotifier().notify_client(_NOTIFICATION))

    assert "AB12CD34" in caplog.text
