"""Tests for the MailerSend backend against a local aiohttp server."""

import asyncio
from typing import Any

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from email_clients import (
    AuthError,
    DeliveryError,
    EmailObject,
    MailerSendClient,
    MailerSendConfig,
    TransportError,
)


class FakeMailerSend:
    """Minimal stand-in for POST /v1/email that records every request."""

    def __init__(self):
        self.requests: list[dict[str, Any]] = []
        self.status = 202
        self.body: str | None = None
        self.content_type = "application/json"
        self.delay_seconds = 0.0
        self.raw_body: bytes | None = None

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append({
            "headers": dict(request.headers),
            "json": await request.json(),
        })
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if 200 <= self.status < 300:
            return web.Response(status=self.status, headers={"X-Message-Id": "msg-123"})
        if self.raw_body is not None:
            return web.Response(status=self.status, body=self.raw_body, content_type="text/html")
        return web.Response(status=self.status, text=self.body or "", content_type=self.content_type)


@pytest_asyncio.fixture
async def mailersend_api():
    """Start a fake MailerSend API on a free port."""
    api = FakeMailerSend()
    app = web.Application()
    app.router.add_post("/v1/email", api.handle)
    server = test_utils.TestServer(app)
    await server.start_server()
    yield api, str(server.make_url("/v1"))
    await server.close()


def make_client(base_url: str, **kwargs) -> MailerSendClient:
    config = MailerSendConfig().api_key("test-token").base_url(base_url).timeout(2)
    return MailerSendClient(config, **kwargs)


class TestMailerSendDelivery:
    """Requests sent to the API."""

    @pytest.mark.asyncio
    async def test_send_posts_payload(self, mailersend_api, sample_email):
        api, base_url = mailersend_api
        await make_client(base_url).send(sample_email)

        assert len(api.requests) == 1
        request = api.requests[0]
        assert request["headers"]["Authorization"] == "Bearer test-token"
        assert request["json"] == {
            "from": {"email": "sender@example.com", "name": "Sender"},
            "to": [{"email": "mail@example.com", "name": "Mail"}],
            "subject": "Hello",
            "text": "Hello in plain text",
            "html": "<p>Hello in <b>HTML</b></p>",
        }

    @pytest.mark.asyncio
    async def test_empty_names_and_bodies_omitted(self, mailersend_api):
        api, base_url = mailersend_api
        email = EmailObject(sender="a@example.com", to=["b@example.com"], subject="S", plain="Only text")
        await make_client(base_url).send(email)

        assert api.requests[0]["json"] == {
            "from": {"email": "a@example.com"},
            "to": [{"email": "b@example.com"}],
            "subject": "S",
            "text": "Only text",
        }

    @pytest.mark.asyncio
    async def test_configured_sender_wins(self, mailersend_api, sample_email):
        api, base_url = mailersend_api
        config = MailerSendConfig(api_key="k", base_url=base_url, sender="Robot <robot@example.com>")
        await MailerSendClient(config).send(sample_email)
        assert api.requests[0]["json"]["from"] == {"email": "robot@example.com", "name": "Robot"}

    @pytest.mark.asyncio
    async def test_injected_session_is_reused_and_left_open(self, mailersend_api, sample_email):
        api, base_url = mailersend_api
        async with aiohttp.ClientSession() as session:
            client = make_client(base_url, session=session)
            await client.send(sample_email)
            await client.send(sample_email)
            await client.aclose()
            assert not session.closed
        assert len(api.requests) == 2


class TestMailerSendFailures:
    """HTTP and network failures are mapped to the package error types."""

    @pytest.mark.asyncio
    async def test_unauthorized_is_auth_error(self, mailersend_api, sample_email):
        api, base_url = mailersend_api
        api.status = 401
        api.body = '{"message": "Unauthenticated."}'
        with pytest.raises(AuthError) as exc_info:
            await make_client(base_url).send(sample_email)
        assert exc_info.value.status_code == 401
        assert exc_info.value.diagnostic == "Unauthenticated."
        assert isinstance(exc_info.value, DeliveryError)

    @pytest.mark.asyncio
    async def test_validation_failure_is_delivery_error(self, mailersend_api, sample_email):
        api, base_url = mailersend_api
        api.status = 422
        api.body = '{"message": "The from.email domain must be verified.", "errors": {}}'
        with pytest.raises(DeliveryError) as exc_info:
            await make_client(base_url).send(sample_email)
        error = exc_info.value
        assert not isinstance(error, AuthError)
        assert error.status_code == 422
        assert error.diagnostic == "The from.email domain must be verified."
        assert error.body == api.body
        assert len(api.requests) == 1

    @pytest.mark.asyncio
    async def test_server_error_keeps_text_body(self, mailersend_api, sample_email):
        api, base_url = mailersend_api
        api.status = 500
        api.body = "Internal Server Error"
        api.content_type = "text/plain"
        with pytest.raises(DeliveryError) as exc_info:
            await make_client(base_url).send(sample_email)
        assert exc_info.value.status_code == 500
        assert exc_info.value.diagnostic == "Internal Server Error"
        assert len(api.requests) == 1

    @pytest.mark.asyncio
    async def test_undecodable_error_body_is_delivery_error(self, mailersend_api, sample_email):
        """A gateway page that is not valid UTF-8 still gives a typed error with its status."""
        api, base_url = mailersend_api
        api.status = 502
        api.raw_body = b"\xff\xfe bad gateway"
        with pytest.raises(DeliveryError) as exc_info:
            await make_client(base_url).send(sample_email)
        assert exc_info.value.status_code == 502
        assert "bad gateway" in exc_info.value.body

    @pytest.mark.asyncio
    async def test_closed_port_is_transport_error(self, free_port, sample_email):
        client = make_client(f"http://127.0.0.1:{free_port}/v1")
        with pytest.raises(TransportError) as exc_info:
            await client.send(sample_email)
        assert exc_info.value.backend == "mailersend"
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientError)

    @pytest.mark.asyncio
    async def test_slow_server_is_transport_error(self, mailersend_api, sample_email):
        api, base_url = mailersend_api
        api.delay_seconds = 0.5
        config = MailerSendConfig().api_key("k").base_url(base_url).timeout(0.05)
        with pytest.raises(TransportError):
            await MailerSendClient(config).send(sample_email)
        assert len(api.requests) == 1
