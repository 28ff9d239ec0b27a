"""Tests for get_email_client dispatch and the shared client behaviour."""

import asyncio

import pytest

from email_clients import (
    BaseEmailClient,
    EmailAddress,
    MailerSendClient,
    MailerSendConfig,
    MemoryClient,
    MemoryConfig,
    SmtpClient,
    SmtpConfig,
    TerminalClient,
    TerminalConfig,
    get_email_client,
    load_email_configuration,
)


class TestGetEmailClient:
    """Each configuration variant maps to its own client."""

    def test_none_gives_terminal_client(self):
        client = get_email_client()
        assert isinstance(client, TerminalClient)
        assert client.get_sender() is None

    @pytest.mark.parametrize(
        "config, client_class",
        [
            (TerminalConfig(), TerminalClient),
            (MemoryConfig(), MemoryClient),
            (SmtpConfig(), SmtpClient),
            (MailerSendConfig(), MailerSendClient),
        ],
    )
    def test_variant_to_client(self, config, client_class):
        client = get_email_client(config)
        assert type(client) is client_class
        assert isinstance(client, BaseEmailClient)
        assert client.config is config

    def test_memory_queue_uses_capacity(self):
        client = get_email_client(MemoryConfig(capacity=3))
        assert client.queue.maxsize == 3
        assert client.queue.empty()

    def test_configured_sender_is_reported(self):
        client = get_email_client(SmtpConfig().sender("Ops <ops@example.com>"))
        assert client.get_sender() == EmailAddress.new("Ops", "ops@example.com")

    def test_each_call_builds_a_new_client(self):
        config = MemoryConfig()
        first = get_email_client(config)
        second = get_email_client(config)
        assert first is not second
        assert first.queue is not second.queue

    def test_shared_queue_from_config(self):
        queue = asyncio.Queue(maxsize=1)
        client = get_email_client(MemoryConfig(queue=queue))
        assert client.queue is queue

    def test_loaded_configuration(self):
        config = load_email_configuration(environ={"EMAIL_CLIENTS_BACKEND": "smtp", "EMAIL_CLIENTS_SMTP_PORT": "2525"})
        client = get_email_client(config)
        assert isinstance(client, SmtpClient)
        assert client.config.relay_port == 2525

    def test_unsupported_configuration(self):
        with pytest.raises(TypeError):
            get_email_client({"kind": "smtp"})


class TestClientContextManager:
    @pytest.mark.asyncio
    async def test_async_with_returns_client(self, sample_email):
        async with get_email_client(MemoryConfig()) as client:
            await client.send(sample_email)
        assert client.queue.get_nowait() == sample_email

    def test_repr_has_no_secrets(self):
        client = get_email_client(SmtpConfig().credentials("user", "hunter2"))
        assert "hunter2" not in repr(client)
        assert repr(client).startswith("SmtpClient(")
