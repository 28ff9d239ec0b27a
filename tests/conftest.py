"""Shared fixtures for the email clients test suite."""

import socket

import pytest

from email_clients import EmailAddress, EmailObject


def get_free_port() -> int:
    """Find a free port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.listen(1)
        port = s.getsockname()[1]
    return port


@pytest.fixture
def free_port() -> int:
    return get_free_port()


@pytest.fixture
def sample_email() -> EmailObject:
    """A message with one named recipient and both bodies."""
    return EmailObject(
        sender="Sender <sender@example.com>",
        to=[EmailAddress.new("Mail", "mail@example.com")],
        subject="Hello",
        plain="Hello in plain text",
        html="<p>Hello in <b>HTML</b></p>",
    )
