# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Email clients: one async ``send`` over several delivery backends.

Backends:
    - terminal: print the message to standard output
    - memory: push the message onto an ``asyncio.Queue`` (tests)
    - smtp: relay through an SMTP server with aiosmtplib
    - mailersend: deliver through the MailerSend HTTP API

Example:
    Sending a message::

        from email_clients import EmailObject, SmtpConfig, get_email_client

        client = get_email_client(SmtpConfig().relay("localhost").port(2525))
        await client.send(
            EmailObject(
                sender="noreply@example.com",
                to="mail@example.com",
                subject="Hello",
                plain="Hi there",
            )
        )
"""

from __future__ import annotations

import logging

from .clients import (
    BaseEmailClient,
    EmailClient,
    MailerSendClient,
    MailerSendConfig,
    MemoryClient,
    MemoryConfig,
    SmtpClient,
    SmtpConfig,
    TerminalClient,
    TerminalConfig,
    TlsMode,
    get_email_client,
)
from .configuration import EmailConfiguration, load_email_configuration, parse_email_configuration
from .errors import (
    AuthError,
    ConfigurationError,
    DeliveryError,
    EmailClientError,
    OutputError,
    QueueFull,
    SendError,
    TransportError,
    ValidationError,
)
from .logger import get_logger
from .models import EmailAddress, EmailObject

__version__ = "0.2.0"

get_logger().addHandler(logging.NullHandler())

__all__ = [
    "AuthError",
    "BaseEmailClient",
    "ConfigurationError",
    "DeliveryError",
    "EmailAddress",
    "EmailClient",
    "EmailClientError",
    "EmailConfiguration",
    "EmailObject",
    "MailerSendClient",
    "MailerSendConfig",
    "MemoryClient",
    "MemoryConfig",
    "OutputError",
    "QueueFull",
    "SendError",
    "SmtpClient",
    "SmtpConfig",
    "TerminalClient",
    "TerminalConfig",
    "TlsMode",
    "TransportError",
    "ValidationError",
    "__version__",
    "get_email_client",
    "get_logger",
    "load_email_configuration",
    "parse_email_configuration",
]
