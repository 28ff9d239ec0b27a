# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Backend clients and the dispatch from configuration to client."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import BaseEmailClient
from .mailersend import MailerSendClient, MailerSendConfig
from .memory import MemoryClient, MemoryConfig
from .smtp import SmtpClient, SmtpConfig, TlsMode
from .terminal import TerminalClient, TerminalConfig

if TYPE_CHECKING:
    from ..configuration import EmailConfiguration

EmailClient = TerminalClient | MemoryClient | SmtpClient | MailerSendClient


def get_email_client(configuration: EmailConfiguration | None = None) -> EmailClient:
    """Build the client matching ``configuration``.

    ``None`` selects the terminal backend with default settings. Nothing is
    sent; only the memory backend allocates a resource (its queue).
    """
    if configuration is None:
        configuration = TerminalConfig()
    match configuration:
        case TerminalConfig():
            return TerminalClient(configuration)
        case MemoryConfig():
            return MemoryClient(configuration)
        case SmtpConfig():
            return SmtpClient(configuration)
        case MailerSendConfig():
            return MailerSendClient(configuration)
        case _:
            raise TypeError(f"Unsupported email configuration: {type(configuration).__name__}")


__all__ = [
    "BaseEmailClient",
    "EmailClient",
    "MailerSendClient",
    "MailerSendConfig",
    "MemoryClient",
    "MemoryConfig",
    "SmtpClient",
    "SmtpConfig",
    "TerminalClient",
    "TerminalConfig",
    "TlsMode",
    "get_email_client",
]
