# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy raised by the email clients.

Every error derives from :class:`EmailClientError`. Failures detected while
building messages or configurations are :class:`ValidationError`; failures
raised by ``send`` derive from :class:`SendError` and are chained to the
underlying library exception.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError as PydanticValidationError


class EmailClientError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(EmailClientError, ValueError):
    """Raised when an address, message or configuration fails validation.

    Attributes:
        field: Dotted location of the offending field (``"to.1.email"``),
            empty when the failure is not tied to a single field.
        message: Human readable reason.
    """

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}" if field else message)
        self.field = field
        self.message = message

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> ValidationError:
        """Build from the first error reported by pydantic."""
        errors = exc.errors()
        if not errors:
            return cls("", str(exc))
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        cause = (first.get("ctx") or {}).get("error")
        if isinstance(cause, ValidationError):
            return cls(".".join(part for part in (field, cause.field) if part), cause.message)
        message = first.get("msg", "invalid value")
        # pydantic prefixes messages coming from ValueError
        message = message.removeprefix("Value error, ")
        return cls(field, message)


class ConfigurationError(EmailClientError):
    """Raised when the backend configuration cannot be resolved."""


class SendError(EmailClientError):
    """Base class for failures raised by ``send``.

    Attributes:
        backend: Name of the backend that failed (``"smtp"``, ``"memory"``...).
        diagnostic: Text reported by the underlying transport, if any.
    """

    def __init__(self, message: str, *, backend: str | None = None, diagnostic: str | None = None):
        super().__init__(message)
        self.backend = backend
        self.diagnostic = diagnostic


class TransportError(SendError):
    """The backend could not be reached (connect, DNS, TLS, timeout)."""


class DeliveryError(SendError):
    """The remote service actively rejected the message.

    Attributes:
        status_code: HTTP status returned by an API backend.
        smtp_code: SMTP reply code returned by a relay.
        body: Raw response body returned by an API backend.
        rejected_recipients: Recipient addresses refused by the relay.
    """

    def __init__(
        self,
        message: str,
        *,
        backend: str | None = None,
        diagnostic: str | None = None,
        status_code: int | None = None,
        smtp_code: int | None = None,
        body: str | None = None,
        rejected_recipients: Iterable[str] = (),
    ):
        super().__init__(message, backend=backend, diagnostic=diagnostic)
        self.status_code = status_code
        self.smtp_code = smtp_code
        self.body = body
        self.rejected_recipients = tuple(rejected_recipients)


class AuthError(DeliveryError):
    """Credentials were rejected by the relay or the API."""


class QueueFull(SendError):
    """The in-memory queue had no room for the message."""


class OutputError(SendError):
    """Writing the rendered message to the output stream failed."""


__all__ = [
    "AuthError",
    "ConfigurationError",
    "DeliveryError",
    "EmailClientError",
    "OutputError",
    "QueueFull",
    "SendError",
    "TransportError",
    "ValidationError",
]
