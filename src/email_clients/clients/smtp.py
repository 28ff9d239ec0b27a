# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SMTP backend built on aiosmtplib.

Each :meth:`SmtpClient.send` opens one session to the configured relay,
negotiates TLS according to :class:`TlsMode`, authenticates when a username
is configured, transmits the message and quits. Nothing is retried.

TLS behaviour:
- ``TlsMode.LOCAL``: plain SMTP, no encryption (local relays and tests)
- ``TlsMode.TLS``: implicit TLS from the first byte (typically port 465)
- ``TlsMode.STARTTLS``: plain connection upgraded with STARTTLS (typically 587)

Failures are reported by phase: connecting raises :class:`TransportError`,
logging in raises :class:`AuthError`, and a relay refusing the message raises
:class:`DeliveryError`. A dropped connection or a timeout at any phase is a
:class:`TransportError`.

Example:
    Sending through a STARTTLS relay::

        config = (
            SmtpConfig()
            .sender("noreply@example.com")
            .relay("smtp.example.com")
            .port(587)
            .credentials("noreply@example.com", "secret")
            .tls_mode(TlsMode.STARTTLS)
        )
        await SmtpClient(config).send(email)
"""

from __future__ import annotations

import contextlib
from email.message import EmailMessage
from enum import Enum
from typing import Annotated, Literal

import aiosmtplib
from pydantic import Field, SecretStr

from ..errors import AuthError, DeliveryError, TransportError
from ..logger import get_logger
from ..models import AddressLike, EmailAddress, EmailObject, ValueModel
from .base import BaseEmailClient

SMTP_PORT = 25
DEFAULT_TIMEOUT = 10.0

logger = get_logger("smtp")

# Raised when the session drops or stalls, whatever phase it is in
_TRANSPORT_FAILURES = (aiosmtplib.SMTPServerDisconnected, aiosmtplib.SMTPTimeoutError, OSError)


class TlsMode(str, Enum):
    """How the SMTP session is secured.

    Attributes:
        LOCAL: Plain SMTP without encryption.
        TLS: Implicit TLS (SMTPS).
        STARTTLS: Plain connection upgraded with STARTTLS.
    """

    LOCAL = "local"
    TLS = "tls"
    STARTTLS = "starttls"


class SmtpConfig(ValueModel):
    """Settings for :class:`SmtpClient`.

    Accepts ``sender``, ``relay``, ``port`` and ``timeout`` as keyword
    aliases; the same names are fluent setters returning a new config.

    Attributes:
        sender_address: ``From`` identity and envelope sender. When unset,
            the message sender is used.
        relay_host: Relay hostname or IP address.
        relay_port: Relay port.
        username: Login name; authentication is skipped when empty.
        password: Login password.
        tls: Session security mode.
        timeout_seconds: Timeout applied to every SMTP command.
    """

    kind: Literal["smtp"] = "smtp"
    sender_address: Annotated[
        AddressLike | None,
        Field(default=None, alias="sender", description="Sender address"),
    ]
    relay_host: Annotated[
        str,
        Field(default="localhost", alias="relay", min_length=1, description="Relay hostname"),
    ]
    relay_port: Annotated[
        int,
        Field(default=SMTP_PORT, alias="port", ge=1, le=65535, description="Relay port"),
    ]
    username: Annotated[str, Field(default="", description="SMTP login name")]
    password: Annotated[SecretStr, Field(default=SecretStr(""), description="SMTP password")]
    tls: Annotated[TlsMode, Field(default=TlsMode.LOCAL, description="TLS mode")]
    timeout_seconds: Annotated[
        float,
        Field(default=DEFAULT_TIMEOUT, alias="timeout", gt=0, description="Command timeout in seconds"),
    ]

    def sender(self, value: EmailAddress | str) -> SmtpConfig:
        """Return a copy with another sender."""
        return self._replace(sender_address=value)

    def relay(self, value: str) -> SmtpConfig:
        """Return a copy targeting another relay host."""
        return self._replace(relay_host=value)

    def port(self, value: int) -> SmtpConfig:
        """Return a copy targeting another relay port."""
        return self._replace(relay_port=value)

    def credentials(self, username: str, password: str | SecretStr) -> SmtpConfig:
        """Return a copy authenticating as ``username``."""
        return self._replace(username=username, password=password)

    def tls_mode(self, value: TlsMode | str) -> SmtpConfig:
        """Return a copy using another TLS mode."""
        return self._replace(tls=value)

    def timeout(self, seconds: float) -> SmtpConfig:
        """Return a copy with another command timeout."""
        return self._replace(timeout_seconds=seconds)

    def get_sender(self) -> EmailAddress | None:
        """Return the configured sender, if any."""
        return self.sender_address

    @property
    def has_credentials(self) -> bool:
        """True when a username is set and the client logs in."""
        return bool(self.username)


def _smtp_code(exc: BaseException) -> int | None:
    code = getattr(exc, "code", None)
    return code if isinstance(code, int) else None


class SmtpClient(BaseEmailClient):
    """Client delivering messages through an SMTP relay."""

    backend = "smtp"

    def __init__(self, config: SmtpConfig | None = None):
        self.config = config or SmtpConfig()
        super().__init__(self.config.sender_address)
        logger.info(
            "Starting smtp client for %s:%d (tls=%s)",
            self.config.relay_host,
            self.config.relay_port,
            self.config.tls.value,
        )

    def build_message(self, email: EmailObject) -> EmailMessage:
        """Build the MIME message for ``email``.

        The body is ``multipart/alternative`` with the plain text first and
        the HTML part last, or plain text only when there is no HTML.
        """
        sender = str(self.resolve_sender(email))
        message = EmailMessage()
        message["From"] = sender
        message["Reply-To"] = sender
        message["To"] = ", ".join(str(recipient) for recipient in email.to)
        message["Subject"] = email.subject
        message.set_content(email.plain)
        if email.html:
            message.add_alternative(email.html, subtype="html")
        return message

    def _transport(self) -> aiosmtplib.SMTP:
        config = self.config
        return aiosmtplib.SMTP(
            hostname=config.relay_host,
            port=config.relay_port,
            use_tls=config.tls is TlsMode.TLS,
            start_tls=config.tls is TlsMode.STARTTLS,
            timeout=config.timeout_seconds,
        )

    async def send(self, email: EmailObject) -> None:
        message = self.build_message(email)
        envelope_sender = self.resolve_sender(email).email
        recipients = [recipient.email for recipient in email.to]
        smtp = self._transport()
        try:
            await self._connect(smtp)
            if self.config.has_credentials:
                await self._login(smtp)
            await self._deliver(smtp, message, envelope_sender, recipients)
        finally:
            if smtp.is_connected:
                with contextlib.suppress(aiosmtplib.SMTPException, OSError):
                    await smtp.quit()
        logger.debug(
            "Email %r relayed through %s:%d to %d recipient(s)",
            email.subject,
            self.config.relay_host,
            self.config.relay_port,
            len(recipients),
        )

    async def _connect(self, smtp: aiosmtplib.SMTP) -> None:
        address = f"{self.config.relay_host}:{self.config.relay_port}"
        try:
            await smtp.connect()
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.warning("Cannot connect to SMTP relay %s: %s", address, exc)
            raise TransportError(
                f"Cannot connect to SMTP relay {address}: {exc}",
                backend=self.backend,
                diagnostic=str(exc),
            ) from exc

    async def _login(self, smtp: aiosmtplib.SMTP) -> None:
        try:
            await smtp.login(self.config.username, self.config.password.get_secret_value())
        except _TRANSPORT_FAILURES as exc:
            raise TransportError(
                f"SMTP session lost during authentication: {exc}",
                backend=self.backend,
                diagnostic=str(exc),
            ) from exc
        except aiosmtplib.SMTPException as exc:
            logger.warning("SMTP authentication failed for user %s: %s", self.config.username, exc)
            raise AuthError(
                f"SMTP authentication failed for user {self.config.username}: {exc}",
                backend=self.backend,
                diagnostic=str(exc),
                smtp_code=_smtp_code(exc),
            ) from exc

    async def _deliver(
        self,
        smtp: aiosmtplib.SMTP,
        message: EmailMessage,
        envelope_sender: str,
        recipients: list[str],
    ) -> None:
        try:
            refused, _response = await smtp.send_message(
                message, sender=envelope_sender, recipients=recipients
            )
        except _TRANSPORT_FAILURES as exc:
            raise TransportError(
                f"SMTP session lost while sending: {exc}",
                backend=self.backend,
                diagnostic=str(exc),
            ) from exc
        except aiosmtplib.SMTPRecipientsRefused as exc:
            codes = [_smtp_code(item) for item in exc.recipients]
            logger.warning("SMTP relay refused every recipient: %s", exc)
            raise DeliveryError(
                f"SMTP relay refused every recipient: {exc}",
                backend=self.backend,
                diagnostic=str(exc),
                smtp_code=next((code for code in codes if code is not None), None),
                rejected_recipients=[item.recipient for item in exc.recipients],
            ) from exc
        except aiosmtplib.SMTPException as exc:
            logger.warning("SMTP relay rejected the message: %s", exc)
            raise DeliveryError(
                f"SMTP relay rejected the message: {exc}",
                backend=self.backend,
                diagnostic=str(exc),
                smtp_code=_smtp_code(exc),
            ) from exc

        if refused:
            details = "; ".join(f"{address}: {response.code} {response.message}" for address, response in refused.items())
            logger.warning("SMTP relay refused %d recipient(s): %s", len(refused), details)
            raise DeliveryError(
                f"SMTP relay refused {len(refused)} of {len(recipients)} recipient(s): {details}",
                backend=self.backend,
                diagnostic=details,
                smtp_code=next(iter(refused.values())).code,
                rejected_recipients=list(refused),
            )


__all__ = ["DEFAULT_TIMEOUT", "SMTP_PORT", "SmtpClient", "SmtpConfig", "TlsMode"]
