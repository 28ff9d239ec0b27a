# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""MailerSend backend: deliver through the MailerSend HTTP API.

Each send is a single ``POST <base_url>/email`` authenticated with a bearer
token. The JSON body carries the sender, recipients, subject and both
bodies; empty display names and bodies are omitted.

Example:
    Sending with an API token::

        config = MailerSendConfig().api_key("mlsn.xxx").sender("noreply@example.com")
        async with MailerSendClient(config) as client:
            await client.send(email)
"""

from __future__ import annotations

import asyncio
import json
from typing import Annotated, Any, Literal

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from ..errors import AuthError, DeliveryError, TransportError
from ..logger import get_logger
from ..models import AddressLike, EmailAddress, EmailObject, ValueModel
from .base import BaseEmailClient

MAILERSEND_BASE_URL = "https://api.mailersend.com/v1"
DEFAULT_TIMEOUT = 30.0

logger = get_logger("mailersend")


class MailerSendConfig(ValueModel):
    """Settings for :class:`MailerSendClient`.

    Accepts ``sender``, ``base_url``, ``api_key`` and ``timeout`` as keyword
    aliases; the same names are fluent setters returning a new config.

    Attributes:
        sender_address: ``from`` identity. When unset, the message sender is used.
        api_url: API root, without trailing slash.
        token: API token sent as a bearer credential.
        timeout_seconds: Total timeout of the HTTP request.
    """

    kind: Literal["mailersend"] = "mailersend"
    sender_address: Annotated[
        AddressLike | None,
        Field(default=None, alias="sender", description="Sender address"),
    ]
    api_url: Annotated[
        str,
        Field(default=MAILERSEND_BASE_URL, alias="base_url", min_length=1, description="API base URL"),
    ]
    token: Annotated[
        SecretStr,
        Field(default=SecretStr(""), alias="api_key", description="MailerSend API token"),
    ]
    timeout_seconds: Annotated[
        float,
        Field(default=DEFAULT_TIMEOUT, alias="timeout", gt=0, description="Request timeout in seconds"),
    ]

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        stripped = value.rstrip("/")
        if not stripped:
            raise ValueError("base URL must not be empty")
        return stripped

    def api_key(self, value: str | SecretStr) -> MailerSendConfig:
        """Return a copy using another API token."""
        return self._replace(token=value)

    api_token = api_key

    def base_url(self, value: str) -> MailerSendConfig:
        """Return a copy targeting another API root."""
        return self._replace(api_url=value)

    def sender(self, value: EmailAddress | str) -> MailerSendConfig:
        """Return a copy with another sender."""
        return self._replace(sender_address=value)

    def timeout(self, seconds: float) -> MailerSendConfig:
        """Return a copy with another request timeout."""
        return self._replace(timeout_seconds=seconds)

    def get_sender(self) -> EmailAddress | None:
        """Return the configured sender, if any."""
        return self.sender_address

    def get_base_url(self) -> str:
        """Return the API root, without trailing slash."""
        return self.api_url

    @property
    def endpoint(self) -> str:
        """URL of the send endpoint."""
        return f"{self.api_url}/email"


class _Recipient(BaseModel):
    email: str
    name: str | None = None


class MailerSendPayload(BaseModel):
    """JSON body of ``POST /email``."""

    model_config = ConfigDict(populate_by_name=True)

    from_: Annotated[_Recipient, Field(alias="from")]
    to: list[_Recipient]
    subject: str
    text: str | None = None
    html: str | None = None

    @classmethod
    def build(cls, email: EmailObject, sender: EmailAddress) -> MailerSendPayload:
        def recipient(address: EmailAddress) -> _Recipient:
            return _Recipient(email=address.email, name=address.name or None)

        return cls(
            from_=recipient(sender),
            to=[recipient(address) for address in email.to],
            subject=email.subject,
            text=email.plain or None,
            html=email.html or None,
        )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def _provider_message(body: str) -> str | None:
    """Extract the ``message`` field of a JSON error body."""
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return None


class MailerSendClient(BaseEmailClient):
    """Client delivering messages through the MailerSend API.

    Args:
        config: Backend settings.
        session: Shared ``aiohttp.ClientSession``. When given it is reused for
            every send and left open; otherwise a session is opened per send.
    """

    backend = "mailersend"

    def __init__(
        self,
        config: MailerSendConfig | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self.config = config or MailerSendConfig()
        super().__init__(self.config.sender_address)
        self._session = session
        logger.info("Starting mailersend client for %s", self.config.endpoint)

    def build_payload(self, email: EmailObject) -> dict[str, Any]:
        return MailerSendPayload.build(email, self.resolve_sender(email)).to_json()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.token.get_secret_value()}",
            "Accept": "application/json",
        }

    async def send(self, email: EmailObject) -> None:
        payload = self.build_payload(email)
        if self._session is not None:
            await self._post(self._session, payload, email)
            return
        async with aiohttp.ClientSession() as session:
            await self._post(session, payload, email)

    async def _post(self, session: aiohttp.ClientSession, payload: dict[str, Any], email: EmailObject) -> None:
        url = self.config.endpoint
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
        try:
            async with session.post(url, json=payload, headers=self._headers(), timeout=timeout) as response:
                status = response.status
                if 200 <= status < 300:
                    logger.debug(
                        "Email %r accepted by mailersend (status %d, message id %s)",
                        email.subject,
                        status,
                        response.headers.get("X-Message-Id"),
                    )
                    return
                body = await response.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Cannot reach mailersend at %s: %s", url, exc)
            raise TransportError(
                f"Cannot reach mailersend at {url}: {exc or type(exc).__name__}",
                backend=self.backend,
                diagnostic=str(exc) or type(exc).__name__,
            ) from exc

        diagnostic = _provider_message(body) or body
        logger.warning("Mailersend rejected email %r with status %d: %s", email.subject, status, diagnostic)
        error_class = AuthError if status in (401, 403) else DeliveryError
        raise error_class(
            f"Mailersend returned HTTP {status}: {diagnostic}",
            backend=self.backend,
            diagnostic=diagnostic,
            status_code=status,
            body=body,
        )


__all__ = [
    "DEFAULT_TIMEOUT",
    "MAILERSEND_BASE_URL",
    "MailerSendClient",
    "MailerSendConfig",
    "MailerSendPayload",
]
