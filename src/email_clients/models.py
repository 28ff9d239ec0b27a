# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic value types shared by every email backend.

Models:
    - ValueModel: Frozen base model raising this package's ValidationError
    - EmailAddress: A display name plus a syntactically valid address
    - EmailObject: One outbound message (sender, recipients, subject, bodies)

Addresses are validated when the value is built, so a malformed address is
reported before any backend is contacted.

Example:
    Building a message::

        email = EmailObject(
            sender="Support <support@example.com>",
            to=[EmailAddress.new("Mail", "mail@example.com")],
            subject="Welcome",
            plain="Hello",
            html="<b>Hello</b>",
        )
"""

from __future__ import annotations

import re
from email.utils import parseaddr
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

MAX_ADDRESS_LENGTH = 254
MAX_LOCAL_PART_LENGTH = 64

_ATEXT = r"[\w!#$%&'*+/=?^`{|}~-]"
_DOT_ATOM = rf"{_ATEXT}+(?:\.{_ATEXT}+)*"
_LABEL = r"[^\W_](?:[\w-]*[^\W_])?"
_DOMAIN = rf"{_LABEL}(?:\.{_LABEL})*"
_DOMAIN_LITERAL = r"\[[^\[\]\\\s]+\]"
ADDRESS_PATTERN = re.compile(rf"(?P<local>{_DOT_ATOM})@(?P<domain>{_DOMAIN}|{_DOMAIN_LITERAL})")

# RFC 5322 specials, whitespace runs and tabs force a display name to be quoted
_NAME_NEEDS_QUOTES = re.compile(r'[()<>\[\]:;@\\,."]|\s{2,}|[^\S ]')


def validate_address(value: str) -> str:
    """Check that ``value`` is a ``local@domain`` address.

    The value is returned unchanged; nothing is trimmed or repaired.

    Raises:
        ValueError: With a short reason when the address is malformed.
    """
    if "@" not in value:
        raise ValueError("missing '@' in address")
    local, _, domain = value.rpartition("@")
    if not local:
        raise ValueError("empty local part")
    if not domain:
        raise ValueError("empty domain")
    if len(value) > MAX_ADDRESS_LENGTH:
        raise ValueError(f"address longer than {MAX_ADDRESS_LENGTH} characters")
    if len(local) > MAX_LOCAL_PART_LENGTH:
        raise ValueError(f"local part longer than {MAX_LOCAL_PART_LENGTH} characters")
    if not ADDRESS_PATTERN.fullmatch(value):
        raise ValueError(f"invalid address {value!r}")
    return value


def _reject_line_breaks(value: str) -> str:
    if "\r" in value or "\n" in value:
        raise ValueError("must not contain line breaks")
    return value


class ValueModel(BaseModel):
    """Frozen pydantic model reporting failures as :class:`ValidationError`."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    def __init__(self, /, **data: Any) -> None:
        try:
            super().__init__(**data)
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc

    def _replace(self, **changes: Any):
        """Return a validated copy with ``changes`` applied."""
        return type(self)(**{**dict(self), **changes})


class EmailAddress(ValueModel):
    """A recipient or sender address.

    Attributes:
        name: Display name, may be empty.
        email: Address in ``local@domain`` form.
    """

    name: Annotated[str, Field(default="", description="Display name")]
    email: Annotated[str, Field(description="Address in local@domain form")]

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return _reject_line_breaks(value)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return validate_address(value)

    @classmethod
    def new(cls, name: str, email: str) -> EmailAddress:
        """Build an address from a display name and an address."""
        return cls(name=name, email=email)

    @classmethod
    def parse(cls, value: str) -> EmailAddress:
        """Parse ``"Name <addr>"`` or a bare ``"addr"``.

        Raises:
            ValidationError: If no valid address can be read from ``value``.
        """
        if not isinstance(value, str):
            raise ValidationError("email", f"expected a string, got {type(value).__name__}")
        if value.rstrip().endswith(">"):
            name, address = parseaddr(value)
            if not address:
                raise ValidationError("email", f"cannot parse address from {value!r}")
            return cls(name=name, email=address)
        return cls(email=value)

    def __str__(self) -> str:
        if not self.name:
            return self.email
        name = self.name
        if _NAME_NEEDS_QUOTES.search(name) or name != name.strip():
            escaped = name.replace("\\", "\\\\").replace('"', '\\"')
            name = f'"{escaped}"'
        return f"{name} <{self.email}>"


def _coerce_address(value: Any) -> Any:
    if isinstance(value, str):
        return EmailAddress.parse(value)
    return value


AddressLike = Annotated[EmailAddress, BeforeValidator(_coerce_address)]
"""An ``EmailAddress`` field that also accepts ``"Name <addr>"`` strings."""


class EmailObject(ValueModel):
    """One outbound message.

    Attributes:
        sender: Address the message is sent from.
        to: Recipients, in order. At least one is required.
        subject: Subject line (single line).
        plain: Plain text body.
        html: HTML body.
    """

    sender: Annotated[AddressLike, Field(description="Sender address")]
    to: Annotated[
        tuple[AddressLike, ...],
        Field(min_length=1, description="Recipient addresses"),
    ]
    subject: Annotated[str, Field(default="", description="Subject line")]
    plain: Annotated[str, Field(default="", description="Plain text body")]
    html: Annotated[str, Field(default="", description="HTML body")]

    @field_validator("to", mode="before")
    @classmethod
    def _single_recipient(cls, value: Any) -> Any:
        if isinstance(value, (str, dict, EmailAddress)):
            return (value,)
        return value

    @field_validator("subject")
    @classmethod
    def _check_subject(cls, value: str) -> str:
        return _reject_line_breaks(value)


__all__ = [
    "ADDRESS_PATTERN",
    "AddressLike",
    "EmailAddress",
    "EmailObject",
    "ValueModel",
    "validate_address",
]
