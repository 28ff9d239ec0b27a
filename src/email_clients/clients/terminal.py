# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Terminal backend: print outgoing messages instead of sending them.

Meant for local development. The rendered block is written to the stream of
a ``rich`` console (standard output by default) without any rendering, so
tabs, carriage returns and markup in the bodies appear exactly as written.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field
from rich.console import Console

from ..errors import OutputError
from ..logger import get_logger
from ..models import AddressLike, EmailAddress, EmailObject, ValueModel
from .base import BaseEmailClient

SEPARATOR = "-" * 10

logger = get_logger("terminal")


class TerminalConfig(ValueModel):
    """Settings for :class:`TerminalClient`.

    Attributes:
        sender: Address shown on the ``From:`` line. When unset, the message
            sender is shown.
    """

    kind: Literal["terminal"] = "terminal"
    sender: Annotated[
        AddressLike | None,
        Field(default=None, description="Address shown as sender"),
    ]


def render_email(email: EmailObject, sender: EmailAddress) -> str:
    """Format ``email`` as the human readable block printed by the terminal backend."""
    lines = [f"From: {sender}"]
    lines.extend(f"To: {recipient}" for recipient in email.to)
    lines.append(f"Subject: {email.subject}")
    lines.append("")
    lines.append(email.plain)
    lines.append(SEPARATOR)
    lines.append(email.html)
    return "\n".join(lines)


class TerminalClient(BaseEmailClient):
    """Client writing every message to standard output."""

    backend = "terminal"

    def __init__(self, config: TerminalConfig | None = None, console: Console | None = None):
        self.config = config or TerminalConfig()
        super().__init__(self.config.sender)
        self._console = console or Console()

    async def send(self, email: EmailObject) -> None:
        text = render_email(email, self.resolve_sender(email))
        try:
            stream = self._console.file
            stream.write(text + "\n")
            stream.flush()
        except OSError as exc:
            logger.warning("Could not write email to terminal: %s", exc)
            raise OutputError(
                f"Failed to write email to terminal: {exc}",
                backend=self.backend,
                diagnostic=str(exc),
            ) from exc
        logger.debug("Printed email %r for %d recipient(s)", email.subject, len(email.to))


__all__ = ["TerminalClient", "TerminalConfig", "render_email"]
