# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Abstract base class for email backend clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from types import TracebackType

    from ..models import EmailAddress, EmailObject


class BaseEmailClient(ABC):
    """Uniform send capability shared by every backend.

    Subclasses hold whatever live resource their backend needs and implement
    :meth:`send`. A client is also an async context manager; leaving the
    block calls :meth:`aclose`.

    Attributes:
        backend: Short backend name used in errors and log lines.
    """

    backend: ClassVar[str] = "base"

    def __init__(self, sender: EmailAddress | None = None):
        self._sender = sender

    def get_sender(self) -> EmailAddress | None:
        """Return the sender configured for this client, if any."""
        return self._sender

    def resolve_sender(self, email: EmailObject) -> EmailAddress:
        """Return the configured sender, falling back to the message sender."""
        return self._sender or email.sender

    @abstractmethod
    async def send(self, email: EmailObject) -> None:
        """Deliver ``email`` through the backend.

        Raises:
            SendError: A subclass describing why the message was not handed over.
        """
        ...

    async def aclose(self) -> None:
        """Release resources held by the client."""

    async def __aenter__(self):
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sender={str(self._sender) if self._sender else None!r})"
