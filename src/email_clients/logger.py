# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging helper for the email clients package.

Loggers live under the ``email_clients`` namespace. The package itself only
installs a ``NullHandler``; level, handlers and format belong to the
application entry point (``logging.basicConfig()`` or similar).

Example:
    Typical usage in a module::

        from email_clients.logger import get_logger

        logger = get_logger("smtp")
        logger.info("Starting smtp client")
"""

from __future__ import annotations

import logging

ROOT_LOGGER_NAME = "email_clients"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger, or one of its children.

    Args:
        name: Child logger suffix (``"smtp"`` gives ``email_clients.smtp``).
            ``None`` returns the package root logger.

    Returns:
        A standard library ``logging.Logger``.
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
