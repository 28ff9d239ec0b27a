# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Backend selection: the configuration union and its loaders.

An :data:`EmailConfiguration` is one of the four backend configs, told apart
by their ``kind`` field. It can be built directly, parsed from a mapping, or
loaded from an INI file and ``EMAIL_CLIENTS_*`` environment variables.

Example:
    Configuration file format (email.ini)::

        [email]
        backend = smtp
        sender = Support <support@example.com>

        [smtp]
        relay = smtp.example.com
        port = 587
        username = support@example.com
        password = secret
        tls = starttls

    Loading it::

        configuration = load_email_configuration("/etc/myapp/email.ini")
        client = get_email_client(configuration)
"""

from __future__ import annotations

import configparser
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field

from .clients.mailersend import MailerSendConfig
from .clients.memory import MemoryConfig
from .clients.smtp import SmtpConfig
from .clients.terminal import TerminalConfig
from .errors import ConfigurationError, ValidationError
from .logger import get_logger

EmailConfiguration = Annotated[
    TerminalConfig | MemoryConfig | SmtpConfig | MailerSendConfig,
    Field(discriminator="kind"),
]
"""Settings of exactly one backend, discriminated by ``kind``."""

DEFAULT_BACKEND = "terminal"
ENV_PREFIX = "EMAIL_CLIENTS_"

CONFIG_TYPES: dict[str, type] = {
    "terminal": TerminalConfig,
    "memory": MemoryConfig,
    "smtp": SmtpConfig,
    "mailersend": MailerSendConfig,
}

# Per backend: (INI option, environment suffix) for each setting, keyed by
# the keyword the config model accepts.
_SETTINGS: dict[str, dict[str, tuple[str, str]]] = {
    "terminal": {},
    "memory": {
        "capacity": ("capacity", "MEMORY_CAPACITY"),
        "put_timeout": ("put_timeout", "MEMORY_PUT_TIMEOUT"),
    },
    "smtp": {
        "relay": ("relay", "SMTP_RELAY"),
        "port": ("port", "SMTP_PORT"),
        "username": ("username", "SMTP_USERNAME"),
        "password": ("password", "SMTP_PASSWORD"),
        "tls": ("tls", "SMTP_TLS"),
        "timeout": ("timeout", "SMTP_TIMEOUT"),
    },
    "mailersend": {
        "api_key": ("api_key", "MAILERSEND_API_KEY"),
        "base_url": ("base_url", "MAILERSEND_BASE_URL"),
        "timeout": ("timeout", "MAILERSEND_TIMEOUT"),
    },
}

# Enumerated settings accepted in any case, like the backend name
_CASE_INSENSITIVE = frozenset({"tls"})

logger = get_logger("configuration")


def parse_email_configuration(data: Mapping[str, Any]) -> EmailConfiguration:
    """Validate a mapping into the matching backend configuration.

    ``kind`` selects the backend and defaults to ``"terminal"``. The other
    keys are the config's fields or their aliases (``relay``, ``port``...).

    Raises:
        ValidationError: If ``kind`` is unknown or a value is invalid.
    """
    values = dict(data)
    kind = values.setdefault("kind", DEFAULT_BACKEND)
    config_type = CONFIG_TYPES.get(kind) if isinstance(kind, str) else None
    if config_type is None:
        expected = ", ".join(sorted(CONFIG_TYPES))
        raise ValidationError("kind", f"unknown backend {kind!r} (expected one of: {expected})")
    return config_type(**values)


def load_email_configuration(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> EmailConfiguration:
    """Load the backend configuration from a config file or environment.

    Priority: config file > environment variables > defaults. Empty values
    are ignored. See the module docstring for the file format; environment
    variables use the ``EMAIL_CLIENTS_`` prefix (``EMAIL_CLIENTS_BACKEND``,
    ``EMAIL_CLIENTS_SENDER``, ``EMAIL_CLIENTS_SMTP_PORT``...).

    Args:
        config_path: Optional path to an INI file.
        environ: Environment mapping, ``os.environ`` when omitted.

    Raises:
        ConfigurationError: If the selected backend is unknown.
        ValidationError: If a setting has an invalid value.
    """
    env = os.environ if environ is None else environ
    parser = configparser.ConfigParser(interpolation=None)
    if config_path and Path(config_path).exists():
        parser.read(config_path)
        logger.debug("Read email configuration from %s", config_path)
    elif config_path:
        logger.warning("Email configuration file %s not found, using environment", config_path)

    def lookup(section: str, option: str, env_suffix: str) -> str | None:
        value = parser.get(section, option, fallback=None)
        if value is None or not value.strip():
            value = env.get(f"{ENV_PREFIX}{env_suffix}")
        if value is None or not value.strip():
            return None
        return value.strip()

    backend = (lookup("email", "backend", "BACKEND") or DEFAULT_BACKEND).lower()
    if backend not in CONFIG_TYPES:
        expected = ", ".join(sorted(CONFIG_TYPES))
        raise ConfigurationError(f"Unknown email backend {backend!r} (expected one of: {expected})")

    values: dict[str, Any] = {"kind": backend}
    sender = lookup("email", "sender", "SENDER")
    if sender is not None:
        values["sender"] = sender
    for key, (option, env_suffix) in _SETTINGS[backend].items():
        value = lookup(backend, option, env_suffix)
        if value is not None:
            values[key] = value.lower() if key in _CASE_INSENSITIVE else value

    configuration = parse_email_configuration(values)
    logger.info("Using %s email backend", backend)
    return configuration


__all__ = [
    "CONFIG_TYPES",
    "DEFAULT_BACKEND",
    "ENV_PREFIX",
    "EmailConfiguration",
    "load_email_configuration",
    "parse_email_configuration",
]
