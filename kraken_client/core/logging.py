"""Structured logging for the client library.

Every module logs through ``logging.getLogger(__name__)``, so all records
live under the ``kraken_client`` logger. Nothing is configured on import.
Applications that want JSON output with credentials scrubbed call
``configure_logging()``, which touches the ``kraken_client`` logger only
and leaves the root logger and its handlers to the host program.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import IO, Any, Iterable, Mapping

from kraken_client.core.config import LogSettings, load_settings

PACKAGE_LOGGER = "kraken_client"

REDACTED = "[REDACTED]"

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "api_key",
        "api-key",
        "api_sign",
        "api-sign",
        "private_key",
        "secret",
        "signature",
        "otp",
        "authorization",
        "token",
        "password",
    }
)

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_call_id_var: ContextVar[str | None] = ContextVar("kraken_call_id", default=None)


def bind_call_id(call_id: str | None) -> Token:
    """Set the call id for the current context.

    Returns:
        Token to hand back to ``reset_call_id`` so an enclosing id is restored.
    """

    return _call_id_var.set(call_id)


def reset_call_id(token: Token) -> None:
    _call_id_var.reset(token)


def get_call_id() -> str | None:
    return _call_id_var.get()


def redact(value: Any, sensitive_keys: Iterable[str] = SENSITIVE_KEYS_DEFAULT) -> Any:
    """Replace values stored under sensitive keys, at any nesting depth.

    Keys are compared case-insensitively, so ``API-Sign`` in a header mapping
    matches ``api-sign``.

    Examples:
        >>> redact({"headers": {"API-Key": "k", "Accept": "json"}})
        {'headers': {'API-Key': '[REDACTED]', 'Accept': 'json'}}
    """

    keys = sensitive_keys if isinstance(sensitive_keys, frozenset) else frozenset(sensitive_keys)
    if isinstance(value, Mapping):
        return {
            k: REDACTED if str(k).lower() in keys else redact(v, keys)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact(v, keys) for v in value)
    return value


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields attached to a record through ``extra=``."""

    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class CallIdFilter(logging.Filter):
    """Stamp records with the call id of the context that emitted them."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "call_id", None) is None:
            record.call_id = get_call_id()
        return True


class SensitiveDataFilter(logging.Filter):
    """Scrub credentials out of a record's extra fields in place."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(
            k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT)
        )

    def filter(self, record: logging.LogRecord) -> bool:
        scrubbed = redact(extra_fields(record), self.sensitive_keys)
        for key, value in scrubbed.items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: event, level, logger, call id, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        payload.update({k: v for k, v in extra_fields(record).items() if v is not None})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _is_ours(handler: logging.Handler) -> bool:
    return getattr(handler, "_kraken_client_handler", False)


def configure_logging(
    log_settings: LogSettings | None = None,
    *,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Route the library's records to a stream, scrubbed and formatted.

    Calling it again replaces the handler installed by the previous call;
    handlers added by anyone else are kept. Records stop propagating to the
    root logger so the host's handlers do not print them a second time.

    Args:
        log_settings: Level and format; resolved with ``load_settings()``
            when omitted.
        stream: Destination; defaults to stderr.

    Returns:
        The configured ``kraken_client`` logger.
    """

    cfg = log_settings or load_settings().log

    handler = logging.StreamHandler(stream or sys.stderr)
    handler._kraken_client_handler = True  # type: ignore[attr-defined]
    handler.addFilter(CallIdFilter())
    handler.addFilter(SensitiveDataFilter())
    if cfg.format.lower() == "plain":
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(call_id)s] %(message)s")
        )
    else:
        handler.setFormatter(JsonFormatter())

    logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in [h for h in logger.handlers if _is_ours(h)]:
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))
    logger.propagate = False
    return logger
