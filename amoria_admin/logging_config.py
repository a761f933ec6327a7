"""
structlog setup for the admin API.

JSON lines go to stdout outside development so the platform's log shipper can
parse them; development gets the coloured console renderer. Any string value
that looks like an email address is masked before rendering, because OTP and
reply flows log recipients.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any, Callable, MutableMapping, cast

import structlog

from amoria_admin.config import IS_DEVELOPMENT, LOG_LEVEL

Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

EMAIL_IN_TEXT = re.compile(r"\b([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")

NOISY_LOGGERS = ("urllib3", "requests", "sqlalchemy.engine", "uvicorn.access", "multipart")


def mask_emails(_: Any, __: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """
    Replace email addresses in string values with ``x***@domain``.

    Example:
        >>> mask_emails(None, "info", {"event": "sent", "to": "jane@example.com"})
        {'event': 'sent', 'to': 'j***@example.com'}
    """
    for key, value in event_dict.items():
        if isinstance(value, str) and "@" in value:
            event_dict[key] = EMAIL_IN_TEXT.sub(r"\1***@\2", value)
    return event_dict


def setup_logging() -> None:
    """Configure stdlib logging for libraries and structlog for our own loggers."""
    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=LOG_LEVEL,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        mask_emails,
    ]
    if IS_DEVELOPMENT:
        processors += [
            structlog.dev.set_exc_info,
            cast(Processor, structlog.dev.ConsoleRenderer(colors=True)),
        ]
    else:
        processors += [
            structlog.processors.format_exc_info,
            cast(Processor, structlog.processors.JSONRenderer()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
