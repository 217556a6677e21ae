"""Logging configuration for the CLI and embedding applications.

Two output shapes are supported.  The default is a plain text line::

    2025-05-15 12:34:56,789  INFO      schema_engine.importer  Imported 3 table(s)

With ``SCHEMABRIDGE_STRUCTURED_LOGGING=true`` each record is emitted as a
single-line JSON object instead::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "INFO",
        "logger": "schema_engine.importer",
        "message": "Imported 3 table(s)",
        "exc_info": "Traceback ..."  // present only on exceptions
    }

The library modules never configure logging themselves; they only obtain
module loggers.
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

from schema_engine.config import Settings

TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* as a single JSON line."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings, *, level: int | None = None) -> logging.Handler:
    """Install a single stderr handler on the root logger.

    Parameters
    ----------
    settings:
        Selects JSON or text output and, through ``debug``, the default level.
    level:
        Explicit level overriding the one derived from ``settings.debug``.

    Returns
    -------
    logging.Handler
        The installed handler.
    """
    if level is None:
        level = logging.DEBUG if settings.debug else logging.WARNING

    handler = logging.StreamHandler()
    if settings.structured_logging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return handler
