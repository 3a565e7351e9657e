"""
Logging setup for UniqueJobs.

Decision branches in the engine log with ``extra={"event": ..., ...}``. The
structured formatter emits those fields as JSON lines so a log pipeline can
consume them; the simple formatter keeps the familiar text layout.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..settings import UniqueJobsSettings

LOGGER_NAME = "uniquejobs"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


def record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the custom fields attached to a record via ``extra``."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class StructuredFormatter(logging.Formatter):
    """JSON formatter that includes the event fields of each record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(record_fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=repr)


def configure_logging(
    settings: UniqueJobsSettings, handler: Optional[logging.Handler] = None
) -> logging.Logger:
    """
    Configure the ``uniquejobs`` logger from settings.

    Args:
        settings: Settings supplying log_level, log_format and debug
        handler: Handler to install (defaults to a stderr StreamHandler)

    Returns:
        The configured ``uniquejobs`` logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)
    logger.setLevel(level)

    # Replace handlers installed by a previous call
    for existing in logger.handlers[:]:
        if getattr(existing, "_uniquejobs_handler", False):
            logger.removeHandler(existing)

    handler = handler or logging.StreamHandler()
    handler._uniquejobs_handler = True

    if settings.log_format == "structured":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    logger.addHandler(handler)
    return logger
