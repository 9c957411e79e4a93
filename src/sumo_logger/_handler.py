"""Bridge from the stdlib ``logging`` module to a SumoLogger."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any

from sumo_logger._logger import SumoLogger
from sumo_logger._types import OutputFormat

_INTERNAL_LOGGER_PREFIX = "sumo_logger"


class _ExcludeInternal(logging.Filter):
    """Drops records from the ``sumo_logger`` loggers."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        return not (
            name == _INTERNAL_LOGGER_PREFIX or name.startswith(_INTERNAL_LOGGER_PREFIX + ".")
        )


class SumoHandler(logging.Handler):
    """``logging.Handler`` that forwards records to a SumoLogger.

    The handler does not own the SumoLogger: closing the handler leaves the
    logger running so it can be shared between several handlers. Records from
    the ``sumo_logger`` loggers themselves are never forwarded.

    Usage::

        sumo = create_logger(endpoint=url, interval=5000)
        logging.getLogger("app").addHandler(SumoHandler(sumo))
    """

    def __init__(self, sumo_logger: SumoLogger, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.sumo_logger = sumo_logger
        self.addFilter(_ExcludeInternal())
        self._local = threading.local()

    def _payload(self, record: logging.LogRecord) -> Any:
        # Without an explicit formatter, JSON mode gets a structured record.
        if self.formatter is None and self.sumo_logger.config.output_format is OutputFormat.JSON:
            payload: dict[str, Any] = {
                "msg": record.getMessage(),
                "level": record.levelname,
                "logger": record.name,
            }
            if record.exc_info:
                payload["exception"] = logging.Formatter().formatException(record.exc_info)
            return payload
        return self.format(record)

    def emit(self, record: logging.LogRecord) -> None:
        # Anything logged while forwarding on this thread is not forwarded again.
        if getattr(self._local, "emitting", False):
            return
        self._local.emitting = True
        try:
            self.sumo_logger.log(
                self._payload(record),
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
            )
        except Exception:  # noqa: BLE001
            self.handleError(record)
        finally:
            self._local.emitting = False

    def flush(self) -> None:
        self.sumo_logger.flush_logs()
