"""sumo_logger: buffered log shipping to Sumo Logic HTTP sources."""

from __future__ import annotations

from sumo_logger._config import SumoLoggerConfig
from sumo_logger._errors import (
    ConfigurationError,
    MessageValidationError,
    SumoLoggerError,
    TransportError,
)
from sumo_logger._handler import SumoHandler
from sumo_logger._logger import SumoLogger, create_logger
from sumo_logger._transport import HttpTransport, Transport
from sumo_logger._types import LogResponse, OutputFormat

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "HttpTransport",
    "LogResponse",
    "MessageValidationError",
    "OutputFormat",
    "SumoHandler",
    "SumoLogger",
    "SumoLoggerConfig",
    "SumoLoggerError",
    "Transport",
    "TransportError",
    "__version__",
    "create_logger",
]
