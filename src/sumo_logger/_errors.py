"""Exception hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sumo_logger._types import LogResponse


class SumoLoggerError(Exception):
    """Base class for all sumo_logger errors."""


class ConfigurationError(SumoLoggerError):
    """Raised when a logger configuration is missing a required value or is invalid."""


class MessageValidationError(SumoLoggerError):
    """Raised when a message cannot be serialized for the active output format."""


class TransportError(SumoLoggerError):
    """A POST to the collection endpoint failed.

    ``status_code`` and ``response`` are set when the server answered with a
    non-2xx status; both are ``None`` for network-level failures.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response: LogResponse | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response
