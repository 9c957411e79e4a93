"""Logger configuration."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, fields, replace
from typing import Any

from sumo_logger._errors import ConfigurationError
from sumo_logger._types import OutputFormat

DEFAULT_INTERVAL_MS = 0
DEFAULT_BATCH_SIZE = 0
DEFAULT_TIMEOUT_S = 10.0

# Fields update_config() may change. session_key is fixed for the logger's lifetime.
UPDATABLE_FIELDS = frozenset({
    "endpoint",
    "return_promise",
    "client_url",
    "use_interval_only",
    "interval",
    "batch_size",
    "source_name",
    "host_name",
    "source_category",
    "on_success",
    "on_error",
})


def _noop(*args: Any) -> None:
    """Default success/error callback."""


@dataclass(frozen=True)
class SumoLoggerConfig:
    """Immutable logger configuration.

    ``interval`` is in milliseconds and ``batch_size`` in characters; 0
    disables the respective batching trigger. With both at 0 every message
    is sent as soon as it is logged.
    """

    endpoint: str
    return_promise: bool = True
    client_url: str = ""
    use_interval_only: bool = False
    interval: int = DEFAULT_INTERVAL_MS
    batch_size: int = DEFAULT_BATCH_SIZE
    source_name: str = ""
    host_name: str = ""
    source_category: str = ""
    session_key: str = ""
    on_success: Callable[..., Any] = _noop
    on_error: Callable[..., Any] = _noop
    graphite: bool = False
    carbon2: bool = False
    raw: bool = False
    timeout_s: float = DEFAULT_TIMEOUT_S

    def __post_init__(self) -> None:
        if not self.endpoint:
            raise ConfigurationError("An endpoint value must be provided")
        if self.interval < 0:
            raise ConfigurationError(f"interval must be >= 0, got {self.interval}")
        if self.batch_size < 0:
            raise ConfigurationError(f"batch_size must be >= 0, got {self.batch_size}")

    @property
    def output_format(self) -> OutputFormat:
        if self.graphite:
            return OutputFormat.GRAPHITE
        if self.carbon2:
            return OutputFormat.CARBON2
        if self.raw:
            return OutputFormat.RAW
        return OutputFormat.JSON

    def merge(self, **changes: Any) -> SumoLoggerConfig:
        """Return a copy with every non-None change applied.

        ``0``, ``""`` and ``False`` count as explicit values. Unknown or
        fixed fields raise ``ConfigurationError``.
        """
        supplied = {k: v for k, v in changes.items() if v is not None}
        unknown = set(supplied) - UPDATABLE_FIELDS
        if unknown:
            raise ConfigurationError(
                f"Cannot update field(s): {', '.join(sorted(unknown))}"
            )
        return replace(self, **supplied)


def config_field_names() -> frozenset[str]:
    """All keyword names accepted by SumoLoggerConfig."""
    return frozenset(f.name for f in fields(SumoLoggerConfig))
