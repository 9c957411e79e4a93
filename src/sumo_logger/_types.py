"""Core types: output formats and the normalized HTTP response."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class OutputFormat(enum.Enum):
    """Wire format of queued messages."""

    JSON = "json"
    RAW = "raw"
    GRAPHITE = "graphite"
    CARBON2 = "carbon2"


CONTENT_TYPES: dict[OutputFormat, str] = {
    OutputFormat.JSON: "application/json",
    OutputFormat.RAW: "application/json",
    OutputFormat.GRAPHITE: "application/vnd.sumologic.graphite",
    OutputFormat.CARBON2: "application/vnd.sumologic.carbon2",
}


@dataclass(frozen=True)
class LogResponse:
    """Transport-independent view of a collector response."""

    status: int
    status_text: str = ""
    data: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
