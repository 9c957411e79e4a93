"""Message validation and per-format serialization."""

from __future__ import annotations

import json
import math
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from sumo_logger._errors import MessageValidationError
from sumo_logger._types import OutputFormat

TimestampFormatter = Callable[[datetime], str]

_GRAPHITE_FIELDS = ("path", "value")
_CARBON2_FIELDS = ("intrinsic_tags", "meta_tags", "value")


def format_timestamp(when: datetime) -> str:
    """Canonical timestamp string, e.g. ``2024-05-01T12:00:00.123+00:00``."""
    return when.isoformat(timespec="milliseconds")


def unix_seconds(when: datetime) -> int:
    """Seconds since the epoch, rounded half-up."""
    return math.floor(when.timestamp() + 0.5)


def _as_items(message: Any) -> list[Any]:
    if isinstance(message, (list, tuple)):
        return list(message)
    return [message]


def validate_messages(message: Any, output_format: OutputFormat) -> list[Any]:
    """Check ``message`` against ``output_format`` and return it as a list of items.

    Raises MessageValidationError without partial results: either every item
    is acceptable or none is used.
    """
    if message is None:
        raise MessageValidationError("A value must be provided")
    items = _as_items(message)
    if not items:
        raise MessageValidationError("A non-empty list of messages must be provided")

    for item in items:
        if item is None:
            raise MessageValidationError("A value must be provided")
        if isinstance(item, Mapping) and not item:
            raise MessageValidationError("A non-empty JSON object must be provided")
        if output_format is OutputFormat.GRAPHITE and not _has_fields(item, _GRAPHITE_FIELDS):
            raise MessageValidationError(
                'Both "path" and "value" properties must be provided in the '
                "message object to send Graphite metrics"
            )
        if output_format is OutputFormat.CARBON2 and not _has_fields(item, _CARBON2_FIELDS):
            raise MessageValidationError(
                'All "intrinsic_tags", "meta_tags" and "value" properties must be '
                "provided in the message object to send Carbon2 metrics"
            )
    return items


def _has_fields(item: Any, names: tuple[str, ...]) -> bool:
    return isinstance(item, Mapping) and all(name in item for name in names)


def _format_json(
    item: Any,
    *,
    session_id: str,
    timestamp: str,
    url: str | None,
) -> str:
    payload: dict[str, Any] = dict(item) if isinstance(item, Mapping) else {"msg": item}
    payload["sessionId"] = session_id
    payload["timestamp"] = timestamp
    if url:
        payload["url"] = url
    return json.dumps(payload, separators=(",", ":"), default=str)


def _format_raw(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, Mapping):
        return json.dumps(dict(item), separators=(",", ":"), default=str)
    return str(item)


def format_messages(
    message: Any,
    output_format: OutputFormat,
    *,
    session_id: str,
    when: datetime,
    url: str | None = None,
    timestamp_formatter: TimestampFormatter = format_timestamp,
) -> list[str]:
    """Validate and serialize ``message`` (a single value or a list of values).

    Each item becomes one queue entry, in order.
    """
    items = validate_messages(message, output_format)

    if output_format is OutputFormat.GRAPHITE:
        seconds = unix_seconds(when)
        return [f"{item['path']} {item['value']} {seconds}" for item in items]
    if output_format is OutputFormat.CARBON2:
        seconds = unix_seconds(when)
        return [
            f"{item['intrinsic_tags']}  {item['meta_tags']} {item['value']} {seconds}"
            for item in items
        ]
    if output_format is OutputFormat.RAW:
        return [_format_raw(item) for item in items]

    timestamp = timestamp_formatter(when)
    return [
        _format_json(item, session_id=session_id, timestamp=timestamp, url=url)
        for item in items
    ]
