"""HTTP transmitter: POSTs a serialized batch and normalizes the outcome."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

import httpx

from sumo_logger._errors import TransportError
from sumo_logger._types import LogResponse

logger = logging.getLogger("sumo_logger.transport")


@runtime_checkable
class Transport(Protocol):
    """Anything that can POST a body to a URL and report the result."""

    def post(self, url: str, headers: Mapping[str, str], body: str) -> LogResponse:
        """Send ``body`` and return the response, or raise TransportError."""
        ...

    def close(self) -> None:
        ...


def _marshal_response(response: httpx.Response) -> LogResponse:
    """Convert an httpx response into a LogResponse."""
    content_type = response.headers.get("content-type", "")
    data: object
    if "json" in content_type:
        try:
            data = response.json()
        except ValueError:
            data = response.text
    else:
        data = response.text
    return LogResponse(
        status=response.status_code,
        status_text=response.reason_phrase,
        data=data,
        headers=dict(response.headers),
    )


class HttpTransport:
    """Sends batches with a pooled ``httpx.Client``.

    Non-2xx answers and network failures are both raised as TransportError;
    no retries happen here, the logger keeps failed batches queued instead.
    """

    def __init__(
        self,
        *,
        timeout_s: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout_s)

    def post(self, url: str, headers: Mapping[str, str], body: str) -> LogResponse:
        try:
            response = self._client.post(url, headers=dict(headers), content=body.encode("utf-8"))
        except httpx.HTTPError as exc:
            raise TransportError(f"POST to {url} failed: {exc}") from exc

        result = _marshal_response(response)
        if not result.ok:
            raise TransportError(
                f"POST to {url} returned {result.status} {result.status_text}".rstrip(),
                status_code=result.status,
                response=result,
            )
        logger.debug("POST %s -> %d (%d bytes)", url, result.status, len(body))
        return result

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            self._client.close()
