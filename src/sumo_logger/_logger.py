"""Buffering and flush engine: queues formatted messages and ships them in batches."""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from types import TracebackType
from typing import Any

from sumo_logger._buffer import PendingQueue
from sumo_logger._config import SumoLoggerConfig, config_field_names
from sumo_logger._errors import ConfigurationError, MessageValidationError
from sumo_logger._formatter import TimestampFormatter, format_messages, format_timestamp
from sumo_logger._timer import FlushTimer
from sumo_logger._transport import HttpTransport, Transport
from sumo_logger._types import CONTENT_TYPES, LogResponse

logger = logging.getLogger("sumo_logger.engine")

CLIENT_NAME = "sumo-python-sdk"

SessionProvider = Callable[[], str]
Clock = Callable[[], datetime]


def new_session_id() -> str:
    """Random session token attached to every message of a logger."""
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_headers(config: SumoLoggerConfig) -> dict[str, str]:
    """Request headers for the configured output format and source metadata."""
    headers = {
        "X-Sumo-Client": CLIENT_NAME,
        "Content-Type": CONTENT_TYPES[config.output_format],
    }
    if config.source_name:
        headers["X-Sumo-Name"] = config.source_name
    if config.source_category:
        headers["X-Sumo-Category"] = config.source_category
    if config.host_name:
        headers["X-Sumo-Host"] = config.host_name
    return headers


def _notify(callback: Callable[..., Any], *args: Any) -> None:
    """Invoke a user callback; its failures are logged, never propagated."""
    try:
        callback(*args)
    except Exception:  # noqa: BLE001
        logger.exception("User callback %r raised", callback)


class SumoLogger:
    """Client-side log shipper for a Sumo Logic HTTP source.

    Messages passed to :meth:`log` are serialized immediately and held in a
    FIFO queue. A flush is triggered by the batch-size threshold, by the
    recurring interval timer, by :meth:`flush_logs`, or on every message when
    neither batching option is configured. At most one POST is in flight at a
    time; a batch is removed from the queue only after the endpoint accepted
    it, so failed batches are retried on the next flush.

    Usage::

        with SumoLogger(SumoLoggerConfig(endpoint=url, interval=5000)) as sumo:
            sumo.log("service started")
            sumo.log({"event": "login", "user": "bob"})
    """

    def __init__(
        self,
        config: SumoLoggerConfig,
        *,
        transport: Transport | None = None,
        session_provider: SessionProvider | None = None,
        clock: Clock | None = None,
        timestamp_formatter: TimestampFormatter | None = None,
    ) -> None:
        self._config = config
        self._session_id = config.session_key or (session_provider or new_session_id)()
        self._transport: Transport = (
            transport if transport is not None else HttpTransport(timeout_s=config.timeout_s)
        )
        self._clock: Clock = clock or _utcnow
        self._timestamp_formatter = timestamp_formatter or format_timestamp

        self._lock = threading.Lock()
        self._queue = PendingQueue()
        # Bumped by empty_log_queue() so an in-flight send never trims newer entries.
        self._generation = 0
        self._sending = False
        self._closed = False
        self._shut_down = False

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sumo-logger-send")
        self._timer = FlushTimer(self.flush_logs)
        self.start_log_sending()

    # -- configuration -----------------------------------------------------

    @property
    def config(self) -> SumoLoggerConfig:
        return self._config

    @property
    def session_id(self) -> str:
        return self._session_id

    def update_config(
        self,
        *,
        endpoint: str | None = None,
        return_promise: bool | None = None,
        client_url: str | None = None,
        use_interval_only: bool | None = None,
        interval: int | None = None,
        batch_size: int | None = None,
        source_name: str | None = None,
        host_name: str | None = None,
        source_category: str | None = None,
        on_success: Callable[..., Any] | None = None,
        on_error: Callable[..., Any] | None = None,
    ) -> SumoLoggerConfig:
        """Apply every supplied (non-None) field to the live configuration.

        Falsy values such as ``interval=0`` are applied too. An interval
        change re-arms the flush timer, or stops it when set to 0. Raises
        ConfigurationError and keeps the old configuration if the result is
        invalid.
        """
        with self._lock:
            old = self._config
            self._config = old.merge(
                endpoint=endpoint,
                return_promise=return_promise,
                client_url=client_url,
                use_interval_only=use_interval_only,
                interval=interval,
                batch_size=batch_size,
                source_name=source_name,
                host_name=host_name,
                source_category=source_category,
                on_success=on_success,
                on_error=on_error,
            )
            new = self._config
        if new.interval != old.interval:
            self.start_log_sending()
        return new

    # -- queue -------------------------------------------------------------

    @property
    def pending_logs(self) -> tuple[str, ...]:
        """Copy of the serialized messages awaiting transmission."""
        with self._lock:
            return tuple(self._queue.snapshot())

    @property
    def is_sending(self) -> bool:
        return self._sending

    def empty_log_queue(self) -> None:
        """Drop every pending message without sending it."""
        with self._lock:
            self._queue.clear()
            self._generation += 1

    def log(
        self,
        message: Any,
        *,
        session_key: str | None = None,
        timestamp: datetime | None = None,
        url: str | None = None,
    ) -> Future[LogResponse | None] | bool:
        """Queue ``message`` (a value or a list of values) and flush if due.

        Returns False if the message was rejected, the flush outcome if this
        call triggered a flush, and True if the message was only queued.
        """
        if self._closed:
            logger.warning("Log message dropped: logger is closed")
            return False

        config = self._config
        try:
            entries = format_messages(
                message,
                config.output_format,
                session_id=session_key or self._session_id,
                when=timestamp or self._clock(),
                url=url or config.client_url or None,
                timestamp_formatter=self._timestamp_formatter,
            )
        except MessageValidationError as exc:
            logger.error("Rejected log message: %s", exc)
            _notify(config.on_error, exc)
            return False

        with self._lock:
            self._queue.extend(entries)

        if not config.use_interval_only and self.is_ready_to_flush():
            return self.flush_logs()
        return True

    # -- flush policy ------------------------------------------------------

    def is_ready_to_flush(self) -> bool:
        """Whether a message submission should trigger a flush.

        With a batch size the queued message text is measured against it, and
        reaching it also stops the interval timer. Without one, submissions
        flush only when no interval is configured either.
        """
        config = self._config
        if config.batch_size == 0:
            return config.interval == 0

        with self._lock:
            pending = self._queue.batch_length()
        ready = pending >= config.batch_size
        if ready:
            logger.debug("Batch size reached (%d >= %d)", pending, config.batch_size)
            self.stop_log_sending()
        return ready

    # -- transmission ------------------------------------------------------

    def flush_logs(self) -> Future[LogResponse | None] | bool:
        """Send every queued message in one POST.

        Returns False when nothing was sent (a send is already in flight, the
        queue is empty, or the request could not be prepared). Otherwise
        returns a Future resolving to the LogResponse. When the send fails the
        Future raises the error if ``return_promise`` is set, else it
        resolves to None.
        """
        error: Exception | None = None
        future: Future[LogResponse | None] | None = None
        with self._lock:
            if self._shut_down or self._sending or not len(self._queue):
                return False
            config = self._config
            try:
                headers = build_headers(config)
                snapshot = self._queue.snapshot()
                self._sending = True
                future = self._executor.submit(
                    self._transmit, config, headers, snapshot, self._generation
                )
            except Exception as exc:  # noqa: BLE001
                self._sending = False
                error = exc

        if error is not None:
            logger.error("Failed to prepare log batch: %s", error)
            _notify(config.on_error, error)
            return False
        logger.debug("Flushing %d log(s) to %s", len(snapshot), config.endpoint)
        return future

    def _transmit(
        self,
        config: SumoLoggerConfig,
        headers: dict[str, str],
        snapshot: list[str],
        generation: int,
    ) -> LogResponse | None:
        try:
            response = self._transport.post(config.endpoint, headers, "\n".join(snapshot))
        except Exception as exc:
            with self._lock:
                self._sending = False
            logger.warning(
                "Failed to send %d log(s) to %s: %s", len(snapshot), config.endpoint, exc
            )
            # Size mode may have disarmed the timer; failed batches retry on the interval.
            self.start_log_sending()
            _notify(config.on_error, exc)
            if config.return_promise:
                raise
            return None

        with self._lock:
            if generation == self._generation:
                self._queue.trim(len(snapshot))
            self._sending = False
        self.start_log_sending()
        _notify(config.on_success, response)
        return response

    # -- timer -------------------------------------------------------------

    def start_log_sending(self) -> None:
        """(Re)arm the interval timer from the current configuration."""
        if self._closed:
            return
        self._timer.arm(self._config.interval)

    def stop_log_sending(self) -> None:
        """Cancel the interval timer. An in-flight send still completes."""
        self._timer.disarm()

    # -- lifecycle ---------------------------------------------------------

    def close(self, *, flush: bool = True, timeout: float | None = None) -> None:
        """Stop the timer, optionally send what is queued, and release resources."""
        if self._closed:
            return
        self._closed = True
        self.stop_log_sending()

        try:
            if flush:
                # Single worker: this returns once any in-flight send has finished.
                self._executor.submit(lambda: None).result(timeout=timeout)
                outcome = self.flush_logs()
                if isinstance(outcome, Future):
                    try:
                        outcome.result(timeout=timeout)
                    except Exception:  # noqa: BLE001
                        logger.debug("Final flush failed", exc_info=True)
        finally:
            with self._lock:
                self._shut_down = True
            # A send that outlived the timeout finishes in the background.
            self._executor.shutdown(wait=timeout is None)
            self._transport.close()

    def __enter__(self) -> SumoLogger:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


def create_logger(
    *,
    transport: Transport | None = None,
    session_provider: SessionProvider | None = None,
    clock: Clock | None = None,
    timestamp_formatter: TimestampFormatter | None = None,
    **options: Any,
) -> SumoLogger:
    """Build a SumoLogger from keyword options.

    Raises ConfigurationError for a missing endpoint or an unknown option.
    """
    unknown = set(options) - config_field_names()
    if unknown:
        raise ConfigurationError(f"Unknown option(s): {', '.join(sorted(unknown))}")
    endpoint = options.pop("endpoint", "")
    config = SumoLoggerConfig(endpoint=endpoint, **options)
    return SumoLogger(
        config,
        transport=transport,
        session_provider=session_provider,
        clock=clock,
        timestamp_formatter=timestamp_formatter,
    )
