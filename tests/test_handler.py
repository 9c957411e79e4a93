"""Tests for the stdlib logging bridge."""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Iterator, Mapping

import pytest

from sumo_logger import LogResponse, SumoHandler, SumoLogger, TransportError, create_logger

ENDPOINT = "https://collectors.example.com/receiver/v1/http/token"


class RecordingTransport:
    def __init__(self) -> None:
        self.bodies: list[str] = []
        self.posted = threading.Event()

    def post(self, url: str, headers: Mapping[str, str], body: str) -> LogResponse:
        self.bodies.append(body)
        self.posted.set()
        return LogResponse(status=200)

    def close(self) -> None:
        pass


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def sumo(transport: RecordingTransport) -> Iterator[SumoLogger]:
    instance = create_logger(endpoint=ENDPOINT, batch_size=100_000, transport=transport)
    yield instance
    instance.close(flush=False)


@pytest.fixture()
def app_logger() -> Iterator[logging.Logger]:
    log = logging.getLogger("tests.sumo_handler")
    log.setLevel(logging.DEBUG)
    log.propagate = False
    yield log
    for handler in list(log.handlers):
        log.removeHandler(handler)


def test_structured_record_in_json_mode(sumo: SumoLogger, app_logger: logging.Logger) -> None:
    app_logger.addHandler(SumoHandler(sumo))
    app_logger.warning("disk %d%% full", 91)

    (entry,) = [json.loads(e) for e in sumo.pending_logs]
    assert entry["msg"] == "disk 91% full"
    assert entry["level"] == "WARNING"
    assert entry["logger"] == "tests.sumo_handler"
    assert entry["sessionId"] == sumo.session_id


def test_record_time_used_as_timestamp(sumo: SumoLogger, app_logger: logging.Logger) -> None:
    app_logger.addHandler(SumoHandler(sumo))
    record = app_logger.makeRecord(app_logger.name, logging.INFO, __file__, 1, "hi", (), None)
    record.created = 1714564800.0
    app_logger.handle(record)

    (entry,) = [json.loads(e) for e in sumo.pending_logs]
    assert entry["timestamp"] == "2024-05-01T12:00:00.000+00:00"


def test_exception_included(sumo: SumoLogger, app_logger: logging.Logger) -> None:
    app_logger.addHandler(SumoHandler(sumo))
    try:
        raise ValueError("boom")
    except ValueError:
        app_logger.exception("failed")

    (entry,) = [json.loads(e) for e in sumo.pending_logs]
    assert entry["msg"] == "failed"
    assert "ValueError: boom" in entry["exception"]


def test_formatter_produces_text(sumo: SumoLogger, app_logger: logging.Logger) -> None:
    handler = SumoHandler(sumo)
    handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    app_logger.addHandler(handler)
    app_logger.info("ready")

    (entry,) = [json.loads(e) for e in sumo.pending_logs]
    assert entry["msg"] == "INFO ready"


def test_raw_mode_sends_formatted_line(transport: RecordingTransport, app_logger: logging.Logger) -> None:
    raw = create_logger(endpoint=ENDPOINT, raw=True, batch_size=100_000, transport=transport)
    app_logger.addHandler(SumoHandler(raw))
    app_logger.info("plain %s", "text")
    assert raw.pending_logs == ("plain text",)
    raw.close(flush=False)


def test_level_filtering(sumo: SumoLogger, app_logger: logging.Logger) -> None:
    app_logger.addHandler(SumoHandler(sumo, level=logging.ERROR))
    app_logger.info("ignored")
    app_logger.error("kept")
    assert len(sumo.pending_logs) == 1


def test_flush_forwards_to_logger(
    sumo: SumoLogger, transport: RecordingTransport, app_logger: logging.Logger
) -> None:
    handler = SumoHandler(sumo)
    app_logger.addHandler(handler)
    app_logger.info("one")
    handler.flush()
    assert transport.posted.wait(timeout=2.0)
    assert json.loads(transport.bodies[0])["msg"] == "one"


def test_close_leaves_logger_open(sumo: SumoLogger, app_logger: logging.Logger) -> None:
    handler = SumoHandler(sumo)
    handler.close()
    assert sumo.log("still works") is True


def test_emit_errors_go_to_handle_error(
    sumo: SumoLogger, app_logger: logging.Logger, monkeypatch: pytest.MonkeyPatch
) -> None:
    handled: list[logging.LogRecord] = []
    handler = SumoHandler(sumo)
    monkeypatch.setattr(handler, "handleError", handled.append)

    def explode(*args: object, **kwargs: object) -> bool:
        raise RuntimeError("log failed")

    monkeypatch.setattr(sumo, "log", explode)
    app_logger.addHandler(handler)
    app_logger.info("x")
    assert len(handled) == 1


class FailingTransport(RecordingTransport):
    def post(self, url: str, headers: Mapping[str, str], body: str) -> LogResponse:
        super().post(url, headers, body)
        raise TransportError("collector unavailable", status_code=503)


@pytest.fixture()
def root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    root.setLevel(logging.DEBUG)
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.mark.parametrize("failing", [True, False])
def test_own_records_not_forwarded_from_root(root_logger: logging.Logger, failing: bool) -> None:
    transport = FailingTransport() if failing else RecordingTransport()
    sumo = create_logger(endpoint=ENDPOINT, return_promise=False, transport=transport)
    root_logger.addHandler(SumoHandler(sumo))

    logging.getLogger("tests.root_app").warning("only once")
    assert transport.posted.wait(timeout=2.0)
    time.sleep(0.3)

    assert len(transport.bodies) == 1
    assert json.loads(transport.bodies[0])["msg"] == "only once"
    assert len(sumo.pending_logs) == (1 if failing else 0)
    sumo.close(flush=False)


def test_internal_logger_names_filtered(sumo: SumoLogger) -> None:
    handler = SumoHandler(sumo)
    internal = logging.LogRecord("sumo_logger.engine", logging.WARNING, __file__, 1, "x", (), None)
    external = logging.LogRecord("sumo_loggerish", logging.WARNING, __file__, 1, "y", (), None)
    assert not handler.filter(internal)
    assert handler.filter(external)


def test_logging_during_emit_not_forwarded(
    sumo: SumoLogger, app_logger: logging.Logger, monkeypatch: pytest.MonkeyPatch
) -> None:
    forwarded: list[object] = []

    def log_and_log_again(message: object, **kwargs: object) -> bool:
        forwarded.append(message)
        app_logger.warning("logged while forwarding")
        return True

    monkeypatch.setattr(sumo, "log", log_and_log_again)
    app_logger.addHandler(SumoHandler(sumo))
    app_logger.info("outer")
    app_logger.info("next")

    assert [m["msg"] for m in forwarded] == ["outer", "next"]  # type: ignore[index]
