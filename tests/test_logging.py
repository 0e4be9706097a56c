"""Tests for the FlightLogger buffer and dump helpers."""

import logging

import pytest

from pattern_digitizer.core import logging as logging_module
from pattern_digitizer.core.logging import FlightLogger, dump_flight_log

pytestmark = [pytest.mark.fast]


def _record(msg: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord("pattern_digitizer.test", level, __file__, 1, msg, None, None)


def test_flight_logger_is_bounded(tmp_path):
    flight = FlightLogger(capacity=3, forensics_dir=tmp_path)
    for i in range(5):
        flight.emit(_record(f"message {i}"))
    assert len(flight) == 3


def test_flight_logger_dump_writes_buffer(tmp_path):
    flight = FlightLogger(capacity=10, forensics_dir=tmp_path / "forensics")
    flight.emit(_record("digitize request"))
    flight.emit(_record("Đã xảy ra lỗi", logging.WARNING))
    path = flight.dump("session42")

    assert path.startswith(str(tmp_path / "forensics" / "session42_"))
    content = open(path, encoding="utf-8").read()
    assert "digitize request" in content
    assert "[WARNING]" in content
    assert "Đã xảy ra lỗi" in content


def test_dump_flight_log_without_setup_returns_none(monkeypatch):
    monkeypatch.setattr(logging_module, "_flight_logger", None)
    assert dump_flight_log("anything") is None


def test_dump_flight_log_uses_global_handler(tmp_path, monkeypatch):
    flight = FlightLogger(forensics_dir=tmp_path)
    flight.emit(_record("hello"))
    monkeypatch.setattr(logging_module, "_flight_logger", flight)
    path = dump_flight_log("cli")
    assert path is not None
    assert "hello" in open(path, encoding="utf-8").read()
