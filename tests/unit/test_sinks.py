r"""Unit tests for the diagnostic sinks."""

from __future__ import annotations

import logging

import pytest

from aretry.sinks import DiagnosticSink, LoggingSink, NullSink


def test_logging_sink_default_logger() -> None:
    sink = LoggingSink()
    assert sink.logger.name == "aretry.diagnostics"
    assert sink.level == logging.INFO
    assert repr(sink) == "LoggingSink(logger='aretry.diagnostics', level=20)"


def test_logging_sink_joins_arguments(caplog: pytest.LogCaptureFixture) -> None:
    sink = LoggingSink()
    with caplog.at_level(logging.INFO, logger="aretry.diagnostics"):
        sink.log("[aretry]", "Retrying...", "(attempts remaining:", 3, ")")

    assert caplog.record_tuples == [
        ("aretry.diagnostics", logging.INFO, "[aretry] Retrying... (attempts remaining: 3 )")
    ]


def test_logging_sink_custom_logger_and_level(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("custom")
    sink = LoggingSink(logger=logger, level=logging.WARNING)
    with caplog.at_level(logging.WARNING, logger="custom"):
        sink.log("attempts exhausted")

    assert caplog.record_tuples == [("custom", logging.WARNING, "attempts exhausted")]


def test_null_sink(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG):
        assert NullSink().log("ignored", 1) is None
    assert caplog.records == []


@pytest.mark.parametrize("sink", [LoggingSink(), NullSink()])
def test_sinks_satisfy_protocol(sink: object) -> None:
    assert isinstance(sink, DiagnosticSink)
