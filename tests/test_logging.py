"""Tests for resurface.logging and the logging load observer."""

import logging

import pytest

from resurface.config import LoggingConfig
from resurface.logging import (
    DEFAULT_FORMAT,
    EVENTS_LOGGER,
    HTTP_LOGGER,
    LEVELS,
    ResurfaceLogging,
    _resolve_level,
)
from resurface.reconcile.events import LoggingObserver, RecordingObserver


class TestResolveLevel:
    """_resolve_level maps config level names to logging constants."""

    def test_supported_levels(self) -> None:
        """Only DEBUG, INFO, WARNING and ERROR are configurable."""
        assert set(LEVELS) == {"DEBUG", "INFO", "WARNING", "ERROR"}
        for name, value in LEVELS.items():
            assert _resolve_level(name) == value

    def test_case_and_whitespace_ignored(self) -> None:
        assert _resolve_level(" debug ") == logging.DEBUG
        assert _resolve_level("Warning") == logging.WARNING

    def test_unknown_falls_back_to_info(self) -> None:
        assert _resolve_level("TRACE") == logging.INFO
        assert _resolve_level("") == logging.INFO
        assert _resolve_level(None) == logging.INFO


class TestResurfaceLogging:
    """ResurfaceLogging applies LoggingConfig to the root, event and HTTP loggers."""

    def test_setup_sets_level_and_format(self) -> None:
        custom = "%(levelname)s | %(name)s | %(message)s"
        ResurfaceLogging(LoggingConfig(level="ERROR", format=custom)).setup()

        assert logging.root.level == logging.ERROR
        assert logging.root.handlers[0].formatter._fmt == custom

    def test_empty_format_uses_default(self) -> None:
        ResurfaceLogging(LoggingConfig(level="INFO", format="")).setup()

        assert logging.root.handlers[0].formatter._fmt == DEFAULT_FORMAT

    def test_events_level_separate_from_root(self) -> None:
        """Progress events can be shown at DEBUG while the rest stays at INFO."""
        ResurfaceLogging(LoggingConfig(level="INFO", events_level="DEBUG")).setup()
        try:
            assert logging.root.level == logging.INFO
            assert logging.getLogger(EVENTS_LOGGER).getEffectiveLevel() == logging.DEBUG
        finally:
            logging.getLogger(EVENTS_LOGGER).setLevel(logging.NOTSET)

    def test_events_follow_root_when_unset(self) -> None:
        ResurfaceLogging(LoggingConfig(level="WARNING")).setup()
        assert logging.getLogger(EVENTS_LOGGER).level == logging.NOTSET
        assert logging.getLogger(EVENTS_LOGGER).getEffectiveLevel() == logging.WARNING

    def test_http_client_quiet_by_default(self) -> None:
        ResurfaceLogging(LoggingConfig(level="DEBUG")).setup()
        assert logging.getLogger(HTTP_LOGGER).level == logging.WARNING
        ResurfaceLogging(LoggingConfig(level="DEBUG", http_level="DEBUG")).setup()
        assert logging.getLogger(HTTP_LOGGER).level == logging.DEBUG


class TestObservers:
    """Load events are logged at INFO (start/end) or DEBUG (progress)."""

    def test_logging_observer_levels(self, caplog: pytest.LogCaptureFixture) -> None:
        observer = LoggingObserver()
        with caplog.at_level(logging.DEBUG, logger="resurface.events"):
            observer.emit("load-start", thread="abc", target=100)
            observer.emit("archive-page", after=0, count=100)
            observer.emit("load-end", thread="abc", total=42)

        levels = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert levels[0] == (logging.INFO, "load-start thread=abc target=100")
        assert levels[1] == (logging.DEBUG, "archive-page after=0 count=100")
        assert levels[2][0] == logging.INFO
        assert "total=42" in levels[2][1]

    def test_progress_hidden_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="resurface.events"):
            LoggingObserver().emit("live-batch", requested=100, returned=98)
        assert caplog.records == []

    def test_recording_observer(self) -> None:
        observer = RecordingObserver()
        observer.emit("counts", total=3, removed=1)
        observer.emit("counts", total=4, removed=1)
        assert [f["total"] for f in observer.named("counts")] == [3, 4]
        assert observer.named("load-end") == []
