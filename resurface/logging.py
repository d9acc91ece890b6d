"""Logging setup for a thread load.

Three loggers matter:
- root (``logging.level``): module loggers ``resurface.*``. WARNING shows
  archival anomalies (unmergeable contigs, stalled pages), INFO adds
  fallbacks to live copies.
- ``resurface.events`` (``logging.events_level``): the LoggingObserver.
  load-start/load-end are INFO, per-page and per-batch progress is DEBUG.
  Unset means it follows the root level.
- ``urllib3`` (``logging.http_level``): connection chatter from requests,
  kept at WARNING unless asked for.

Configure via config.yaml (``logging:``) or env (LOGGING_LEVEL, LOGGING_EVENTS_LEVEL, ...).
"""

import logging

from resurface.config import LoggingConfig

# Supported levels only (DEBUG, INFO, WARNING, ERROR)
LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
EVENTS_LOGGER = "resurface.events"
HTTP_LOGGER = "urllib3"


def _resolve_level(level: str | None) -> int:
    """Map level name to logging constant; unknown or empty names give INFO."""
    return LEVELS.get((level or "").upper().strip(), logging.INFO)


class ResurfaceLogging:
    """Applies LoggingConfig to the root, load-event and HTTP loggers."""

    def __init__(self, config: LoggingConfig) -> None:
        self._level = _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT
        self._events_level = _resolve_level(config.events_level) if config.events_level else logging.NOTSET
        self._http_level = _resolve_level(config.http_level)

    def setup(self) -> None:
        logging.basicConfig(
            level=self._level,
            format=self._format,
            force=True,
        )
        # NOTSET defers to the root level
        logging.getLogger(EVENTS_LOGGER).setLevel(self._events_level)
        logging.getLogger(HTTP_LOGGER).setLevel(self._http_level)
