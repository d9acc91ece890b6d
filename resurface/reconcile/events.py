"""Observer boundary between the reconciliation engine and whatever renders it.

The engine never touches UI state; it emits named events with keyword
fields. Events: load-start, archive-page, live-batch, counts, load-end.
"""

import logging
from typing import Any, List, Tuple

LOG = logging.getLogger("resurface.events")

# Events worth an INFO line; the rest are DEBUG
_INFO_EVENTS = {"load-start", "load-end"}


class LoadObserver:
    """No-op observer. Subclass and override emit()."""

    def emit(self, event: str, **fields: Any) -> None:
        pass


class LoggingObserver(LoadObserver):
    """Forwards events to the resurface.events logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or LOG

    def emit(self, event: str, **fields: Any) -> None:
        level = logging.INFO if event in _INFO_EVENTS else logging.DEBUG
        detail = " ".join(f"{k}={v}" for k, v in fields.items())
        self._log.log(level, "%s %s", event, detail)


class RecordingObserver(LoadObserver):
    """Keeps every event in memory (useful for callers polling progress)."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def named(self, event: str) -> List[dict[str, Any]]:
        return [f for e, f in self.events if e == event]
