"""Publication sinks for planner state.

The planner publishes its state on every tick. Sinks are fire-and-forget:
nothing they do feeds back into planning.
"""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    """Protocol for observability sinks."""

    def publish(self, key: str, value: Any) -> None:
        ...


class NullPublisher:
    """Discards everything."""

    def publish(self, key: str, value: Any) -> None:
        pass


class LoggingPublisher:
    """Writes every published value to the log at DEBUG."""

    def __init__(self, name: str):
        self.name = name

    def publish(self, key: str, value: Any) -> None:
        logger.debug("%s: %s=%s", self.name, key, value)


class RecordingPublisher:
    """Keeps every published value, for tests and simulation."""

    def __init__(self):
        self.history: list[tuple[str, Any]] = []
        self.latest: dict[str, Any] = {}

    def publish(self, key: str, value: Any) -> None:
        self.history.append((key, value))
        self.latest[key] = value

    def values(self, key: str) -> list[Any]:
        """All values published under `key`, oldest first."""
        return [value for k, value in self.history if k == key]
