"""In-memory record of recently detected goals."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
import logging
from typing import Callable, Iterator

from .models import GoalEvent, ScoreSnapshot


class GoalHistory:
    """Ring buffer of the most recent goal events."""

    def __init__(
        self,
        *,
        max_events: int = 50,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._events: deque[GoalEvent] = deque(maxlen=max(1, max_events))
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logger or logging.getLogger(__name__)

    def __len__(self) -> int:
        return len(self._events)

    def record(
        self,
        *,
        snapshot: ScoreSnapshot,
        baseline: ScoreSnapshot,
        poll_count: int,
    ) -> GoalEvent:
        """Append a goal event and log it."""

        event = GoalEvent(
            timestamp=self._clock(),
            snapshot=snapshot,
            baseline=baseline,
            poll_count=poll_count,
        )
        self._events.append(event)
        self._logger.info(
            "goal_detected score=%s baseline=%s checks=%s",
            snapshot,
            baseline,
            poll_count,
        )
        return event

    def iter_recent(self) -> Iterator[GoalEvent]:
        """Yield stored events from oldest to newest."""

        return iter(tuple(self._events))

    def as_dicts(self) -> list[dict]:
        return [event.model_dump(mode="json") for event in self._events]
