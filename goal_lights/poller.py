"""Fixed-interval scoreboard poller that celebrates score changes."""

from __future__ import annotations

import asyncio
from enum import Enum
import logging
from typing import Any

from .feed import FeedUnavailableError, ParseError, ScoreFeed
from .history import GoalHistory
from .hue import LightingController
from .models import ScoreSnapshot

_LOGGER = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 6.0


class PollerState(str, Enum):
    WATCHING = "watching"
    EVENT = "event"


class BaselineMode(str, Enum):
    """How the baseline evolves after a goal is detected."""

    FIXED = "fixed"
    LAST_OBSERVED = "last_observed"


class TickOutcome(str, Enum):
    SKIPPED = "skipped"
    BASELINE_CAPTURED = "baseline_captured"
    UNCHANGED = "unchanged"
    GOAL = "goal"
    STALE = "stale"


class ScorePoller:
    """Compares the feed against a baseline score on every tick.

    Any difference from the baseline fires the celebrate preset. In
    ``FIXED`` mode the baseline never changes, so a diverged score keeps
    firing on every tick; ``LAST_OBSERVED`` adopts the new score instead.
    """

    def __init__(
        self,
        feed: ScoreFeed,
        lights: LightingController,
        *,
        baseline: ScoreSnapshot | None = None,
        mode: BaselineMode = BaselineMode.FIXED,
        interval: float = DEFAULT_INTERVAL_S,
        history: GoalHistory | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("Poll interval must be positive")
        self._feed = feed
        self._lights = lights
        self._baseline = baseline
        self._mode = BaselineMode(mode)
        self._interval = interval
        self._history = history if history is not None else GoalHistory()
        self._started_ticks = 0
        self._applied_tick = -1
        self._loop_task: asyncio.Task | None = None
        self._ticks: set[asyncio.Task] = set()
        self.state = PollerState.WATCHING
        self.poll_count = 0
        self.last_celebration: Any = None

    @property
    def baseline(self) -> ScoreSnapshot | None:
        return self._baseline

    @property
    def history(self) -> GoalHistory:
        return self._history

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def tick(self) -> TickOutcome:
        """Poll the feed once and react to the result.

        Ticks may overlap; a result is dropped as ``STALE`` when a tick that
        started later has already been applied.
        """

        sequence = self._started_ticks
        self._started_ticks += 1
        try:
            snapshot = await self._feed.fetch_snapshot()
        except FeedUnavailableError as exc:
            _LOGGER.warning("score_poll_skipped reason=unavailable error=%s", exc)
            return TickOutcome.SKIPPED
        except ParseError as exc:
            _LOGGER.warning("score_poll_skipped reason=malformed error=%s", exc)
            return TickOutcome.SKIPPED

        if sequence < self._applied_tick:
            _LOGGER.info(
                "score_poll_stale tick=%s applied=%s score=%s",
                sequence,
                self._applied_tick,
                snapshot,
            )
            return TickOutcome.STALE
        self._applied_tick = sequence

        baseline = self._baseline
        if baseline is None:
            self._baseline = snapshot
            _LOGGER.info("score_baseline_captured score=%s", snapshot)
            return TickOutcome.BASELINE_CAPTURED

        if snapshot == baseline:
            self.poll_count += 1
            _LOGGER.info("score_unchanged checks=%s", self.poll_count)
            return TickOutcome.UNCHANGED

        self.state = PollerState.EVENT
        try:
            self.last_celebration = self._lights.celebrate()
            self._history.record(
                snapshot=snapshot,
                baseline=baseline,
                poll_count=self.poll_count,
            )
        finally:
            self.state = PollerState.WATCHING

        if self._mode is BaselineMode.LAST_OBSERVED:
            self._baseline = snapshot
        return TickOutcome.GOAL

    async def run(self) -> None:
        """Start a tick every interval until cancelled."""

        _LOGGER.info(
            "score_poller_started interval_s=%s mode=%s", self._interval, self._mode.value
        )
        while True:
            self._spawn_tick()
            await asyncio.sleep(self._interval)

    def start(self) -> asyncio.Task:
        if not self.running:
            self._loop_task = asyncio.get_running_loop().create_task(self.run())
        assert self._loop_task is not None
        return self._loop_task

    async def stop(self) -> None:
        """Cancel the timer and any ticks still waiting on the feed."""

        tasks = list(self._ticks)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        _LOGGER.info("score_poller_stopped checks=%s", self.poll_count)

    def status(self) -> dict[str, Any]:
        baseline = self._baseline
        return {
            "state": self.state.value,
            "running": self.running,
            "mode": self._mode.value,
            "interval_s": self._interval,
            "poll_count": self.poll_count,
            "baseline": baseline.model_dump() if baseline is not None else None,
            "feed_url": getattr(self._feed, "url", None),
            "events": self._history.as_dicts(),
        }

    def _spawn_tick(self) -> None:
        task = asyncio.get_running_loop().create_task(self.tick())
        self._ticks.add(task)
        task.add_done_callback(self._tick_done)

    def _tick_done(self, task: asyncio.Task) -> None:
        self._ticks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _LOGGER.error("score_poll_failed error=%s", exc, exc_info=exc)
