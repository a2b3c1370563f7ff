"""Global pytest fixtures and test doubles for goal-lights tests."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable

import pytest

from goal_lights.colors import XYPoint
from goal_lights.main import Settings
from goal_lights.models import ScoreSnapshot
from goal_lights.poller import BaselineMode


class FakeLights:
    """Records lighting commands instead of talking to a bridge."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.colors: list[XYPoint] = []
        self.drained = False

    def _completed(self, label: str) -> asyncio.Future:
        self.calls.append(label)
        future = asyncio.get_running_loop().create_future()
        future.set_result([{"success": {label: True}}])
        return future

    def celebrate(self) -> asyncio.Future:
        return self._completed("celebrate")

    def reset(self) -> asyncio.Future:
        return self._completed("reset")

    def show_color(self, point: XYPoint, *, brightness: int = 255) -> asyncio.Future:
        self.colors.append(point)
        return self._completed("color")

    async def drain(self) -> None:
        self.drained = True


class FakeFeed:
    """Returns queued snapshots or raises queued exceptions in order."""

    url = "http://feed.invalid/gcsb.jsonp"

    def __init__(self, results: Iterable[Any]) -> None:
        self._results = list(results)
        self.calls = 0

    async def fetch_snapshot(self) -> ScoreSnapshot:
        self.calls += 1
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def fake_lights() -> FakeLights:
    return FakeLights()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        hue_host=None,
        hue_username=None,
        hue_group_id=0,
        feed_url="http://feed.invalid/gcsb.jsonp",
        feed_marker="GCSB.load",
        poll_interval_ms=6000,
        baseline_home=2,
        baseline_away=3,
        baseline_mode=BaselineMode.FIXED,
        http_timeout_s=1.0,
        history_size=5,
        reset_on_startup=False,
    )
