"""FastAPI application exposing manual lighting controls and the poller."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
import os
from typing import Any, AsyncIterator, Awaitable, Callable

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from starlette import status

from .colors import InvalidColorFormat, XYPoint, hex_to_xy, random_color
from .feed import DEFAULT_MARKER, ScoreFeed
from .history import GoalHistory
from .hue import HueBridgeClient, LightingController
from .models import ScoreSnapshot
from .poller import BaselineMode, ScorePoller

_LOGGER = logging.getLogger(__name__)

DEFAULT_FEED_URL = "http://live.nhle.com/GameData/20132014/2013030221/gc/gcsb.jsonp"


@dataclass(frozen=True)
class Settings:
    """Service configuration derived from environment variables."""

    hue_host: str | None
    hue_username: str | None
    hue_group_id: int
    feed_url: str
    feed_marker: str
    poll_interval_ms: int
    baseline_home: int | None
    baseline_away: int | None
    baseline_mode: BaselineMode
    http_timeout_s: float
    history_size: int
    reset_on_startup: bool

    @property
    def baseline(self) -> ScoreSnapshot | None:
        if self.baseline_home is None or self.baseline_away is None:
            return None
        return ScoreSnapshot(home_goals=self.baseline_home, away_goals=self.baseline_away)


def _parse_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_count(value: str | None, default: int | None) -> int | None:
    """Parse a non-negative integer such as a goal total or group id."""

    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_mode(value: str | None) -> BaselineMode:
    try:
        return BaselineMode((value or BaselineMode.FIXED.value).strip().lower())
    except ValueError:
        return BaselineMode.FIXED


def load_settings() -> Settings:
    """Load service configuration from environment variables."""

    return Settings(
        hue_host=os.getenv("HUE_HOST") or None,
        hue_username=os.getenv("HUE_USERNAME") or None,
        hue_group_id=_parse_count(os.getenv("HUE_GROUP_ID"), 0) or 0,
        feed_url=os.getenv("FEED_URL") or DEFAULT_FEED_URL,
        feed_marker=os.getenv("FEED_MARKER") or DEFAULT_MARKER,
        poll_interval_ms=_parse_int(os.getenv("POLL_INTERVAL_MS"), 6000),
        baseline_home=_parse_count(os.getenv("BASELINE_HOME"), None),
        baseline_away=_parse_count(os.getenv("BASELINE_AWAY"), None),
        baseline_mode=_parse_mode(os.getenv("BASELINE_MODE")),
        http_timeout_s=_parse_float(os.getenv("HTTP_TIMEOUT_S"), 5.0),
        history_size=_parse_int(os.getenv("GOAL_HISTORY_SIZE"), 50),
        reset_on_startup=_parse_bool(os.getenv("RESET_ON_STARTUP"), True),
    )


def build_lights(settings: Settings) -> LightingController:
    client = HueBridgeClient(
        settings.hue_host,
        settings.hue_username,
        timeout=settings.http_timeout_s,
    )
    return LightingController(client, group_id=settings.hue_group_id)


def build_poller(settings: Settings, lights: LightingController) -> ScorePoller:
    feed = ScoreFeed(
        settings.feed_url,
        marker=settings.feed_marker,
        timeout=settings.http_timeout_s,
    )
    return ScorePoller(
        feed,
        lights,
        baseline=settings.baseline,
        mode=settings.baseline_mode,
        interval=settings.poll_interval_ms / 1000,
        history=GoalHistory(max_events=settings.history_size),
    )


async def _dispatch(command: Callable[[], Awaitable[Any]]) -> None:
    await command()


def create_app(
    settings: Settings | None = None,
    *,
    lights: LightingController | None = None,
    poller: ScorePoller | None = None,
) -> FastAPI:
    """Build the application; collaborators may be injected for tests."""

    settings = settings if settings is not None else load_settings()
    lights = lights if lights is not None else build_lights(settings)
    poller = poller if poller is not None else build_poller(settings, lights)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if settings.reset_on_startup:
            lights.reset()
        poller.start()
        try:
            yield
        finally:
            await poller.stop()
            await lights.drain()

    app = FastAPI(title="goal-lights", lifespan=lifespan)
    app.state.settings = settings
    app.state.lights = lights
    app.state.poller = poller

    @app.get("/", response_class=PlainTextResponse)
    async def index(background_tasks: BackgroundTasks) -> str:
        """Reset the lights to the idle preset."""

        background_tasks.add_task(_dispatch, lights.reset)
        return "hello world"

    @app.get("/goal", response_class=PlainTextResponse)
    async def goal(background_tasks: BackgroundTasks) -> str:
        """Trigger the celebrate preset by hand."""

        background_tasks.add_task(_dispatch, lights.celebrate)
        return "Goal!"

    @app.get("/color")
    async def random_group_color(background_tasks: BackgroundTasks) -> dict[str, float]:
        return _show(random_color(), background_tasks)

    @app.get("/color/{hex_color}")
    async def group_color(hex_color: str, background_tasks: BackgroundTasks) -> dict[str, float]:
        try:
            point = hex_to_xy(hex_color)
        except InvalidColorFormat as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        return _show(point, background_tasks)

    @app.get("/status")
    async def poller_status() -> dict[str, Any]:
        return poller.status()

    def _show(point: XYPoint, background_tasks: BackgroundTasks) -> dict[str, float]:
        background_tasks.add_task(_dispatch, lambda: lights.show_color(point))
        return {"x": point.x, "y": point.y}

    return app
