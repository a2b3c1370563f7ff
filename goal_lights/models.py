"""Shared data models for the scoreboard poller and the Hue bridge."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


__all__ = [
    "CELEBRATE_STATE",
    "GoalEvent",
    "LightState",
    "RESET_STATE",
    "ScoreSnapshot",
]


class ScoreSnapshot(BaseModel):
    """Goal totals read from the scoreboard feed on a single poll."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    home_goals: int
    away_goals: int

    def __str__(self) -> str:
        return f"{self.home_goals}-{self.away_goals}"


class LightState(BaseModel):
    """Group action body accepted by the Hue bridge."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    on: bool = True
    bri: int | None = Field(default=None, ge=0, le=255)
    sat: int | None = Field(default=None, ge=0, le=255)
    hue: int | None = Field(default=None, ge=0, le=65535)
    xy: tuple[float, float] | None = None
    alert: str | None = None
    effect: str | None = None
    transitiontime: int | None = Field(default=None, ge=0)

    def payload(self) -> dict:
        """Return the JSON body for the bridge, omitting unset attributes."""

        return self.model_dump(mode="json", exclude_none=True)


class GoalEvent(BaseModel):
    """Record of a detected score change."""

    model_config = ConfigDict(extra="forbid")

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    snapshot: ScoreSnapshot
    baseline: ScoreSnapshot
    poll_count: int


CELEBRATE_STATE = LightState(
    on=True,
    bri=255,
    sat=255,
    hue=0,
    alert="lselect",
    transitiontime=0,
)

RESET_STATE = LightState(
    on=True,
    bri=255,
    hue=15000,
    effect="none",
    sat=125,
    transitiontime=1,
)
