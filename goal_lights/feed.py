"""HTTP client and parser for the JSONP scoreboard feed."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from httpx import Timeout
from jsonschema import ValidationError, validate

from .models import ScoreSnapshot

LOGGER = logging.getLogger(__name__)
DEFAULT_MARKER = "GCSB.load"
DEFAULT_TIMEOUT = Timeout(5.0)

_TEAM_TOTALS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["tot"],
    "properties": {
        "tot": {
            "type": "object",
            "required": ["g"],
            "properties": {"g": {"type": "integer", "minimum": 0}},
        }
    },
}

SCOREBOARD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["h", "a"],
    "properties": {
        "h": _TEAM_TOTALS_SCHEMA,
        "a": _TEAM_TOTALS_SCHEMA,
    },
}


class ParseError(ValueError):
    """Raised when a feed document cannot be interpreted."""


class MalformedFeedError(ParseError):
    """Raised when the JSONP wrapper or its payload is malformed."""


class FeedUnavailableError(RuntimeError):
    """Raised when the feed cannot be fetched."""


def strip_jsonp(body: str, marker: str = DEFAULT_MARKER) -> str:
    """Return the text enclosed by ``marker(`` and the closing parenthesis."""

    prefix = f"{marker}("
    start = body.find(prefix)
    if start < 0:
        raise MalformedFeedError(f"Feed does not contain {prefix!r}")

    remainder = body[start + len(prefix):].rstrip().rstrip(";").rstrip()
    if not remainder.endswith(")"):
        raise MalformedFeedError("Feed payload is not terminated by ')'")
    return remainder[:-1]


def decode_scoreboard(body: str, marker: str = DEFAULT_MARKER) -> dict[str, Any]:
    """Decode and validate the scoreboard object wrapped in ``body``."""

    enclosed = strip_jsonp(body, marker)
    try:
        data = json.loads(enclosed)
    except (ValueError, RecursionError) as exc:
        raise MalformedFeedError(f"Feed payload is not valid JSON: {exc}") from exc

    try:
        validate(data, SCOREBOARD_SCHEMA)
    except ValidationError as exc:
        raise MalformedFeedError(f"Feed payload failed validation: {exc.message}") from exc
    return data


def snapshot_from_scoreboard(data: dict[str, Any]) -> ScoreSnapshot:
    return ScoreSnapshot(
        home_goals=data["h"]["tot"]["g"],
        away_goals=data["a"]["tot"]["g"],
    )


def parse_snapshot(body: str, marker: str = DEFAULT_MARKER) -> ScoreSnapshot:
    return snapshot_from_scoreboard(decode_scoreboard(body, marker))


class ScoreFeed:
    """Fetches the scoreboard document and extracts the goal totals."""

    def __init__(
        self,
        url: str,
        *,
        marker: str = DEFAULT_MARKER,
        timeout: float | httpx.Timeout | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._marker = marker
        self._timeout = timeout or DEFAULT_TIMEOUT
        self._client = client

    @property
    def url(self) -> str:
        return self._url

    async def fetch_text(self) -> str:
        client = self._client
        close_client = False
        if client is None:
            timeout = self._timeout
            if not isinstance(timeout, Timeout):
                timeout = Timeout(timeout)
            client = httpx.AsyncClient(timeout=timeout)
            close_client = True

        try:
            response = await client.get(self._url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FeedUnavailableError(f"Feed request failed: {exc}") from exc
        finally:
            if close_client:
                await client.aclose()

        if response.status_code != httpx.codes.OK:
            raise FeedUnavailableError(
                f"Feed returned status {response.status_code}"
            )
        return response.text

    async def fetch_snapshot(self) -> ScoreSnapshot:
        """Fetch the feed and return the current goal totals."""

        body = await self.fetch_text()
        snapshot = parse_snapshot(body, self._marker)
        LOGGER.debug("feed_snapshot url=%s score=%s", self._url, snapshot)
        return snapshot
