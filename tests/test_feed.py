"""Tests for the JSONP scoreboard feed client."""

from __future__ import annotations

import httpx
import pytest

from goal_lights.feed import (
    FeedUnavailableError,
    MalformedFeedError,
    ParseError,
    ScoreFeed,
    decode_scoreboard,
    parse_snapshot,
    strip_jsonp,
)
from goal_lights.models import ScoreSnapshot

FEED_URL = "http://feed.invalid/gc/gcsb.jsonp"
SAMPLE_BODY = (
    'GCSB.load({"gid":2013030221,"gf":2,"p":2,'
    '"a":{"id":3,"ab":"NYR","tot":{"g":2,"s":15}},'
    '"h":{"id":5,"ab":"PIT","tot":{"g":1,"s":20}},'
    '"le":{"desc":"2/13:28 - Stoppage (Video Review)"}})'
)


def test_strip_jsonp_returns_enclosed_payload() -> None:
    assert strip_jsonp("GCSB.load({\"a\": 1});\n") == '{"a": 1}'


def test_parse_snapshot_reads_home_and_away_totals() -> None:
    assert parse_snapshot(SAMPLE_BODY) == ScoreSnapshot(home_goals=1, away_goals=2)


def test_parse_snapshot_honours_custom_marker() -> None:
    body = 'callback({"h":{"tot":{"g":4}},"a":{"tot":{"g":0}}})'

    assert parse_snapshot(body, marker="callback") == ScoreSnapshot(
        home_goals=4, away_goals=0
    )


@pytest.mark.parametrize(
    "body",
    [
        "",
        '{"h":{"tot":{"g":1}},"a":{"tot":{"g":2}}}',
        'GCSB.load({"h":{"tot":{"g":1}},"a":{"tot":{"g":2}}}',
    ],
)
def test_missing_wrapper_raises_malformed_feed(body: str) -> None:
    with pytest.raises(MalformedFeedError):
        strip_jsonp(body)


def test_invalid_json_raises_malformed_feed() -> None:
    with pytest.raises(MalformedFeedError):
        decode_scoreboard("GCSB.load({not json})")


@pytest.mark.parametrize(
    "payload",
    [
        '{"h":{"tot":{"g":1}}}',
        '{"h":{"tot":{"g":"1"}},"a":{"tot":{"g":2}}}',
        '{"h":{"tot":{}},"a":{"tot":{"g":2}}}',
        "[]",
    ],
)
def test_schema_violations_raise_parse_error(payload: str) -> None:
    with pytest.raises(ParseError):
        decode_scoreboard(f"GCSB.load({payload})")


@pytest.mark.asyncio
async def test_score_feed_fetches_snapshot() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, text=SAMPLE_BODY)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        feed = ScoreFeed(FEED_URL, client=client)
        snapshot = await feed.fetch_snapshot()

    assert requested == [FEED_URL]
    assert snapshot == ScoreSnapshot(home_goals=1, away_goals=2)


@pytest.mark.asyncio
async def test_score_feed_rejects_error_status() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))

    async with httpx.AsyncClient(transport=transport) as client:
        feed = ScoreFeed(FEED_URL, client=client)
        with pytest.raises(FeedUnavailableError):
            await feed.fetch_snapshot()


@pytest.mark.asyncio
async def test_score_feed_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        feed = ScoreFeed(FEED_URL, client=client)
        with pytest.raises(FeedUnavailableError):
            await feed.fetch_snapshot()


@pytest.mark.parametrize(
    "payload",
    [
        '{"h":{"tot":{"g":' + "9" * 5000 + '}},"a":{"tot":{"g":2}}}',
        "[" * 200_000 + "]" * 200_000,
    ],
)
def test_undecodable_payloads_raise_malformed_feed(payload: str) -> None:
    with pytest.raises(MalformedFeedError):
        parse_snapshot(f"GCSB.load({payload})")


@pytest.mark.asyncio
async def test_score_feed_wraps_invalid_url() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not run
        raise AssertionError("feed should not be contacted")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        feed = ScoreFeed("http://[::1/gcsb.jsonp", client=client)
        with pytest.raises(FeedUnavailableError):
            await feed.fetch_snapshot()
