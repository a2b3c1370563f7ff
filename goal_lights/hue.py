"""HTTP client for the Hue bridge and fire-and-forget lighting commands."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from httpx import Timeout

from .colors import XYPoint
from .models import CELEBRATE_STATE, RESET_STATE, LightState

LOGGER = logging.getLogger(__name__)
DEFAULT_TIMEOUT = Timeout(5.0)


class LightingClientError(RuntimeError):
    """Raised when the bridge rejects or fails a request."""


class HueBridgeClient:
    """Thin wrapper around the bridge's group action endpoint."""

    def __init__(
        self,
        host: str | None,
        username: str | None,
        *,
        timeout: float | httpx.Timeout | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._host = host
        self._username = username
        self._timeout = timeout or DEFAULT_TIMEOUT
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._host and self._username)

    def _group_action_url(self, group_id: int) -> str:
        host = (self._host or "").rstrip("/")
        if "://" not in host:
            host = f"http://{host}"
        return f"{host}/api/{self._username}/groups/{group_id}/action"

    async def set_group_state(
        self, group_id: int, state: LightState
    ) -> list[dict[str, Any]]:
        """Apply ``state`` to every light in ``group_id``."""

        if not self.configured:
            LOGGER.debug("hue_bridge_unconfigured group=%s", group_id)
            return []

        client = self._client
        close_client = False
        if client is None:
            timeout = self._timeout
            if not isinstance(timeout, Timeout):
                timeout = Timeout(timeout)
            client = httpx.AsyncClient(timeout=timeout)
            close_client = True

        try:
            response = await client.put(
                self._group_action_url(group_id), json=state.payload()
            )
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise LightingClientError(f"Bridge request failed: {exc}") from exc
        finally:
            if close_client:
                await client.aclose()

        try:
            data = response.json()
        except ValueError as exc:
            raise LightingClientError("Bridge returned invalid JSON") from exc
        if not isinstance(data, list):
            raise LightingClientError(f"Unexpected bridge response: {data!r}")

        errors = [
            item["error"] for item in data if isinstance(item, dict) and "error" in item
        ]
        if errors:
            LOGGER.warning(
                "hue_group_state_rejected group=%s errors=%s", group_id, errors
            )
        return data


class LightingController:
    """Issues lighting presets as background tasks.

    Every command returns the :class:`asyncio.Task` that delivers it so
    callers may await completion, but nothing requires them to. Commands may
    overlap; the bridge applies whichever arrives last.
    """

    def __init__(self, client: HueBridgeClient, group_id: int = 0) -> None:
        self._client = client
        self._group_id = group_id
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def celebrate(self) -> asyncio.Task:
        return self.apply(CELEBRATE_STATE, label="celebrate")

    def reset(self) -> asyncio.Task:
        return self.apply(RESET_STATE, label="reset")

    def show_color(self, point: XYPoint, *, brightness: int = 255) -> asyncio.Task:
        state = LightState(on=True, bri=brightness, xy=(point.x, point.y))
        return self.apply(state, label="color")

    def apply(self, state: LightState, *, label: str) -> asyncio.Task:
        """Schedule ``state`` for the group on the running event loop."""

        task = asyncio.get_running_loop().create_task(self._send(state, label))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every command issued so far to finish."""

        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _send(self, state: LightState, label: str) -> list[dict[str, Any]] | None:
        try:
            result = await self._client.set_group_state(self._group_id, state)
        except LightingClientError as exc:
            LOGGER.warning(
                "hue_group_state_failed preset=%s group=%s error=%s",
                label,
                self._group_id,
                exc,
            )
            return None
        LOGGER.info("lights_%s group=%s", label, self._group_id)
        return result
