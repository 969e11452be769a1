"""Remote event feed, background merge and the periodic refresh ticker."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Set

import httpx
from pydantic import ValidationError

from .config import CONFIG, AppConfig
from .errors import RemoteFeedError
from .schemas import CareEvent
from .tracker import Tracker

logger = logging.getLogger(__name__)

# Strong references to fire-and-forget merge tasks until they finish.
_pending_merges: Set[asyncio.Task] = set()


def _describe_response(resp: httpx.Response) -> str:
    try:
        return resp.text[:200] or "<empty response>"
    except Exception:
        return "<unable to read response>"


@dataclass
class RemoteEventFeed:
    url: str
    timeout: float = 15.0
    transport: Optional[httpx.AsyncBaseTransport] = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def fetch_events(self) -> List[CareEvent]:
        """GET the remote batch; records that fail validation are dropped."""
        async with self._client() as client:
            resp = await client.get(self.url, headers={"Accept": "application/json"})
        if resp.status_code >= 400:
            raise RemoteFeedError(
                f"Remote feed fetch failed: status={resp.status_code}, body={_describe_response(resp)}"
            )
        data: Any = resp.json() if resp.content else []
        if not isinstance(data, list):
            raise RemoteFeedError("Remote feed returned a non-list body")

        events: List[CareEvent] = []
        for raw in data:
            try:
                events.append(CareEvent.model_validate(raw))
            except ValidationError as exc:
                logger.warning(
                    "dropping corrupt remote event",
                    extra={"record_id": raw.get("id") if isinstance(raw, dict) else None, "errors": exc.error_count()},
                )
        return events

    async def push_events(self, events: Sequence[CareEvent]) -> None:
        body = [event.model_dump(mode="json") for event in events]
        async with self._client() as client:
            resp = await client.post(self.url, json=body)
        if resp.status_code >= 400:
            raise RemoteFeedError(
                f"Remote feed push failed: status={resp.status_code}, body={_describe_response(resp)}"
            )


def feed_from_config(config: AppConfig = CONFIG) -> Optional[RemoteEventFeed]:
    if not config.remote_events_url:
        return None
    return RemoteEventFeed(url=config.remote_events_url, timeout=config.remote_timeout_seconds)


async def merge_remote(tracker: Tracker, feed: RemoteEventFeed) -> List[CareEvent]:
    """Fetch and merge one remote batch. Failures leave local state untouched."""
    try:
        remote = await feed.fetch_events()
    except Exception:
        logger.exception("remote fetch failed", extra={"url": feed.url})
        return []
    try:
        return tracker.apply_remote_events(remote)
    except Exception:
        logger.exception("remote merge failed", extra={"url": feed.url, "events": len(remote)})
        return []


def schedule_remote_merge(tracker: Tracker, feed: RemoteEventFeed) -> asyncio.Task:
    task = asyncio.get_running_loop().create_task(merge_remote(tracker, feed))
    _pending_merges.add(task)
    task.add_done_callback(_pending_merges.discard)
    return task


class RefreshTicker:
    """Recompute the tracker's aggregates every ``interval`` seconds."""

    def __init__(self, tracker: Tracker, interval: float = CONFIG.refresh_interval_seconds) -> None:
        if interval <= 0:
            raise ValueError("refresh interval must be positive")
        self.tracker = tracker
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.tracker.refresh()
            except Exception:
                logger.exception("periodic refresh failed")
