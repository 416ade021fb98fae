"""
Application service: independent polling loops per metric stream.

Business decisions owned here:
  - Each stream refreshes on its own cadence; streams never wait on each other.
  - At most one fetch per stream key is in flight. A manual refresh that
    arrives while a scheduled one is running awaits the same fetch.
  - A failed refresh keeps serving the last good value with a stale warning;
    a stream that has never succeeded may show a synthetic placeholder.
  - Polling only starts for an authorized caller; stopping clears the cache.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional

from btc_tracker.application.services.last_good_cache import CachedValue, LastGoodCache
from btc_tracker.domain.entities.market_data import ProviderFailure, ProviderResult
from btc_tracker.domain.errors import StaleDataWarning
from btc_tracker.domain.services.clock import now_ms

logger = logging.getLogger(__name__)


class UnknownStreamError(LookupError):
    """No metric stream is registered under the requested key."""


@dataclass(frozen=True)
class MetricStream:
    key: str
    fetch: Callable[[], Awaitable[ProviderResult]]
    interval_seconds: float
    placeholder: Optional[Callable[[], Any]] = None


@dataclass(frozen=True)
class MetricSnapshot:
    key: str
    ok: bool
    data: Any = None
    source: Optional[str] = None
    fetched_at_ms: Optional[int] = None
    error_reasons: tuple[ProviderFailure, ...] = field(default_factory=tuple)
    stale: Optional[StaleDataWarning] = None
    degraded: bool = False


class PollingController:
    def __init__(
        self,
        streams: Iterable[MetricStream] = (),
        cache: Optional[LastGoodCache] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._streams: dict[str, MetricStream] = {s.key: s for s in streams}
        self._cache = cache if cache is not None else LastGoodCache()
        self._clock = clock
        self._loops: dict[str, asyncio.Task] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        self._snapshots: dict[str, MetricSnapshot] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def cache(self) -> LastGoodCache:
        return self._cache

    def stream_keys(self) -> list[str]:
        return list(self._streams)

    async def start(self, authorized: bool) -> bool:
        """Start every stream loop. Returns False without polling when not authorized."""
        if not authorized:
            logger.info("polling not started: caller is not authorized")
            return False
        if self._running:
            return True
        self._running = True
        for stream in self._streams.values():
            self._spawn_loop(stream)
        logger.info("polling started for %d streams", len(self._streams))
        return True

    async def stop(self) -> None:
        """Cancel all loops and in-flight fetches, then drop cached and shown values."""
        self._running = False
        tasks = list(self._loops.values()) + list(self._inflight.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loops.clear()
        self._inflight.clear()
        self._snapshots.clear()
        self._cache.clear()
        logger.info("polling stopped, cache cleared")

    def register(self, stream: MetricStream) -> None:
        self._streams[stream.key] = stream
        if self._running and stream.key not in self._loops:
            self._spawn_loop(stream)

    def unregister(self, key: str) -> None:
        """Stop polling *key*. An in-flight fetch for it is left to finish."""
        self._streams.pop(key, None)
        loop = self._loops.pop(key, None)
        if loop is not None:
            loop.cancel()

    async def refresh(self, key: str) -> MetricSnapshot:
        """Fetch *key* now, joining the in-flight fetch if one is running.

        Raises:
            UnknownStreamError: if no stream is registered under *key*.
        """
        stream = self._streams.get(key)
        if stream is None:
            raise UnknownStreamError(f"unknown metric stream {key!r}")

        task = self._inflight.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(self._fetch(stream))
            self._inflight[key] = task
            task.add_done_callback(lambda done, key=key: self._clear_inflight(key, done))
        return await asyncio.shield(task)

    def snapshot(self, key: str) -> Optional[MetricSnapshot]:
        return self._snapshots.get(key)

    def snapshots(self) -> dict[str, MetricSnapshot]:
        return dict(self._snapshots)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _spawn_loop(self, stream: MetricStream) -> None:
        self._loops[stream.key] = asyncio.ensure_future(self._poll(stream))

    async def _poll(self, stream: MetricStream) -> None:
        while True:
            try:
                await self.refresh(stream.key)
            except UnknownStreamError:
                return
            except Exception:
                logger.exception("refresh of %s raised unexpectedly", stream.key)
            await asyncio.sleep(stream.interval_seconds)

    def _clear_inflight(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _fetch(self, stream: MetricStream) -> MetricSnapshot:
        result = await stream.fetch()
        snapshot = self._to_snapshot(stream, result)
        self._snapshots[stream.key] = snapshot
        return snapshot

    def _to_snapshot(self, stream: MetricStream, result: ProviderResult) -> MetricSnapshot:
        now = self._clock()
        if result.ok and result.data is not None:
            degraded = bool(getattr(result.data, "is_degraded", False))
            if not degraded:
                self._cache.put(stream.key, CachedValue(result.data, result.source, now))
            return MetricSnapshot(
                key=stream.key,
                ok=True,
                data=result.data,
                source=result.source,
                fetched_at_ms=now,
                error_reasons=result.failures,
                degraded=degraded,
            )

        cached = self._cache.get(stream.key)
        if cached is not None:
            logger.warning(
                "%s refresh failed, keeping value from %s", stream.key, cached.source
            )
            return MetricSnapshot(
                key=stream.key,
                ok=True,
                data=cached.data,
                source=cached.source,
                fetched_at_ms=cached.fetched_at_ms,
                error_reasons=result.failures,
                stale=StaleDataWarning(
                    last_good_at_ms=cached.fetched_at_ms,
                    reasons=tuple(f.error_message for f in result.failures),
                ),
            )

        if stream.placeholder is not None:
            data = stream.placeholder()
            return MetricSnapshot(
                key=stream.key,
                ok=True,
                data=data,
                source=getattr(data, "source", None),
                fetched_at_ms=now,
                error_reasons=result.failures,
                degraded=True,
            )

        return MetricSnapshot(
            key=stream.key,
            ok=False,
            source=result.source,
            fetched_at_ms=now,
            error_reasons=result.failures,
        )
