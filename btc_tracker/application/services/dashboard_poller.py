"""
Application service: the dashboard's metric streams on top of PollingController.

Streams and their keys:
  btc                    spot price                     fast cadence
  btc24h                 24h history (change reference) one minute
  chart:<range>          selected-range history         range dependent
  fng                    Fear & Greed reading           slow
  fng_history:<range>    Fear & Greed history           slow
  cycle                  halving cycle + dominance      slow

Switching the chart or sentiment range swaps the stream; a request still in
flight for the old range is not aborted, its result is simply superseded.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from btc_tracker.application.services.last_good_cache import LastGoodCache
from btc_tracker.application.services.polling_controller import (
    MetricSnapshot,
    MetricStream,
    PollingController,
)
from btc_tracker.application.services.provider_chain import ProviderChainExecutor
from btc_tracker.application.use_cases.get_market_cycle import GetMarketCycleUseCase
from btc_tracker.domain.entities.range_key import RangeKey
from btc_tracker.domain.services.clock import now_ms
from btc_tracker.domain.services.series_synthesizer import (
    build_synthetic_price_series,
    build_synthetic_sentiment_series,
)

SPOT_KEY = "btc"
CHANGE_REFERENCE_KEY = "btc24h"
SENTIMENT_KEY = "fng"
CYCLE_KEY = "cycle"


def chart_key(range_key: RangeKey) -> str:
    return f"chart:{range_key.value}"


def sentiment_history_key(range_key: RangeKey) -> str:
    return f"fng_history:{range_key.value}"


@dataclass(frozen=True)
class PollingCadences:
    spot: float = 10
    change_reference: float = 60
    sentiment: float = 1800
    sentiment_history: float = 1800
    cycle: float = 900


class DashboardPoller:
    def __init__(
        self,
        chain: ProviderChainExecutor,
        cache: Optional[LastGoodCache] = None,
        chart_range: RangeKey = RangeKey.H24,
        sentiment_range: RangeKey = RangeKey.M1,
        cadences: PollingCadences = PollingCadences(),
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._chain = chain
        self._cadences = cadences
        self._clock = clock
        self._cycle = GetMarketCycleUseCase(chain, clock)
        self._chart_range = chart_range
        self._sentiment_range = sentiment_range
        self.controller = PollingController(cache=cache, clock=clock)

        self.controller.register(MetricStream(SPOT_KEY, chain.fetch_spot, cadences.spot))
        self.controller.register(
            MetricStream(
                CHANGE_REFERENCE_KEY,
                lambda: chain.fetch_history(RangeKey.H24, self.last_spot_price()),
                cadences.change_reference,
            )
        )
        self.controller.register(
            MetricStream(SENTIMENT_KEY, chain.fetch_sentiment, cadences.sentiment)
        )
        self.controller.register(MetricStream(CYCLE_KEY, self._cycle.execute, cadences.cycle))
        self.controller.register(self._chart_stream(chart_range))
        self.controller.register(self._sentiment_history_stream(sentiment_range))

    @property
    def chart_range(self) -> RangeKey:
        return self._chart_range

    @property
    def sentiment_range(self) -> RangeKey:
        return self._sentiment_range

    async def start(self, authorized: bool) -> bool:
        return await self.controller.start(authorized)

    async def stop(self) -> None:
        await self.controller.stop()

    async def refresh(self, key: str) -> MetricSnapshot:
        return await self.controller.refresh(key)

    def snapshots(self) -> dict[str, MetricSnapshot]:
        return self.controller.snapshots()

    def last_spot_price(self) -> Optional[float]:
        snapshot = self.controller.snapshot(SPOT_KEY)
        if snapshot is None or snapshot.data is None:
            return None
        return snapshot.data.price

    def set_chart_range(self, range_key: RangeKey) -> None:
        if range_key is self._chart_range:
            return
        self.controller.unregister(chart_key(self._chart_range))
        self._chart_range = range_key
        self.controller.register(self._chart_stream(range_key))

    def set_sentiment_range(self, range_key: RangeKey) -> None:
        if range_key is self._sentiment_range:
            return
        self.controller.unregister(sentiment_history_key(self._sentiment_range))
        self._sentiment_range = range_key
        self.controller.register(self._sentiment_history_stream(range_key))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _chart_stream(self, range_key: RangeKey) -> MetricStream:
        return MetricStream(
            key=chart_key(range_key),
            fetch=lambda: self._chain.fetch_history(range_key, self.last_spot_price()),
            interval_seconds=range_key.config.refresh_seconds,
            placeholder=lambda: build_synthetic_price_series(
                range_key, self.last_spot_price(), self._clock()
            ),
        )

    def _sentiment_history_stream(self, range_key: RangeKey) -> MetricStream:
        return MetricStream(
            key=sentiment_history_key(range_key),
            fetch=lambda: self._chain.fetch_sentiment_history(range_key),
            interval_seconds=self._cadences.sentiment_history,
            placeholder=lambda: build_synthetic_sentiment_series(range_key, self._clock()),
        )
