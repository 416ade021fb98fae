"""
Application service: ordered provider fallback chains for every metric class.

Business decisions owned here:
  - Providers of one chain run strictly one after another in priority order,
    never concurrently, each bounded by the metric class timeout.
  - Plausibility validation (spot price sanity, series normalization) happens
    inside the chain step, so a provider returning garbage counts as a failure.
  - Failures are captured as ProviderFailure data; nothing is raised past
    fetch_with_fallback(). Caching is the caller's concern.

Provider adapters are injected; no httpx or yfinance imports appear here.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from btc_tracker.domain.entities.market_data import (
    SPOT_FALLBACK_SOURCE,
    UNAVAILABLE_SOURCE,
    DominanceReading,
    PriceSeries,
    ProviderFailure,
    ProviderResult,
    SentimentReading,
    SentimentSeries,
    SpotQuote,
)
from btc_tracker.domain.entities.range_key import RangeKey
from btc_tracker.domain.errors import MarketDataError, ValidationError
from btc_tracker.domain.ports.market_data_port import (
    IDominanceProvider,
    IHistoryProvider,
    ISentimentProvider,
    ISpotPriceProvider,
)
from btc_tracker.domain.services.clock import now_ms
from btc_tracker.domain.services.series_normalizer import (
    normalize_price_points,
    normalize_sentiment_points,
)
from btc_tracker.domain.services.series_synthesizer import build_spot_fallback_series

logger = logging.getLogger(__name__)

P = TypeVar("P")
T = TypeVar("T")


class MetricClass(str, Enum):
    SPOT = "spot"
    HISTORY = "history"
    DOMINANCE = "dominance"
    SENTIMENT = "sentiment"
    SENTIMENT_HISTORY = "sentiment_history"


@dataclass(frozen=True)
class ChainTimeouts:
    spot: float = 8.0
    history: float = 12.0
    dominance: float = 8.0
    sentiment: float = 8.0
    sentiment_history: float = 12.0


class ProviderChainExecutor:
    def __init__(
        self,
        spot_providers: Sequence[ISpotPriceProvider],
        history_providers: Sequence[IHistoryProvider],
        dominance_providers: Sequence[IDominanceProvider] = (),
        sentiment_providers: Sequence[ISentimentProvider] = (),
        timeouts: ChainTimeouts = ChainTimeouts(),
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._spot_providers = list(spot_providers)
        self._history_providers = list(history_providers)
        self._dominance_providers = list(dominance_providers)
        self._sentiment_providers = list(sentiment_providers)
        self._timeouts = timeouts
        self._clock = clock

    @property
    def timeouts(self) -> ChainTimeouts:
        return self._timeouts

    async def fetch_with_fallback(
        self,
        metric_class: MetricClass,
        range_key: Optional[RangeKey] = None,
        last_spot_price: Optional[float] = None,
    ) -> ProviderResult:
        """Run the chain configured for *metric_class*.

        Args:
            metric_class:    Which chain to run.
            range_key:       Lookback window for the history classes (default 24h).
            last_spot_price: Price for the spot-fallback synthesizer; when absent
                             the spot chain is run to obtain one.
        """
        range_key = range_key or RangeKey.H24
        if metric_class is MetricClass.SPOT:
            return await self.fetch_spot()
        if metric_class is MetricClass.HISTORY:
            return await self.fetch_history(range_key, last_spot_price)
        if metric_class is MetricClass.DOMINANCE:
            return await self.fetch_dominance()
        if metric_class is MetricClass.SENTIMENT:
            return await self.fetch_sentiment()
        return await self.fetch_sentiment_history(range_key)

    async def fetch_spot(self) -> ProviderResult[SpotQuote]:
        async def attempt(provider: ISpotPriceProvider) -> SpotQuote:
            quote = await provider.fetch_spot()
            if not math.isfinite(quote.price) or quote.price <= 0:
                raise ValidationError(f"implausible price {quote.price!r}")
            return quote

        return await self._run_chain(
            MetricClass.SPOT, self._spot_providers, attempt, self._timeouts.spot
        )

    async def fetch_history(
        self, range_key: RangeKey, last_spot_price: Optional[float] = None
    ) -> ProviderResult[PriceSeries]:
        async def attempt(provider: IHistoryProvider) -> PriceSeries:
            raw = await provider.fetch_history(range_key)
            return PriceSeries(
                range_key=range_key,
                source=provider.name,
                fetched_at_ms=self._clock(),
                points=normalize_price_points(raw),
            )

        result = await self._run_chain(
            MetricClass.HISTORY, self._history_providers, attempt, self._timeouts.history
        )
        if result.ok:
            return result
        return await self._spot_fallback(range_key, last_spot_price, result.failures)

    async def fetch_dominance(self) -> ProviderResult[DominanceReading]:
        async def attempt(provider: IDominanceProvider) -> DominanceReading:
            reading = await provider.fetch_dominance()
            if reading.value is None or not 0 <= reading.value <= 100:
                raise ValidationError(f"implausible dominance {reading.value!r}")
            return reading

        result = await self._run_chain(
            MetricClass.DOMINANCE,
            self._dominance_providers,
            attempt,
            self._timeouts.dominance,
        )
        if result.ok:
            return result
        return ProviderResult(
            ok=True,
            provider_name=UNAVAILABLE_SOURCE,
            data=DominanceReading(value=None, source=UNAVAILABLE_SOURCE),
            failures=result.failures,
        )

    async def fetch_sentiment(self) -> ProviderResult[SentimentReading]:
        async def attempt(provider: ISentimentProvider) -> SentimentReading:
            reading = await provider.fetch_current()
            if reading.value is None or not 0 <= reading.value <= 100:
                raise ValidationError(f"implausible sentiment {reading.value!r}")
            return reading

        return await self._run_chain(
            MetricClass.SENTIMENT,
            self._sentiment_providers,
            attempt,
            self._timeouts.sentiment,
        )

    async def fetch_sentiment_history(
        self, range_key: RangeKey
    ) -> ProviderResult[SentimentSeries]:
        async def attempt(provider: ISentimentProvider) -> SentimentSeries:
            raw = await provider.fetch_history()
            now = self._clock()
            return SentimentSeries(
                range_key=range_key,
                source=provider.name,
                fetched_at_ms=now,
                points=normalize_sentiment_points(raw, now - range_key.window_ms(), now),
            )

        return await self._run_chain(
            MetricClass.SENTIMENT_HISTORY,
            self._sentiment_providers,
            attempt,
            self._timeouts.sentiment_history,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _run_chain(
        self,
        metric_class: MetricClass,
        providers: Sequence[P],
        attempt: Callable[[P], Awaitable[T]],
        timeout: float,
    ) -> ProviderResult[T]:
        failures: list[ProviderFailure] = []
        for provider in providers:
            name = getattr(provider, "name", provider.__class__.__name__)
            try:
                data = await asyncio.wait_for(attempt(provider), timeout=timeout)
            except asyncio.TimeoutError:
                message = f"timeout after {timeout:g}s"
            except MarketDataError as exc:
                message = str(exc) or exc.__class__.__name__
            except Exception as exc:
                message = f"{exc.__class__.__name__}: {exc}"
            else:
                if failures:
                    logger.info(
                        "%s served by %s after %d failure(s)",
                        metric_class.value, name, len(failures),
                    )
                return ProviderResult(
                    ok=True, provider_name=name, data=data, failures=tuple(failures)
                )
            logger.warning("%s provider %s failed: %s", metric_class.value, name, message)
            failures.append(ProviderFailure(provider_name=name, error_message=message))

        logger.error(
            "%s chain exhausted: %s",
            metric_class.value,
            ", ".join(f"{f.provider_name}={f.error_message}" for f in failures) or "no providers",
        )
        return ProviderResult(
            ok=False,
            provider_name=metric_class.value,
            error_message=f"Failed to fetch {metric_class.value} from all providers",
            failures=tuple(failures),
        )

    async def _spot_fallback(
        self,
        range_key: RangeKey,
        last_spot_price: Optional[float],
        failures: tuple[ProviderFailure, ...],
    ) -> ProviderResult[PriceSeries]:
        price = last_spot_price
        reason = "missing/invalid spot price"
        if price is None or not math.isfinite(price) or price <= 0:
            spot = await self.fetch_spot()
            price = spot.data.price if spot.ok and spot.data else None
            if spot.error_message:
                reason = spot.error_message

        if price is None:
            logger.error("history for %s unavailable, spot fallback failed", range_key.value)
            return ProviderResult(
                ok=False,
                provider_name=MetricClass.HISTORY.value,
                error_message="Failed to fetch BTC chart data from all providers",
                failures=failures + (ProviderFailure(SPOT_FALLBACK_SOURCE, reason),),
            )

        logger.warning(
            "history for %s synthesized from spot price %.2f", range_key.value, price
        )
        return ProviderResult(
            ok=True,
            provider_name=SPOT_FALLBACK_SOURCE,
            data=build_spot_fallback_series(range_key, price, self._clock()),
            failures=failures,
        )
