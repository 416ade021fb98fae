"""
Domain service: degraded-mode series generators.

build_spot_fallback_series is the terminal step of the history chain: a flat
series at the last known spot price spanning exactly the requested window.
build_synthetic_price_series / build_synthetic_sentiment_series are the
placeholders shown when nothing real has ever been fetched for a stream.
"""

import math
from typing import Optional

from btc_tracker.domain.entities.market_data import (
    SPOT_FALLBACK_SOURCE,
    SYNTHETIC_SOURCE,
    PricePoint,
    PriceSeries,
    SentimentPoint,
    SentimentSeries,
)
from btc_tracker.domain.entities.range_key import RangeKey

PLACEHOLDER_BASE_PRICE = 60_000.0
PLACEHOLDER_SENTIMENT = 50.0


def _spaced_timestamps(start: int, end: int, count: int) -> list[int]:
    if count < 2:
        return [end]
    span = end - start
    return [start + (idx * span) // (count - 1) for idx in range(count)]


def build_spot_fallback_series(range_key: RangeKey, price: float, now_ms: int) -> PriceSeries:
    start = now_ms - range_key.window_ms()
    points = tuple(
        PricePoint(t=t, p=price)
        for t in _spaced_timestamps(start, now_ms, range_key.config.fallback_points)
    )
    return PriceSeries(
        range_key=range_key,
        source=SPOT_FALLBACK_SOURCE,
        fetched_at_ms=now_ms,
        points=points,
    )


def build_synthetic_price_series(
    range_key: RangeKey, price: Optional[float], now_ms: int
) -> PriceSeries:
    base = price if price is not None else PLACEHOLDER_BASE_PRICE
    start = now_ms - range_key.window_ms()
    timestamps = _spaced_timestamps(start, now_ms, range_key.config.synthetic_points)
    points = tuple(
        PricePoint(t=t, p=base + math.sin(idx / 5) * base * 0.0025)
        for idx, t in enumerate(timestamps)
    )
    return PriceSeries(
        range_key=range_key,
        source=SYNTHETIC_SOURCE,
        fetched_at_ms=now_ms,
        points=points,
    )


def build_synthetic_sentiment_series(range_key: RangeKey, now_ms: int) -> SentimentSeries:
    start = now_ms - range_key.window_ms()
    timestamps = _spaced_timestamps(start, now_ms, range_key.config.synthetic_points)
    return SentimentSeries(
        range_key=range_key,
        source=SYNTHETIC_SOURCE,
        fetched_at_ms=now_ms,
        points=tuple(SentimentPoint(t=t, v=PLACEHOLDER_SENTIMENT) for t in timestamps),
    )
