"""
Domain service: turn raw, possibly dirty provider output into a strictly
ascending, deduplicated series.
Zero external dependencies.
"""

import math
from typing import Iterable, Optional

from btc_tracker.domain.entities.market_data import PricePoint, SentimentPoint
from btc_tracker.domain.errors import InsufficientDataError

PRICE_FLOOR = 1_000.0
PRICE_CEILING = 5_000_000.0
OUTLIER_MIN_POINTS = 5
OUTLIER_LOW_FACTOR = 0.2
OUTLIER_HIGH_FACTOR = 5.0
MIN_SERIES_POINTS = 2


def _finite_number(value: object) -> Optional[float]:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _dedupe(raw: Iterable[tuple[object, object]]) -> dict[int, float]:
    # Last write wins per timestamp; non-finite entries never overwrite.
    deduped: dict[int, float] = {}
    for raw_t, raw_v in raw:
        t = _finite_number(raw_t)
        v = _finite_number(raw_v)
        if t is None or v is None:
            continue
        deduped[int(t)] = v
    return deduped


def _median(values: list[float]) -> float:
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def normalize_price_points(
    raw: Iterable[tuple[object, object]],
    floor: float = PRICE_FLOOR,
    ceiling: float = PRICE_CEILING,
) -> tuple[PricePoint, ...]:
    """Clean raw (timestamp, price) pairs into an ascending price series.

    Args:
        raw:     Iterable of (t, p) pairs; PricePoint instances are accepted too.
        floor:   Exclusive lower plausibility bound for prices.
        ceiling: Exclusive upper plausibility bound for prices.

    Raises:
        InsufficientDataError: if fewer than two points survive filtering.
    """
    pairs = ((pt.t, pt.p) if isinstance(pt, PricePoint) else pt for pt in raw)
    deduped = _dedupe(pairs)
    kept = {t: p for t, p in deduped.items() if floor < p < ceiling}

    if len(kept) >= OUTLIER_MIN_POINTS:
        median = _median(list(kept.values()))
        low = median * OUTLIER_LOW_FACTOR
        high = median * OUTLIER_HIGH_FACTOR
        kept = {t: p for t, p in kept.items() if low <= p <= high}

    if len(kept) < MIN_SERIES_POINTS:
        raise InsufficientDataError(
            f"insufficient points: {len(kept)} valid of {len(deduped)} parsed"
        )
    return tuple(PricePoint(t=t, p=kept[t]) for t in sorted(kept))


def normalize_sentiment_points(
    raw: Iterable[tuple[object, object]],
    start_ms: Optional[int] = None,
    end_ms: Optional[int] = None,
) -> tuple[SentimentPoint, ...]:
    """Clean raw (timestamp_ms, value) pairs into an ascending sentiment series.

    Values outside [0, 100] and timestamps outside [start_ms, end_ms] are dropped.

    Raises:
        InsufficientDataError: if fewer than two points survive filtering.
    """
    pairs = ((pt.t, pt.v) if isinstance(pt, SentimentPoint) else pt for pt in raw)
    deduped = _dedupe(pairs)
    kept = {
        t: v
        for t, v in deduped.items()
        if 0.0 <= v <= 100.0
        and (start_ms is None or t >= start_ms)
        and (end_ms is None or t <= end_ms)
    }
    if len(kept) < MIN_SERIES_POINTS:
        raise InsufficientDataError(
            f"insufficient sentiment points: {len(kept)} in window"
        )
    return tuple(SentimentPoint(t=t, v=kept[t]) for t in sorted(kept))
