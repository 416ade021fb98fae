"""
Domain service: analytic values derived from a normalized price series.

Every function is pure and recomputed from scratch on each call; nothing here
keeps incremental state. Percentages are returned as plain floats (10.0 means
+10 %) and None marks a value that is undefined for the given input.
"""

from typing import Optional, Sequence

from btc_tracker.domain.entities.analytics import CrossKind, CrossSignal, DerivedMetrics
from btc_tracker.domain.entities.market_data import PricePoint

MA_SHORT_PERIOD = 50
MA_LONG_PERIOD = 200
SENTIMENT_Y_TICKS = (100, 75, 55, 25, 0)


def range_return_pct(points: Sequence[PricePoint]) -> Optional[float]:
    if len(points) < 2:
        return None
    first, last = points[0].p, points[-1].p
    if first == 0:
        return None
    return (last - first) / first * 100


def range_high_low(points: Sequence[PricePoint]) -> tuple[Optional[float], Optional[float]]:
    if not points:
        return None, None
    values = [pt.p for pt in points]
    return max(values), min(values)


def volatility_pct(points: Sequence[PricePoint]) -> Optional[float]:
    high, low = range_high_low(points)
    if high is None or low is None or points[0].p == 0:
        return None
    return (high - low) / points[0].p * 100


def drawdown_from_high_pct(active: float, high: Optional[float]) -> Optional[float]:
    if high is None or high == 0:
        return None
    return (active - high) / high * 100


def position_in_range_pct(
    active: float, high: Optional[float], low: Optional[float]
) -> Optional[float]:
    if high is None or low is None or high == low:
        return None
    return (active - low) / (high - low) * 100


def active_delta_pct(active: float, first: Optional[float]) -> Optional[float]:
    if first is None or first == 0:
        return None
    return (active - first) / first * 100


def resolve_active_index(
    points: Sequence[PricePoint], hover_index: Optional[int] = None
) -> Optional[int]:
    """Hover index when it is inside the series, otherwise the newest point."""
    if not points:
        return None
    if hover_index is None or hover_index < 0 or hover_index >= len(points):
        return len(points) - 1
    return hover_index


def moving_average(points: Sequence[PricePoint], period: int) -> list[Optional[float]]:
    """Simple moving average aligned with *points*.

    Entry i is None until i >= period - 1. Runs in O(n): the trailing window
    sum is updated by adding the new value and subtracting the one that leaves.
    """
    result: list[Optional[float]] = [None] * len(points)
    if not points or period <= 0:
        return result

    rolling_sum = 0.0
    for idx, point in enumerate(points):
        rolling_sum += point.p
        if idx >= period:
            rolling_sum -= points[idx - period].p
        if idx >= period - 1:
            result[idx] = rolling_sum / period
    return result


def latest_defined(values: Sequence[Optional[float]]) -> Optional[float]:
    for value in reversed(values):
        if value is not None:
            return value
    return None


def find_latest_cross(
    timestamps: Sequence[int],
    short_ma: Sequence[Optional[float]],
    long_ma: Sequence[Optional[float]],
) -> Optional[CrossSignal]:
    """Scan newest to oldest and report the most recent MA crossing, if any."""
    for idx in range(len(timestamps) - 1, 0, -1):
        prev_short, prev_long = short_ma[idx - 1], long_ma[idx - 1]
        curr_short, curr_long = short_ma[idx], long_ma[idx]
        if None in (prev_short, prev_long, curr_short, curr_long):
            continue
        if prev_short <= prev_long and curr_short > curr_long:
            return CrossSignal(CrossKind.GOLDEN, idx, timestamps[idx])
        if prev_short >= prev_long and curr_short < curr_long:
            return CrossSignal(CrossKind.DEATH, idx, timestamps[idx])
    return None


def axis_ticks(start: float, end: float, count: int) -> list[float]:
    """Evenly spaced timestamps from *start* to *end*, both ends included."""
    if count < 1:
        return []
    if count == 1:
        return [start]
    step = (end - start) / (count - 1)
    return [start + step * idx for idx in range(count)]


def value_ticks(high: float, low: float, count: int = 5) -> list[float]:
    """Y-axis labels from *high* down to *low*."""
    return list(reversed(axis_ticks(low, high, count)))


def effective_change_24h(
    provider_change: Optional[float], series_24h: Sequence[PricePoint]
) -> Optional[float]:
    if provider_change is not None:
        return provider_change
    return range_return_pct(series_24h)


def sentiment_zone(value: Optional[float]) -> str:
    if value is None:
        return "Unknown"
    if value < 25:
        return "Risk-Off"
    if value < 55:
        return "Neutral"
    return "Risk-On"


def sentiment_strength(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return min(100.0, abs(value - 50) * 2)


def conviction_label(strength: Optional[float]) -> str:
    if strength is None:
        return "N/A"
    if strength < 25:
        return "Low conviction"
    if strength < 60:
        return "Medium conviction"
    return "High conviction"


def compute_derived_metrics(
    points: Sequence[PricePoint], active_index: Optional[int] = None
) -> DerivedMetrics:
    """Bundle the range statistics for *points* at the resolved active index."""
    index = resolve_active_index(points, active_index)
    high, low = range_high_low(points)
    first = points[0].p if points else None
    last = points[-1].p if points else None
    active = points[index] if index is not None else None

    return DerivedMetrics(
        first=first,
        last=last,
        high=high,
        low=low,
        range_return_pct=range_return_pct(points),
        volatility_pct=volatility_pct(points),
        active_index=index,
        active_t=active.t if active else None,
        active_p=active.p if active else None,
        active_delta_pct=active_delta_pct(active.p, first) if active else None,
        drawdown_from_high_pct=drawdown_from_high_pct(active.p, high) if active else None,
        position_in_range_pct=(
            position_in_range_pct(active.p, high, low) if active else None
        ),
    )
