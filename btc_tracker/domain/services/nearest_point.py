"""
Domain service: resolve a pointer position over the chart to the closest point.
"""

from typing import Optional, Protocol, Sequence


class _Timed(Protocol):
    t: int


def locate(points: Sequence[_Timed], target_ts: float) -> int:
    """Index of the point whose timestamp is closest to *target_ts*.

    Binary search over the ascending series; targets past either end clamp to
    the boundary point. On an exact midpoint the earlier (left) point wins.
    Returns -1 only for an empty series.
    """
    if not points:
        return -1

    left, right = 0, len(points) - 1
    while left <= right:
        mid = (left + right) // 2
        value = points[mid].t
        if value < target_ts:
            left = mid + 1
        elif value > target_ts:
            right = mid - 1
        else:
            return mid

    if left >= len(points):
        return len(points) - 1
    if left <= 0:
        return 0

    prev_distance = abs(points[left - 1].t - target_ts)
    next_distance = abs(points[left].t - target_ts)
    return left - 1 if prev_distance <= next_distance else left


def target_from_fraction(points: Sequence[_Timed], fraction: float) -> Optional[float]:
    """Map a horizontal pointer fraction (0 = left edge, 1 = right edge) to a timestamp."""
    if not points:
        return None
    clamped = min(max(fraction, 0.0), 1.0)
    start, end = points[0].t, points[-1].t
    return start + clamped * (end - start)
