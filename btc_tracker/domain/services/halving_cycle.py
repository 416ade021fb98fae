"""
Domain service: position within the Bitcoin four-year halving cycle.
"""

import math
from datetime import datetime, timezone

from btc_tracker.domain.entities.market_data import CycleStats
from btc_tracker.domain.entities.range_key import DAY_MS


def _utc_ms(year: int, month: int, day: int) -> int:
    return int(datetime(year, month, day, tzinfo=timezone.utc).timestamp() * 1000)


HALVINGS_UTC_MS = (
    _utc_ms(2012, 11, 28),
    _utc_ms(2016, 7, 9),
    _utc_ms(2020, 5, 11),
    _utc_ms(2024, 4, 20),
)
NEXT_HALVING_ESTIMATE_UTC_MS = _utc_ms(2028, 4, 20)


def compute_cycle_stats(now_ms: int) -> CycleStats:
    last_halving = next(
        (ts for ts in reversed(HALVINGS_UTC_MS) if ts <= now_ms),
        HALVINGS_UTC_MS[-1],
    )
    next_halving = max(NEXT_HALVING_ESTIMATE_UTC_MS, now_ms)

    if next_halving == last_halving:
        progress = 100.0
    else:
        progress = (now_ms - last_halving) / (next_halving - last_halving) * 100
        progress = max(0.0, min(100.0, progress))

    return CycleStats(
        days_since_last_halving=max(0, (now_ms - last_halving) // DAY_MS),
        days_to_next_halving=max(0, math.ceil((next_halving - now_ms) / DAY_MS)),
        cycle_progress_pct=progress,
        last_halving=last_halving,
        next_halving=next_halving,
    )
