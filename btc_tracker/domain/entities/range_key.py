"""
Domain entity for the lookback window selector shared by the chart, the
sentiment history and the provider query parameters.
Zero external dependencies: pure Python only.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

DAY_MS = 24 * 60 * 60 * 1000


class RangeKey(str, Enum):
    H24 = "24h"
    D7 = "7d"
    M1 = "1m"
    Y1 = "1y"
    Y5 = "5y"
    Y10 = "10y"

    @classmethod
    def parse(cls, value: Optional[str]) -> "RangeKey":
        """Parse a query-string value, falling back to 24h for anything unknown."""
        if not value:
            return cls.H24
        try:
            return cls(value)
        except ValueError:
            return cls.H24

    @property
    def config(self) -> "RangeConfig":
        return RANGE_CONFIG[self]

    def window_ms(self) -> int:
        return self.config.days * DAY_MS


@dataclass(frozen=True)
class RangeConfig:
    days: int
    fallback_points: int
    synthetic_points: int
    tick_count: int
    refresh_seconds: int
    binance_interval: str
    binance_limit: int


RANGE_CONFIG: dict[RangeKey, RangeConfig] = {
    RangeKey.H24: RangeConfig(1, 48, 48, 5, 60, "15m", 96),
    RangeKey.D7: RangeConfig(7, 84, 84, 4, 60, "1h", 168),
    RangeKey.M1: RangeConfig(30, 90, 120, 4, 600, "4h", 180),
    RangeKey.Y1: RangeConfig(365, 120, 120, 4, 600, "1d", 365),
    RangeKey.Y5: RangeConfig(365 * 5, 160, 120, 4, 600, "1w", 260),
    RangeKey.Y10: RangeConfig(365 * 10, 180, 120, 4, 600, "1w", 520),
}
