"""
Domain entities for values derived from a normalized price series.
Zero external dependencies: pure Python dataclasses only.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CrossKind(str, Enum):
    GOLDEN = "golden"
    DEATH = "death"


@dataclass(frozen=True)
class CrossSignal:
    kind: CrossKind
    index: int
    timestamp: int


@dataclass(frozen=True)
class DerivedMetrics:
    first: Optional[float]
    last: Optional[float]
    high: Optional[float]
    low: Optional[float]
    range_return_pct: Optional[float]
    volatility_pct: Optional[float]
    active_index: Optional[int]
    active_t: Optional[int]
    active_p: Optional[float]
    active_delta_pct: Optional[float]
    drawdown_from_high_pct: Optional[float]
    position_in_range_pct: Optional[float]
