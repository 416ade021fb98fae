"""
Domain entities for market data: time-series points, series, spot quotes,
sentiment readings and the uniform provider result.
Zero external dependencies: pure Python dataclasses only.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from btc_tracker.domain.entities.range_key import RangeKey
from btc_tracker.domain.errors import ChainExhaustedError

T = TypeVar("T")

SPOT_FALLBACK_SOURCE = "spot-fallback"
SYNTHETIC_SOURCE = "synthetic"
UNAVAILABLE_SOURCE = "unavailable"
DEGRADED_SOURCES = frozenset({SPOT_FALLBACK_SOURCE, SYNTHETIC_SOURCE})


@dataclass(frozen=True)
class PricePoint:
    t: int
    p: float


@dataclass(frozen=True)
class SentimentPoint:
    t: int
    v: float


@dataclass(frozen=True)
class PriceSeries:
    range_key: RangeKey
    source: str
    fetched_at_ms: int
    points: tuple[PricePoint, ...]

    @property
    def is_degraded(self) -> bool:
        return self.source in DEGRADED_SOURCES


@dataclass(frozen=True)
class SentimentSeries:
    range_key: RangeKey
    source: str
    fetched_at_ms: int
    points: tuple[SentimentPoint, ...]

    @property
    def is_degraded(self) -> bool:
        return self.source in DEGRADED_SOURCES


@dataclass(frozen=True)
class SpotQuote:
    price: float
    change_24h: Optional[float]
    source: str
    ts: int


@dataclass(frozen=True)
class SentimentReading:
    value: Optional[float]
    label: Optional[str]
    timestamp: Optional[int]
    source: str
    ts: int


@dataclass(frozen=True)
class DominanceReading:
    value: Optional[float]
    source: str


@dataclass(frozen=True)
class CycleStats:
    days_since_last_halving: int
    days_to_next_halving: int
    cycle_progress_pct: float
    last_halving: int
    next_halving: int


@dataclass(frozen=True)
class CycleSnapshot:
    cycle: CycleStats
    dominance: DominanceReading
    ts: int


@dataclass(frozen=True)
class ProviderFailure:
    provider_name: str
    error_message: str


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    """Outcome of one provider attempt or of a whole chain.

    failures holds, in chain order, every attempt that failed before this
    result was produced. A failed chain carries one entry per provider.
    """

    ok: bool
    provider_name: str
    data: Optional[T] = None
    error_message: Optional[str] = None
    failures: tuple[ProviderFailure, ...] = field(default_factory=tuple)

    @property
    def source(self) -> str:
        return self.provider_name

    def unwrap(self) -> T:
        if not self.ok or self.data is None:
            raise ChainExhaustedError(self.error_message or "no data", self.failures)
        return self.data

    def error_reasons(self) -> list[dict[str, Any]]:
        return [
            {"provider": f.provider_name, "error": f.error_message}
            for f in self.failures
        ]
