"""
Ports (interfaces) for market-data providers.
Infrastructure adapters (e.g. CoinbaseSpotProvider, BinanceHistoryProvider)
must implement one of these interfaces.

Every provider exposes a stable ``name`` used as the source label and raises
ProviderError on any failure; the provider chain turns those into data.
"""

from abc import ABC, abstractmethod

from btc_tracker.domain.entities.market_data import (
    DominanceReading,
    PricePoint,
    SentimentPoint,
    SentimentReading,
    SpotQuote,
)
from btc_tracker.domain.entities.range_key import RangeKey


class ISpotPriceProvider(ABC):
    name: str

    @abstractmethod
    async def fetch_spot(self) -> SpotQuote:
        """Return the current BTC/USD price and, when known, its 24h change %."""
        ...


class IHistoryProvider(ABC):
    name: str

    @abstractmethod
    async def fetch_history(self, range_key: RangeKey) -> list[PricePoint]:
        """Return raw (unnormalized) price points covering *range_key*."""
        ...


class IDominanceProvider(ABC):
    name: str

    @abstractmethod
    async def fetch_dominance(self) -> DominanceReading:
        """Return BTC market-cap dominance in percent."""
        ...


class ISentimentProvider(ABC):
    name: str

    @abstractmethod
    async def fetch_current(self) -> SentimentReading: ...

    @abstractmethod
    async def fetch_history(self) -> list[SentimentPoint]:
        """Return the provider's full raw history; windowing is done by the caller."""
        ...
