"""
Infrastructure adapters: public chart endpoints → IHistoryProvider.

Adapters only map the vendor shape to raw PricePoints; deduplication,
plausibility filtering and sorting are done by the series normalizer inside
the provider chain.
"""

from typing import Callable

import httpx

from btc_tracker.domain.entities.market_data import PricePoint
from btc_tracker.domain.entities.range_key import RangeKey
from btc_tracker.domain.errors import ProviderError
from btc_tracker.domain.ports.market_data_port import IHistoryProvider
from btc_tracker.domain.services.clock import now_ms
from btc_tracker.infrastructure.market_data.http_json import dig, finite_or_none, get_json


def _to_points(pairs) -> list[PricePoint]:
    points = []
    for raw_t, raw_p in pairs:
        t, p = finite_or_none(raw_t), finite_or_none(raw_p)
        if t is None or p is None:
            continue
        points.append(PricePoint(t=int(t), p=p))
    return points


class CoinGeckoHistoryProvider(IHistoryProvider):
    name = "coingecko"
    URL = "https://api.coingecko.com/api/v3/coins/bitcoin/market_chart"

    def __init__(self, client: httpx.AsyncClient, timeout: float = 12.0) -> None:
        self._client = client
        self._timeout = timeout

    async def fetch_history(self, range_key: RangeKey) -> list[PricePoint]:
        params = {"vs_currency": "usd", "days": str(range_key.config.days)}
        data = await get_json(self._client, self.URL, params, self._timeout)
        prices = dig(data, "prices")
        if not isinstance(prices, list):
            raise ProviderError("malformed body: missing prices")
        return _to_points((dig(entry, 0), dig(entry, 1)) for entry in prices)


class BinanceHistoryProvider(IHistoryProvider):
    """Daily-to-15m klines; the close price of each candle becomes one point."""

    name = "binance"
    URL = "https://api.binance.com/api/v3/klines"

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float = 12.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._clock = clock

    async def fetch_history(self, range_key: RangeKey) -> list[PricePoint]:
        config = range_key.config
        params = {
            "symbol": "BTCUSDT",
            "interval": config.binance_interval,
            "limit": str(config.binance_limit),
        }
        data = await get_json(self._client, self.URL, params, self._timeout)
        if not isinstance(data, list):
            raise ProviderError("malformed body: expected kline list")

        now = self._clock()
        start = now - range_key.window_ms()
        return [
            point
            for point in _to_points((dig(kline, 0), dig(kline, 4)) for kline in data)
            if start <= point.t <= now
        ]
