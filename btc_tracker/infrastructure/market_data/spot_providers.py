"""
Infrastructure adapters: public ticker endpoints → ISpotPriceProvider.
Chain order (coinbase, kraken, coincap, coingecko) is decided at the
composition root, not here.
"""

from typing import Callable

import httpx

from btc_tracker.domain.entities.market_data import SpotQuote
from btc_tracker.domain.errors import ProviderError
from btc_tracker.domain.ports.market_data_port import ISpotPriceProvider
from btc_tracker.domain.services.clock import now_ms
from btc_tracker.infrastructure.market_data.http_json import dig, finite_or_none, get_json


class _HttpSpotProvider(ISpotPriceProvider):
    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float = 8.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._clock = clock

    def _quote(self, price, change_24h=None) -> SpotQuote:
        price = finite_or_none(price)
        if price is None:
            raise ProviderError("missing/invalid price")
        return SpotQuote(
            price=price,
            change_24h=finite_or_none(change_24h),
            source=self.name,
            ts=self._clock(),
        )


class CoinbaseSpotProvider(_HttpSpotProvider):
    name = "coinbase"
    URL = "https://api.coinbase.com/v2/prices/BTC-USD/spot"

    async def fetch_spot(self) -> SpotQuote:
        data = await get_json(self._client, self.URL, timeout=self._timeout)
        return self._quote(dig(data, "data", "amount"))


class KrakenSpotProvider(_HttpSpotProvider):
    name = "kraken"
    URL = "https://api.kraken.com/0/public/Ticker"

    async def fetch_spot(self) -> SpotQuote:
        data = await get_json(self._client, self.URL, {"pair": "XBTUSD"}, self._timeout)
        ticker = dig(data, "result", "XXBTZUSD")
        last = finite_or_none(dig(ticker, "c", 0))
        opening = finite_or_none(dig(ticker, "o"))
        change = None
        if last is not None and opening:
            change = (last - opening) / opening * 100
        return self._quote(last, change)


class CoinCapSpotProvider(_HttpSpotProvider):
    name = "coincap"
    URL = "https://api.coincap.io/v2/assets/bitcoin"

    async def fetch_spot(self) -> SpotQuote:
        data = await get_json(self._client, self.URL, timeout=self._timeout)
        asset = dig(data, "data")
        return self._quote(dig(asset, "priceUsd"), dig(asset, "changePercent24Hr"))


class CoinGeckoSpotProvider(_HttpSpotProvider):
    name = "coingecko"
    URL = "https://api.coingecko.com/api/v3/simple/price"

    async def fetch_spot(self) -> SpotQuote:
        params = {"ids": "bitcoin", "vs_currencies": "usd", "include_24hr_change": "true"}
        data = await get_json(self._client, self.URL, params, self._timeout)
        return self._quote(dig(data, "bitcoin", "usd"), dig(data, "bitcoin", "usd_24h_change"))
