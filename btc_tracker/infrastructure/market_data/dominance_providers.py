"""
Infrastructure adapters: global market endpoints → IDominanceProvider.
"""

import httpx

from btc_tracker.domain.entities.market_data import DominanceReading
from btc_tracker.domain.errors import ProviderError
from btc_tracker.domain.ports.market_data_port import IDominanceProvider
from btc_tracker.infrastructure.market_data.http_json import dig, finite_or_none, get_json


class CoinGeckoDominanceProvider(IDominanceProvider):
    name = "coingecko"
    URL = "https://api.coingecko.com/api/v3/global"

    def __init__(self, client: httpx.AsyncClient, timeout: float = 8.0) -> None:
        self._client = client
        self._timeout = timeout

    async def fetch_dominance(self) -> DominanceReading:
        data = await get_json(self._client, self.URL, timeout=self._timeout)
        value = finite_or_none(dig(data, "data", "market_cap_percentage", "btc"))
        if value is None:
            raise ProviderError("missing btc market cap percentage")
        return DominanceReading(value=value, source=self.name)


class CoinPaprikaDominanceProvider(IDominanceProvider):
    name = "coinpaprika"
    URL = "https://api.coinpaprika.com/v1/global"
    _FIELDS = ("bitcoin_dominance_percentage", "btc_dominance")

    def __init__(self, client: httpx.AsyncClient, timeout: float = 8.0) -> None:
        self._client = client
        self._timeout = timeout

    async def fetch_dominance(self) -> DominanceReading:
        data = await get_json(self._client, self.URL, timeout=self._timeout)
        for field in self._FIELDS:
            value = finite_or_none(dig(data, field))
            if value is not None and 0 <= value <= 100:
                return DominanceReading(value=value, source=self.name)
        raise ProviderError("missing bitcoin dominance percentage")
