"""
Infrastructure adapter: alternative.me Fear & Greed index → ISentimentProvider.
The API reports timestamps in seconds; points are converted to epoch millis.
"""

from typing import Callable

import httpx

from btc_tracker.domain.entities.market_data import SentimentPoint, SentimentReading
from btc_tracker.domain.errors import ProviderError
from btc_tracker.domain.ports.market_data_port import ISentimentProvider
from btc_tracker.domain.services.clock import now_ms
from btc_tracker.infrastructure.market_data.http_json import dig, finite_or_none, get_json


class AlternativeMeSentimentProvider(ISentimentProvider):
    name = "alternative.me"
    URL = "https://api.alternative.me/fng/"

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float = 12.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._clock = clock

    async def fetch_current(self) -> SentimentReading:
        data = await get_json(
            self._client, self.URL, {"limit": "1", "format": "json"}, self._timeout
        )
        item = dig(data, "data", 0)
        if not isinstance(item, dict):
            raise ProviderError("malformed body: missing data")
        timestamp = finite_or_none(item.get("timestamp"))
        return SentimentReading(
            value=finite_or_none(item.get("value")),
            label=item.get("value_classification"),
            timestamp=int(timestamp) if timestamp is not None else None,
            source=self.name,
            ts=self._clock(),
        )

    async def fetch_history(self) -> list[SentimentPoint]:
        data = await get_json(
            self._client, self.URL, {"limit": "0", "format": "json"}, self._timeout
        )
        items = dig(data, "data")
        if not isinstance(items, list):
            raise ProviderError("malformed body: missing data")

        points = []
        for item in items:
            seconds = finite_or_none(dig(item, "timestamp"))
            value = finite_or_none(dig(item, "value"))
            if seconds is None or value is None:
                continue
            points.append(SentimentPoint(t=int(seconds) * 1000, v=value))
        return points
