"""
Use-cases: current Fear & Greed reading and its history for a window.
"""

from typing import Union

from btc_tracker.application.services.provider_chain import ProviderChainExecutor
from btc_tracker.domain.entities.market_data import (
    ProviderResult,
    SentimentReading,
    SentimentSeries,
)
from btc_tracker.domain.entities.range_key import RangeKey


class GetSentimentUseCase:
    def __init__(self, chain: ProviderChainExecutor) -> None:
        self._chain = chain

    async def execute(self) -> ProviderResult[SentimentReading]:
        return await self._chain.fetch_sentiment()


class GetSentimentHistoryUseCase:
    def __init__(self, chain: ProviderChainExecutor) -> None:
        self._chain = chain

    async def execute(
        self, range_key: Union[RangeKey, str, None] = None
    ) -> ProviderResult[SentimentSeries]:
        if not isinstance(range_key, RangeKey):
            range_key = RangeKey.parse(range_key)
        return await self._chain.fetch_sentiment_history(range_key)
