"""
Use-case: normalized BTC price history for a lookback window.
Depends only on the provider chain and Domain entities; no infrastructure imports.
"""

from typing import Optional, Union

from btc_tracker.application.services.provider_chain import ProviderChainExecutor
from btc_tracker.domain.entities.market_data import PriceSeries, ProviderResult
from btc_tracker.domain.entities.range_key import RangeKey


class GetPriceHistoryUseCase:
    def __init__(self, chain: ProviderChainExecutor) -> None:
        self._chain = chain

    async def execute(
        self,
        range_key: Union[RangeKey, str, None] = None,
        last_spot_price: Optional[float] = None,
    ) -> ProviderResult[PriceSeries]:
        """Fetch the history for *range_key* (unknown values mean 24h).

        Args:
            range_key:       RangeKey or its string value.
            last_spot_price: Known spot price for the spot-fallback synthesizer.

        Returns:
            A ProviderResult whose data is real history or, when every history
            provider failed, a flat series tagged "spot-fallback". ok=False only
            when no spot price could be obtained either.
        """
        if not isinstance(range_key, RangeKey):
            range_key = RangeKey.parse(range_key)
        return await self._chain.fetch_history(range_key, last_spot_price)
