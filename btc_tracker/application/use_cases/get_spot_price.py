"""
Use-case: current BTC/USD spot price from the first healthy quote provider.
Depends only on the provider chain and Domain entities; no infrastructure imports.
"""

from btc_tracker.application.services.provider_chain import ProviderChainExecutor
from btc_tracker.domain.entities.market_data import ProviderResult, SpotQuote


class GetSpotPriceUseCase:
    def __init__(self, chain: ProviderChainExecutor) -> None:
        self._chain = chain

    async def execute(self) -> ProviderResult[SpotQuote]:
        """Run the spot chain. The result is ok=False when every provider failed."""
        return await self._chain.fetch_spot()
