"""
Use-case: halving-cycle position plus BTC dominance.
Dominance never fails the use-case; it degrades to an "unavailable" reading.
"""

from typing import Callable

from btc_tracker.application.services.provider_chain import ProviderChainExecutor
from btc_tracker.domain.entities.market_data import CycleSnapshot, ProviderResult
from btc_tracker.domain.services.clock import now_ms
from btc_tracker.domain.services.halving_cycle import compute_cycle_stats


class GetMarketCycleUseCase:
    def __init__(
        self, chain: ProviderChainExecutor, clock: Callable[[], int] = now_ms
    ) -> None:
        self._chain = chain
        self._clock = clock

    async def execute(self) -> ProviderResult[CycleSnapshot]:
        now = self._clock()
        dominance = await self._chain.fetch_dominance()
        return ProviderResult(
            ok=True,
            provider_name=dominance.source,
            data=CycleSnapshot(
                cycle=compute_cycle_stats(now),
                dominance=dominance.data,
                ts=now,
            ),
            failures=dominance.failures,
        )
