"""
Infrastructure adapter: yfinance → IHistoryProvider.
All yfinance-specific details (Ticker.history(), DataFrame rows) are confined
here; the rest of the codebase depends only on IHistoryProvider.

yfinance is blocking, so the download runs in a worker thread. The chain's
timeout abandons the thread's result rather than interrupting it.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable

import yfinance as yf

from btc_tracker.domain.entities.market_data import PricePoint
from btc_tracker.domain.entities.range_key import RangeKey
from btc_tracker.domain.errors import ProviderError
from btc_tracker.domain.ports.market_data_port import IHistoryProvider
from btc_tracker.domain.services.clock import now_ms


class YFinanceHistoryProvider(IHistoryProvider):
    """Fetches BTC-USD candles from Yahoo Finance via the yfinance library."""

    name = "yahoo"
    SYMBOL = "BTC-USD"
    _INTERVALS = {
        RangeKey.H24: "15m",
        RangeKey.D7: "1h",
        RangeKey.M1: "1h",
        RangeKey.Y1: "1d",
        RangeKey.Y5: "1wk",
        RangeKey.Y10: "1wk",
    }

    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock

    async def fetch_history(self, range_key: RangeKey) -> list[PricePoint]:
        return await asyncio.to_thread(self._download, range_key)

    def _download(self, range_key: RangeKey) -> list[PricePoint]:
        end_ms = self._clock()
        start_ms = end_ms - range_key.window_ms()
        try:
            history = yf.Ticker(self.SYMBOL).history(
                start=datetime.fromtimestamp(start_ms / 1000, tz=timezone.utc),
                end=datetime.fromtimestamp(end_ms / 1000, tz=timezone.utc),
                interval=self._INTERVALS[range_key],
            )
        except Exception as exc:
            raise ProviderError(f"yfinance error: {exc}") from exc

        if history is None or history.empty or "Close" not in history:
            raise ProviderError(f"No historical data available for {self.SYMBOL!r}")

        return [
            PricePoint(t=int(stamp.timestamp() * 1000), p=float(row["Close"]))
            for stamp, row in history.iterrows()
        ]
