"""
Use-case: chart analytics for the selected range.

Fetches the history through the chain (or takes a series the caller already
holds), resolves an optional hover timestamp (or a horizontal pointer fraction over
the chart) to the nearest point, and
projects the derived metrics, moving averages, cross signal and axis ticks.
"""

from dataclasses import dataclass
from typing import Optional, Union

from btc_tracker.application.services.provider_chain import ProviderChainExecutor
from btc_tracker.domain.entities.analytics import CrossSignal, DerivedMetrics
from btc_tracker.domain.entities.market_data import PriceSeries, ProviderResult
from btc_tracker.domain.entities.range_key import RangeKey
from btc_tracker.domain.services.derived_metrics import (
    MA_LONG_PERIOD,
    MA_SHORT_PERIOD,
    axis_ticks,
    compute_derived_metrics,
    find_latest_cross,
    latest_defined,
    moving_average,
    value_ticks,
)
from btc_tracker.domain.services.nearest_point import locate, target_from_fraction


@dataclass(frozen=True)
class ChartAnalytics:
    series: PriceSeries
    metrics: DerivedMetrics
    ma_short: list[Optional[float]]
    ma_long: list[Optional[float]]
    ma_short_latest: Optional[float]
    ma_long_latest: Optional[float]
    cross: Optional[CrossSignal]
    x_ticks: list[float]
    y_ticks: list[float]


class GetChartAnalyticsUseCase:
    def __init__(self, chain: ProviderChainExecutor) -> None:
        self._chain = chain

    async def execute(
        self,
        range_key: Union[RangeKey, str, None] = None,
        at_ts: Optional[float] = None,
        last_spot_price: Optional[float] = None,
        fraction: Optional[float] = None,
    ) -> ProviderResult[ChartAnalytics]:
        if not isinstance(range_key, RangeKey):
            range_key = RangeKey.parse(range_key)
        history = await self._chain.fetch_history(range_key, last_spot_price)
        if not history.ok or history.data is None:
            return ProviderResult(
                ok=False,
                provider_name=history.provider_name,
                error_message=history.error_message,
                failures=history.failures,
            )
        return ProviderResult(
            ok=True,
            provider_name=history.provider_name,
            data=self.analyze(history.data, at_ts, fraction),
            failures=history.failures,
        )

    @staticmethod
    def analyze(
        series: PriceSeries,
        at_ts: Optional[float] = None,
        fraction: Optional[float] = None,
    ) -> ChartAnalytics:
        """Project *series* into chart analytics.

        *at_ts* selects the hover point; without it, *fraction* (0 = left edge,
        1 = right edge) is mapped onto the series time span first.
        """
        points = series.points
        if at_ts is None and fraction is not None:
            at_ts = target_from_fraction(points, fraction)
        hover_index = locate(points, at_ts) if at_ts is not None else None
        ma_short = moving_average(points, MA_SHORT_PERIOD)
        ma_long = moving_average(points, MA_LONG_PERIOD)
        metrics = compute_derived_metrics(points, hover_index)

        x_ticks: list[float] = []
        y_ticks: list[float] = []
        if points:
            x_ticks = axis_ticks(points[0].t, points[-1].t, series.range_key.config.tick_count)
        if metrics.high is not None and metrics.low is not None:
            y_ticks = value_ticks(metrics.high, metrics.low)

        return ChartAnalytics(
            series=series,
            metrics=metrics,
            ma_short=ma_short,
            ma_long=ma_long,
            ma_short_latest=latest_defined(ma_short),
            ma_long_latest=latest_defined(ma_long),
            cross=find_latest_cross([pt.t for pt in points], ma_short, ma_long),
            x_ticks=x_ticks,
            y_ticks=y_ticks,
        )
