"""
JSON shapes served to the dashboard client.
Field names follow the client's camelCase contract; the domain stays snake_case.
"""

from typing import Any, Optional

from btc_tracker.application.services.polling_controller import MetricSnapshot
from btc_tracker.application.use_cases.get_chart_analytics import ChartAnalytics
from btc_tracker.domain.entities.journal import JournalEntry
from btc_tracker.domain.entities.market_data import (
    CycleSnapshot,
    PriceSeries,
    ProviderResult,
    SentimentReading,
    SentimentSeries,
    SpotQuote,
)
from btc_tracker.domain.services.derived_metrics import (
    SENTIMENT_Y_TICKS,
    conviction_label,
    sentiment_strength,
    sentiment_zone,
)


def failure_body(result: ProviderResult, **extra: Any) -> dict:
    return {"error": result.error_message, **extra, "providers": result.error_reasons()}


def spot_body(quote: SpotQuote) -> dict:
    return {
        "price": quote.price,
        "change24h": quote.change_24h,
        "source": quote.source,
        "ts": quote.ts,
    }


def price_series_body(series: PriceSeries) -> dict:
    return {
        "range": series.range_key.value,
        "source": series.source,
        "points": [{"t": pt.t, "p": pt.p} for pt in series.points],
        "ts": series.fetched_at_ms,
    }


def sentiment_body(reading: SentimentReading) -> dict:
    strength = sentiment_strength(reading.value)
    return {
        "value": reading.value,
        "label": reading.label,
        "timestamp": reading.timestamp,
        "source": reading.source,
        "zone": sentiment_zone(reading.value),
        "strength": strength,
        "conviction": conviction_label(strength),
        "ts": reading.ts,
    }


def sentiment_series_body(series: SentimentSeries) -> dict:
    return {
        "range": series.range_key.value,
        "source": series.source,
        "points": [{"t": pt.t, "v": pt.v} for pt in series.points],
        "yTicks": list(SENTIMENT_Y_TICKS),
        "ts": series.fetched_at_ms,
    }


def cycle_body(snapshot: CycleSnapshot) -> dict:
    cycle = snapshot.cycle
    return {
        "daysToNextHalving": cycle.days_to_next_halving,
        "daysSinceLastHalving": cycle.days_since_last_halving,
        "cycleProgressPct": cycle.cycle_progress_pct,
        "lastHalving": cycle.last_halving,
        "nextHalving": cycle.next_halving,
        "btcDominance": snapshot.dominance.value,
        "dominanceSource": snapshot.dominance.source,
        "ts": snapshot.ts,
    }


def analytics_body(analytics: ChartAnalytics) -> dict:
    m = analytics.metrics
    cross = analytics.cross
    return {
        "range": analytics.series.range_key.value,
        "source": analytics.series.source,
        "degraded": analytics.series.is_degraded,
        "first": m.first,
        "last": m.last,
        "high": m.high,
        "low": m.low,
        "rangeReturnPct": m.range_return_pct,
        "volatilityPct": m.volatility_pct,
        "active": {
            "index": m.active_index,
            "t": m.active_t,
            "p": m.active_p,
            "deltaPct": m.active_delta_pct,
            "drawdownFromHighPct": m.drawdown_from_high_pct,
            "positionInRangePct": m.position_in_range_pct,
        },
        "ma50": analytics.ma_short_latest,
        "ma200": analytics.ma_long_latest,
        "cross": (
            None
            if cross is None
            else {"kind": cross.kind.value, "index": cross.index, "t": cross.timestamp}
        ),
        "xTicks": analytics.x_ticks,
        "yTicks": analytics.y_ticks,
    }


def _data_body(data: Any) -> Optional[dict]:
    if isinstance(data, SpotQuote):
        return spot_body(data)
    if isinstance(data, PriceSeries):
        return price_series_body(data)
    if isinstance(data, SentimentReading):
        return sentiment_body(data)
    if isinstance(data, SentimentSeries):
        return sentiment_series_body(data)
    if isinstance(data, CycleSnapshot):
        return cycle_body(data)
    return None


def snapshot_body(snapshot: MetricSnapshot) -> dict:
    return {
        "ok": snapshot.ok,
        "data": _data_body(snapshot.data),
        "source": snapshot.source,
        "fetchedAt": snapshot.fetched_at_ms,
        "stale": snapshot.stale is not None,
        "degraded": snapshot.degraded,
        "errorReasons": [
            {"provider": f.provider_name, "error": f.error_message}
            for f in snapshot.error_reasons
        ],
    }


def journal_entry_body(entry: JournalEntry) -> dict:
    return {
        "id": entry.id,
        "createdAt": entry.created_at,
        "date": entry.date,
        "kind": entry.kind.value,
        "chain": entry.chain,
        "protocol": entry.protocol,
        "title": entry.title,
        "notes": entry.notes,
        "amount": entry.amount,
        "token": entry.token,
        "intensity": entry.intensity.value,
    }
