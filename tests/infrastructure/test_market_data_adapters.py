import httpx
import pandas as pd
import pytest

from btc_tracker.domain.entities.range_key import DAY_MS, RangeKey
from btc_tracker.domain.errors import ProviderError
from btc_tracker.infrastructure.market_data import yfinance_adapter
from btc_tracker.infrastructure.market_data.dominance_providers import (
    CoinGeckoDominanceProvider,
    CoinPaprikaDominanceProvider,
)
from btc_tracker.infrastructure.market_data.history_providers import (
    BinanceHistoryProvider,
    CoinGeckoHistoryProvider,
)
from btc_tracker.infrastructure.market_data.http_json import dig, finite_or_none, get_json
from btc_tracker.infrastructure.market_data.sentiment_provider import (
    AlternativeMeSentimentProvider,
)
from btc_tracker.infrastructure.market_data.spot_providers import (
    CoinbaseSpotProvider,
    CoinCapSpotProvider,
    CoinGeckoSpotProvider,
    KrakenSpotProvider,
)
from btc_tracker.infrastructure.market_data.yfinance_adapter import YFinanceHistoryProvider
from tests.mocks.fake_providers import NOW_MS, fixed_clock


def client_for(routes: dict):
    """AsyncClient whose responses come from a {host+path: json or Response} map."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = routes.get(request.url.host + request.url.path)
        if body is None:
            return httpx.Response(404)
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json=body)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client.seen = seen
    return client


# ------------------------------------------------------------------
# http_json helpers
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_json_maps_status_and_body_errors():
    client = client_for({
        "a.test/bad": httpx.Response(503),
        "a.test/html": httpx.Response(200, text="<html>"),
    })
    with pytest.raises(ProviderError, match="HTTP 503"):
        await get_json(client, "https://a.test/bad")
    with pytest.raises(ProviderError, match="malformed JSON body"):
        await get_json(client, "https://a.test/html")


@pytest.mark.asyncio
async def test_get_json_maps_transport_errors():
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    with pytest.raises(ProviderError, match="timeout after 2s"):
        await get_json(client, "https://a.test/x", timeout=2)


def test_dig_and_finite_helpers():
    data = {"a": [{"b": "1.5"}]}
    assert dig(data, "a", 0, "b") == "1.5"
    assert dig(data, "a", 3, "b") is None
    assert dig(None, "a") is None
    assert finite_or_none("1.5") == 1.5
    assert finite_or_none("nan") is None
    assert finite_or_none(True) is None


# ------------------------------------------------------------------
# Spot
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_coinbase_spot():
    client = client_for({"api.coinbase.com/v2/prices/BTC-USD/spot": {"data": {"amount": "64123.45"}}})
    quote = await CoinbaseSpotProvider(client, clock=fixed_clock).fetch_spot()
    assert quote.price == 64123.45
    assert quote.change_24h is None
    assert quote.source == "coinbase"
    assert quote.ts == NOW_MS


@pytest.mark.asyncio
async def test_kraken_spot_derives_change_from_open():
    body = {"result": {"XXBTZUSD": {"c": ["66000.0", "0.1"], "o": "60000.0"}}}
    client = client_for({"api.kraken.com/0/public/Ticker": body})
    quote = await KrakenSpotProvider(client).fetch_spot()
    assert quote.price == 66000.0
    assert quote.change_24h == pytest.approx(10.0)
    assert client.seen[0].url.params["pair"] == "XBTUSD"


@pytest.mark.asyncio
async def test_coincap_and_coingecko_spot():
    client = client_for({
        "api.coincap.io/v2/assets/bitcoin": {"data": {"priceUsd": "63000.1", "changePercent24Hr": "-1.2"}},
        "api.coingecko.com/api/v3/simple/price": {"bitcoin": {"usd": 63001, "usd_24h_change": 0.4}},
    })
    coincap = await CoinCapSpotProvider(client).fetch_spot()
    gecko = await CoinGeckoSpotProvider(client).fetch_spot()
    assert (coincap.price, coincap.change_24h) == (63000.1, -1.2)
    assert (gecko.price, gecko.change_24h) == (63001.0, 0.4)


@pytest.mark.asyncio
async def test_spot_missing_price_is_provider_error():
    client = client_for({"api.coinbase.com/v2/prices/BTC-USD/spot": {"data": {}}})
    with pytest.raises(ProviderError, match="missing/invalid price"):
        await CoinbaseSpotProvider(client).fetch_spot()


# ------------------------------------------------------------------
# History
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_coingecko_history_maps_pairs():
    body = {"prices": [[1000, 60000.5], [2000, None], [3000, 60100]]}
    client = client_for({"api.coingecko.com/api/v3/coins/bitcoin/market_chart": body})
    points = await CoinGeckoHistoryProvider(client).fetch_history(RangeKey.D7)
    assert [(pt.t, pt.p) for pt in points] == [(1000, 60000.5), (3000, 60100.0)]
    assert client.seen[0].url.params["days"] == "7"


@pytest.mark.asyncio
async def test_coingecko_history_without_prices_fails():
    client = client_for({"api.coingecko.com/api/v3/coins/bitcoin/market_chart": {"error": "rate"}})
    with pytest.raises(ProviderError):
        await CoinGeckoHistoryProvider(client).fetch_history(RangeKey.H24)


@pytest.mark.asyncio
async def test_binance_history_uses_close_and_window():
    inside = NOW_MS - 3600_000
    too_old = NOW_MS - 2 * DAY_MS
    body = [
        [too_old, "1", "1", "1", "59000.0", "0"],
        [inside, "1", "1", "1", "61000.0", "0"],
    ]
    client = client_for({"api.binance.com/api/v3/klines": body})
    points = await BinanceHistoryProvider(client, clock=fixed_clock).fetch_history(RangeKey.H24)
    assert [(pt.t, pt.p) for pt in points] == [(inside, 61000.0)]
    params = client.seen[0].url.params
    assert (params["interval"], params["limit"]) == ("15m", "96")


@pytest.mark.asyncio
async def test_yfinance_history_runs_download(monkeypatch):
    frame = pd.DataFrame(
        {"Close": [60000.0, 60500.0]},
        index=pd.to_datetime([NOW_MS - 7200_000, NOW_MS - 3600_000], unit="ms", utc=True),
    )

    class FakeTicker:
        def __init__(self, symbol):
            assert symbol == "BTC-USD"

        def history(self, start, end, interval):
            assert interval == "1h"
            return frame

    monkeypatch.setattr(yfinance_adapter.yf, "Ticker", FakeTicker)
    points = await YFinanceHistoryProvider(clock=fixed_clock).fetch_history(RangeKey.D7)
    assert [(pt.t, pt.p) for pt in points] == [(NOW_MS - 7200_000, 60000.0), (NOW_MS - 3600_000, 60500.0)]


@pytest.mark.asyncio
async def test_yfinance_empty_frame_is_provider_error(monkeypatch):
    class EmptyTicker:
        def __init__(self, symbol):
            pass

        def history(self, **kwargs):
            return pd.DataFrame()

    monkeypatch.setattr(yfinance_adapter.yf, "Ticker", EmptyTicker)
    with pytest.raises(ProviderError, match="No historical data"):
        await YFinanceHistoryProvider(clock=fixed_clock).fetch_history(RangeKey.H24)


# ------------------------------------------------------------------
# Dominance and sentiment
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_dominance_providers():
    client = client_for({
        "api.coingecko.com/api/v3/global": {"data": {"market_cap_percentage": {"btc": 54.1}}},
        "api.coinpaprika.com/v1/global": {"bitcoin_dominance_percentage": 53.9},
    })
    assert (await CoinGeckoDominanceProvider(client).fetch_dominance()).value == 54.1
    reading = await CoinPaprikaDominanceProvider(client).fetch_dominance()
    assert (reading.value, reading.source) == (53.9, "coinpaprika")


@pytest.mark.asyncio
async def test_paprika_without_dominance_fails():
    client = client_for({"api.coinpaprika.com/v1/global": {"market_cap_usd": 1}})
    with pytest.raises(ProviderError):
        await CoinPaprikaDominanceProvider(client).fetch_dominance()


@pytest.mark.asyncio
async def test_alternative_me_current_and_history():
    body = {
        "data": [
            {"value": "72", "value_classification": "Greed", "timestamp": "1700000000"},
            {"value": "bad", "timestamp": "1699913600"},
            {"value": "40", "value_classification": "Fear", "timestamp": "1699827200"},
        ]
    }
    client = client_for({"api.alternative.me/fng/": body})
    provider = AlternativeMeSentimentProvider(client, clock=fixed_clock)

    reading = await provider.fetch_current()
    assert (reading.value, reading.label, reading.timestamp) == (72.0, "Greed", 1700000000)
    assert client.seen[0].url.params["limit"] == "1"

    points = await provider.fetch_history()
    assert [(pt.t, pt.v) for pt in points] == [(1700000000000, 72.0), (1699827200000, 40.0)]
    assert client.seen[1].url.params["limit"] == "0"
