from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from btc_tracker.application.services.provider_chain import ProviderChainExecutor
from btc_tracker.application.use_cases.authenticate_user import AuthenticateUserUseCase
from btc_tracker.application.use_cases.generate_headline import (
    GenerateHeadlineUseCase,
    MarketSummary,
    extract_text,
)
from btc_tracker.application.use_cases.get_chart_analytics import GetChartAnalyticsUseCase
from btc_tracker.application.use_cases.get_market_cycle import GetMarketCycleUseCase
from btc_tracker.application.use_cases.get_price_history import GetPriceHistoryUseCase
from btc_tracker.application.use_cases.manage_journal import (
    AddJournalEntryUseCase,
    DeleteJournalEntryUseCase,
    ListJournalEntriesUseCase,
)
from btc_tracker.domain.entities.analytics import CrossKind
from btc_tracker.domain.entities.journal import Intensity, JournalEntry, JournalKind
from btc_tracker.domain.entities.market_data import PricePoint, PriceSeries
from btc_tracker.domain.entities.range_key import RangeKey
from btc_tracker.domain.errors import HeadlineUnavailableError
from btc_tracker.domain.ports.llm_port import ILanguageModel
from btc_tracker.domain.ports.observability_port import IObservabilityHandler
from tests.mocks.fake_providers import (
    NOW_MS,
    FakeDominanceProvider,
    FakeHistoryProvider,
    FakeSpotProvider,
    fixed_clock,
    history_points,
)
from tests.mocks.fake_journal import InMemoryJournalRepository


class StubLanguageModel(ILanguageModel):
    model_id = "stub-model"

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.messages = None
        self.config = None

    def invoke(self, messages, config=None):
        self.messages = messages
        self.config = config
        if self.error:
            raise self.error
        return self.response


class StubObservability(IObservabilityHandler):
    def __init__(self):
        self.callback = object()
        self.flushed = 0

    def as_callback(self):
        return self.callback

    def flush(self):
        self.flushed += 1


def chain_with_history(points=None):
    return ProviderChainExecutor(
        spot_providers=[FakeSpotProvider("coinbase", price=60_000.0)],
        history_providers=[FakeHistoryProvider("coingecko", points=points)],
        dominance_providers=[FakeDominanceProvider("coingecko", 55.0)],
        clock=fixed_clock,
    )


# ------------------------------------------------------------------
# Authentication
# ------------------------------------------------------------------


def test_login_issues_token_for_matching_credentials():
    tokens = MagicMock()
    tokens.issue.return_value = "signed"
    uc = AuthenticateUserUseCase("chris", "buggles", tokens)

    assert uc.execute("  chris ", "buggles") == "signed"
    tokens.issue.assert_called_once_with("chris")


@pytest.mark.parametrize("username,password", [("chris", "wrong"), ("eve", "buggles"), ("", "")])
def test_login_rejects_bad_credentials(username, password):
    tokens = MagicMock()
    uc = AuthenticateUserUseCase("chris", "buggles", tokens)
    with pytest.raises(ValueError, match="Invalid username or password"):
        uc.execute(username, password)
    tokens.issue.assert_not_called()


# ------------------------------------------------------------------
# History, analytics, cycle
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_price_history_accepts_raw_range_strings():
    uc = GetPriceHistoryUseCase(chain_with_history(history_points(5)))
    result = await uc.execute("bogus")
    assert result.ok
    assert result.data.range_key is RangeKey.H24


@pytest.mark.asyncio
async def test_chart_analytics_uses_hover_timestamp():
    points = history_points(10)
    uc = GetChartAnalyticsUseCase(chain_with_history(points))

    result = await uc.execute(RangeKey.D7, at_ts=points[3].t + 1)

    assert result.ok
    analytics = result.data
    assert analytics.metrics.active_index == 3
    assert analytics.metrics.active_p == points[3].p
    assert analytics.ma_short_latest is None
    assert analytics.cross is None
    assert len(analytics.x_ticks) == RangeKey.D7.config.tick_count
    assert analytics.y_ticks[0] == analytics.metrics.high


@pytest.mark.asyncio
async def test_chart_analytics_maps_pointer_fraction_to_nearest_point():
    points = history_points(10)
    uc = GetChartAnalyticsUseCase(chain_with_history(points))

    right_edge = await uc.execute(RangeKey.H24, fraction=1.0)
    past_left_edge = await uc.execute(RangeKey.H24, fraction=-0.5)
    explicit_wins = await uc.execute(RangeKey.H24, at_ts=points[4].t, fraction=1.0)

    assert right_edge.data.metrics.active_index == 9
    assert past_left_edge.data.metrics.active_index == 0
    assert explicit_wins.data.metrics.active_index == 4


@pytest.mark.asyncio
async def test_chart_analytics_on_spot_fallback_is_flat():
    uc = GetChartAnalyticsUseCase(chain_with_history(None))
    result = await uc.execute(RangeKey.H24)

    assert result.ok
    assert result.data.series.is_degraded
    assert result.data.metrics.range_return_pct == 0.0
    assert result.data.metrics.position_in_range_pct is None


def test_analyze_reports_golden_cross():
    prices = [100.0] * 200 + [90.0] * 60 + [150.0] * 60
    series = PriceSeries(
        range_key=RangeKey.Y1,
        source="coingecko",
        fetched_at_ms=NOW_MS,
        points=tuple(PricePoint(t=idx, p=p) for idx, p in enumerate(prices)),
    )
    analytics = GetChartAnalyticsUseCase.analyze(series)
    assert analytics.cross is not None
    assert analytics.cross.kind is CrossKind.GOLDEN
    assert analytics.ma_short_latest == pytest.approx(150.0)


@pytest.mark.asyncio
async def test_market_cycle_carries_dominance():
    uc = GetMarketCycleUseCase(chain_with_history(), clock=fixed_clock)
    result = await uc.execute()
    assert result.ok
    assert result.data.dominance.value == 55.0
    assert result.data.ts == NOW_MS
    assert result.data.cycle.cycle_progress_pct > 0


@pytest.mark.asyncio
async def test_market_cycle_survives_missing_dominance():
    chain = ProviderChainExecutor([], [], [FakeDominanceProvider("coingecko")], clock=fixed_clock)
    result = await GetMarketCycleUseCase(chain, clock=fixed_clock).execute()
    assert result.ok
    assert result.data.dominance.source == "unavailable"


# ------------------------------------------------------------------
# Headline
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_headline_without_model_is_demo():
    uc = GenerateHeadlineUseCase(clock=fixed_clock)
    headline = await uc.execute(MarketSummary(price=60_000, daily_change_pct=2.0, sentiment_label="Greed"))
    assert headline.model == "demo"
    assert "positive momentum" in headline.text
    assert "greed" in headline.text


@pytest.mark.asyncio
async def test_headline_uses_model_text():
    llm = StubLanguageModel(response=AIMessage(content="  BTC grinds higher as greed builds.  "))
    uc = GenerateHeadlineUseCase(llm, clock=fixed_clock)

    headline = await uc.execute(MarketSummary(price=61_000))

    assert headline.text == "BTC grinds higher as greed builds."
    assert headline.model == "stub-model"
    assert isinstance(llm.messages[0], SystemMessage)
    assert isinstance(llm.messages[1], HumanMessage)
    assert "61000" in llm.messages[1].content
    assert llm.config is None


@pytest.mark.asyncio
async def test_headline_call_carries_tracing_callback():
    llm = StubLanguageModel(response=AIMessage(content="BTC steadies."))
    tracing = StubObservability()
    uc = GenerateHeadlineUseCase(llm, clock=fixed_clock, observability=tracing)

    await uc.execute(MarketSummary(price=61_000), user_id="chris")

    assert llm.config["callbacks"] == [tracing.callback]
    assert llm.config["metadata"] == {
        "langfuse_user_id": "chris",
        "langfuse_tags": ["btc-headline"],
    }


@pytest.mark.asyncio
async def test_headline_model_failure_raises():
    uc = GenerateHeadlineUseCase(StubLanguageModel(error=RuntimeError("throttled")))
    with pytest.raises(HeadlineUnavailableError):
        await uc.execute(MarketSummary())


@pytest.mark.asyncio
async def test_headline_empty_response_raises():
    uc = GenerateHeadlineUseCase(StubLanguageModel(response=AIMessage(content="")))
    with pytest.raises(HeadlineUnavailableError):
        await uc.execute(MarketSummary())


def test_extract_text_from_content_blocks():
    message = AIMessage(content=[{"type": "text", "text": ""}, {"type": "text", "text": "Hello"}])
    assert extract_text(message) == "Hello"
    assert extract_text("plain") == "plain"
    assert extract_text(AIMessage(content="   ")) is None


# ------------------------------------------------------------------
# Journal
# ------------------------------------------------------------------


def test_add_journal_entry_normalizes_fields():
    repo = InMemoryJournalRepository()
    uc = AddJournalEntryUseCase(repo, clock=fixed_clock, id_factory=lambda: "ab12c")

    entry = uc.execute("chris", {
        "title": "  LP on Aerodrome ",
        "notes": "cbBTC/USDC",
        "kind": "liquidity",
        "amount": 0.25,
        "token": " cbbtc ",
        "intensity": "extreme",
    })

    assert entry.id == f"{NOW_MS}-ab12c"
    assert entry.created_at == "2023-11-14T22:13:20.000Z"
    assert entry.title == "LP on Aerodrome"
    assert entry.kind is JournalKind.LIQUIDITY
    assert entry.amount == "0.25"
    assert entry.token == "CBBTC"
    assert entry.intensity is Intensity.MEDIUM
    assert repo.users["chris"] == [entry]


@pytest.mark.parametrize("fields", [{}, {"title": "x"}, {"title": "  ", "notes": "y"}])
def test_add_journal_entry_requires_title_and_notes(fields):
    repo = InMemoryJournalRepository()
    with pytest.raises(ValueError, match="Title and notes are required"):
        AddJournalEntryUseCase(repo, clock=fixed_clock).execute("chris", fields)
    assert repo.users == {}


def test_list_journal_is_newest_first():
    repo = InMemoryJournalRepository()
    older = JournalEntry("1", "2024-01-01T00:00:00.000Z", "old", "n")
    newer = JournalEntry("2", "2024-03-01T00:00:00.000Z", "new", "n")
    repo.users["chris"] = [older, newer]

    assert ListJournalEntriesUseCase(repo).execute("chris") == [newer, older]
    assert ListJournalEntriesUseCase(repo).execute("ana") == []


def test_delete_journal_entry():
    repo = InMemoryJournalRepository()
    repo.users["chris"] = [JournalEntry("1", "2024-01-01T00:00:00.000Z", "t", "n")]
    uc = DeleteJournalEntryUseCase(repo)

    with pytest.raises(ValueError, match="Entry id is required"):
        uc.execute("chris", "  ")
    assert uc.execute("chris", "missing") is False
    assert uc.execute("chris", "1") is True
    assert repo.users["chris"] == []
