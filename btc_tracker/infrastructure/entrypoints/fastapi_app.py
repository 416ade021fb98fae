"""
FastAPI entry point for the dashboard backend.

This module is the Composition Root: it wires all infrastructure adapters into
the provider chains, the dashboard poller and the use-cases. Authentication is
a single-user cookie session validated by JoseSessionTokenService.

Run locally:
    uvicorn btc_tracker.infrastructure.entrypoints.fastapi_app:app --reload --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional, Union

import httpx
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()

from btc_tracker.application.services.dashboard_poller import (
    CHANGE_REFERENCE_KEY,
    SPOT_KEY,
    DashboardPoller,
)
from btc_tracker.application.services.polling_controller import UnknownStreamError
from btc_tracker.application.services.provider_chain import (
    ChainTimeouts,
    ProviderChainExecutor,
)
from btc_tracker.application.use_cases.authenticate_user import AuthenticateUserUseCase
from btc_tracker.application.use_cases.generate_headline import (
    GenerateHeadlineUseCase,
    MarketSummary,
)
from btc_tracker.application.use_cases.get_chart_analytics import GetChartAnalyticsUseCase
from btc_tracker.application.use_cases.get_market_cycle import GetMarketCycleUseCase
from btc_tracker.application.use_cases.get_price_history import GetPriceHistoryUseCase
from btc_tracker.application.use_cases.get_sentiment import (
    GetSentimentHistoryUseCase,
    GetSentimentUseCase,
)
from btc_tracker.application.use_cases.get_spot_price import GetSpotPriceUseCase
from btc_tracker.application.use_cases.manage_journal import (
    AddJournalEntryUseCase,
    DeleteJournalEntryUseCase,
    ListJournalEntriesUseCase,
)
from btc_tracker.domain.entities.range_key import RangeKey
from btc_tracker.domain.errors import HeadlineUnavailableError
from btc_tracker.domain.ports.journal_port import IJournalRepository
from btc_tracker.domain.ports.llm_port import ILanguageModel
from btc_tracker.domain.ports.observability_port import IObservabilityHandler
from btc_tracker.domain.services.clock import now_ms
from btc_tracker.domain.services.derived_metrics import effective_change_24h
from btc_tracker.infrastructure.auth.session_tokens import JoseSessionTokenService
from btc_tracker.infrastructure.config.settings import Settings
from btc_tracker.infrastructure.entrypoints import serializers
from btc_tracker.infrastructure.llm.bedrock_adapter import BedrockChatAdapter
from btc_tracker.infrastructure.market_data.dominance_providers import (
    CoinGeckoDominanceProvider,
    CoinPaprikaDominanceProvider,
)
from btc_tracker.infrastructure.market_data.history_providers import (
    BinanceHistoryProvider,
    CoinGeckoHistoryProvider,
)
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
from btc_tracker.infrastructure.observability.langfuse_adapter import (
    LangfuseObservabilityHandler,
)
from btc_tracker.infrastructure.observability.logging_config import configure_logging
from btc_tracker.infrastructure.persistence.json_journal_repository import (
    JsonFileJournalRepository,
)

logger = logging.getLogger(__name__)

AUTH_COOKIE_NAME = "btc_auth_session"
NO_STORE = {"Cache-Control": "no-store"}


def build_provider_chain(
    client: httpx.AsyncClient,
    settings: Settings,
    clock: Callable[[], int] = now_ms,
) -> ProviderChainExecutor:
    """Wire the adapters in their priority order."""
    return ProviderChainExecutor(
        spot_providers=[
            CoinbaseSpotProvider(client, settings.spot_timeout_seconds, clock),
            KrakenSpotProvider(client, settings.spot_timeout_seconds, clock),
            CoinCapSpotProvider(client, settings.spot_timeout_seconds, clock),
            CoinGeckoSpotProvider(client, settings.spot_timeout_seconds, clock),
        ],
        history_providers=[
            CoinGeckoHistoryProvider(client, settings.history_timeout_seconds),
            BinanceHistoryProvider(client, settings.history_timeout_seconds, clock),
            YFinanceHistoryProvider(clock),
        ],
        dominance_providers=[
            CoinGeckoDominanceProvider(client, settings.dominance_timeout_seconds),
            CoinPaprikaDominanceProvider(client, settings.dominance_timeout_seconds),
        ],
        sentiment_providers=[
            AlternativeMeSentimentProvider(
                client, settings.sentiment_history_timeout_seconds, clock
            ),
        ],
        timeouts=ChainTimeouts(
            spot=settings.spot_timeout_seconds,
            history=settings.history_timeout_seconds,
            dominance=settings.dominance_timeout_seconds,
            sentiment=settings.sentiment_timeout_seconds,
            sentiment_history=settings.sentiment_history_timeout_seconds,
        ),
        clock=clock,
    )


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class RangeRequest(BaseModel):
    chart: Optional[str] = None
    sentiment: Optional[str] = None


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price: Optional[float] = None
    daily_change: Optional[float] = Field(default=None, alias="dailyChange")
    sentiment: Optional[float] = None
    sentiment_label: Optional[str] = Field(default=None, alias="sentimentLabel")
    range: Optional[str] = None
    range_return: Optional[float] = Field(default=None, alias="rangeReturn")
    source: Optional[str] = None


class JournalEntryRequest(BaseModel):
    title: Optional[str] = None
    notes: Optional[str] = None
    date: Optional[str] = None
    kind: Optional[str] = None
    chain: Optional[str] = None
    protocol: Optional[str] = None
    amount: Optional[Union[str, float]] = None
    token: Optional[str] = None
    intensity: Optional[str] = None


def create_app(
    settings: Optional[Settings] = None,
    chain: Optional[ProviderChainExecutor] = None,
    llm: Optional[ILanguageModel] = None,
    clock: Callable[[], int] = now_ms,
    observability: Optional[IObservabilityHandler] = None,
    journal: Optional[IJournalRepository] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Runtime settings; read from the environment when omitted.
        chain:    Pre-built provider chain (tests inject fakes here). When
                  omitted a shared httpx client and the real adapters are wired.
        llm:      Headline model. When omitted, Bedrock is used only if
                  HEADLINE_ENABLED is set; otherwise the demo headline is served.
        observability: Tracing handler for headline calls. When omitted, Langfuse
                       is used only if LANGFUSE_PUBLIC_KEY and LANGFUSE_SECRET_KEY
                       are set.
        journal:  Journal storage; defaults to the JSON file at JOURNAL_PATH.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    http_client: Optional[httpx.AsyncClient] = None
    if chain is None:
        http_client = httpx.AsyncClient(follow_redirects=True)
        chain = build_provider_chain(http_client, settings, clock)
    if llm is None and settings.headline_enabled:
        llm = BedrockChatAdapter(settings.headline_model_id, settings.aws_region)
    if observability is None and settings.langfuse_enabled:
        observability = LangfuseObservabilityHandler()
    if journal is None:
        journal = JsonFileJournalRepository(settings.journal_path)

    tokens = JoseSessionTokenService(settings.auth_secret, settings.session_max_age_seconds)
    login_uc = AuthenticateUserUseCase(settings.auth_username, settings.auth_password, tokens)
    spot_uc = GetSpotPriceUseCase(chain)
    history_uc = GetPriceHistoryUseCase(chain)
    analytics_uc = GetChartAnalyticsUseCase(chain)
    sentiment_uc = GetSentimentUseCase(chain)
    sentiment_history_uc = GetSentimentHistoryUseCase(chain)
    cycle_uc = GetMarketCycleUseCase(chain, clock)
    headline_uc = GenerateHeadlineUseCase(llm, clock, observability)
    list_journal_uc = ListJournalEntriesUseCase(journal)
    add_journal_uc = AddJournalEntryUseCase(journal, clock)
    delete_journal_uc = DeleteJournalEntryUseCase(journal)
    poller = DashboardPoller(chain, clock=clock)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        await poller.stop()
        if observability is not None:
            observability.flush()
        if http_client is not None:
            await http_client.aclose()

    app = FastAPI(title="BTC Fear & Greed Tracker API", lifespan=lifespan)
    app.state.poller = poller
    app.state.settings = settings

    def get_current_user(request: Request) -> dict:
        """FastAPI dependency: validate the session cookie."""
        try:
            return tokens.validate(request.cookies.get(AUTH_COOKIE_NAME, ""))
        except ValueError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc

    def session_username(request: Request) -> Optional[str]:
        """Username of a valid session cookie, or None for anonymous callers."""
        try:
            return tokens.validate(request.cookies.get(AUTH_COOKIE_NAME, "")).get("sub")
        except ValueError:
            return None

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    @app.get("/api/btc")
    async def btc_price():
        result = await spot_uc.execute()
        if not result.ok:
            body = serializers.failure_body(result)
            body["error"] = "Failed to fetch BTC price from all providers"
            return JSONResponse(body, status_code=500, headers=NO_STORE)
        return JSONResponse(serializers.spot_body(result.data), headers=NO_STORE)

    @app.get("/api/btc/history")
    async def btc_history(range_: Optional[str] = Query(default=None, alias="range")):
        range_key = RangeKey.parse(range_)
        result = await history_uc.execute(range_key, poller.last_spot_price())
        if not result.ok:
            body = serializers.failure_body(result, range=range_key.value)
            return JSONResponse(body, status_code=500, headers=NO_STORE)
        return JSONResponse(serializers.price_series_body(result.data), headers=NO_STORE)

    @app.get("/api/btc/metrics")
    async def btc_metrics(
        range_: Optional[str] = Query(default=None, alias="range"),
        at: Optional[float] = None,
        fraction: Optional[float] = None,
    ):
        range_key = RangeKey.parse(range_)
        result = await analytics_uc.execute(
            range_key, at, poller.last_spot_price(), fraction
        )
        if not result.ok:
            body = serializers.failure_body(result, range=range_key.value)
            return JSONResponse(body, status_code=500, headers=NO_STORE)
        return JSONResponse(serializers.analytics_body(result.data), headers=NO_STORE)

    @app.get("/api/btc/cycle")
    async def btc_cycle():
        result = await cycle_uc.execute()
        return JSONResponse(serializers.cycle_body(result.data), headers=NO_STORE)

    @app.get("/api/fng")
    async def fear_and_greed():
        result = await sentiment_uc.execute()
        if not result.ok:
            body = serializers.failure_body(result)
            body["error"] = "Failed to fetch Fear & Greed"
            return JSONResponse(body, status_code=500, headers=NO_STORE)
        return JSONResponse(serializers.sentiment_body(result.data), headers=NO_STORE)

    @app.get("/api/fng/history")
    async def fear_and_greed_history(
        range_: Optional[str] = Query(default=None, alias="range"),
    ):
        range_key = RangeKey.parse(range_)
        result = await sentiment_history_uc.execute(range_key)
        if not result.ok:
            body = serializers.failure_body(result, range=range_key.value)
            body["error"] = "Failed to fetch F&G history"
            return JSONResponse(body, status_code=502, headers=NO_STORE)
        return JSONResponse(serializers.sentiment_series_body(result.data), headers=NO_STORE)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    @app.post("/api/auth/login")
    async def login(body: LoginRequest, response: Response):
        try:
            token = login_uc.execute(body.username, body.password)
        except ValueError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc

        response.set_cookie(
            AUTH_COOKIE_NAME,
            token,
            max_age=settings.session_max_age_seconds,
            httponly=True,
            samesite="lax",
            secure=settings.cookie_secure,
            path="/",
        )
        await poller.start(authorized=True)
        return {"ok": True, "username": body.username.strip()}

    @app.get("/api/auth/session")
    async def session(request: Request):
        try:
            claims = tokens.validate(request.cookies.get(AUTH_COOKIE_NAME, ""))
        except ValueError:
            return {"authenticated": False}
        return {"authenticated": True, "username": claims["sub"]}

    @app.post("/api/auth/logout")
    async def logout(response: Response):
        response.delete_cookie(AUTH_COOKIE_NAME, path="/")
        await poller.stop()
        return {"ok": True}

    # ------------------------------------------------------------------
    # Polled dashboard
    # ------------------------------------------------------------------

    @app.get("/api/dashboard")
    async def dashboard(user: dict = Depends(get_current_user)):
        await poller.start(authorized=True)
        snapshots = poller.snapshots()
        spot = snapshots.get(SPOT_KEY)
        reference = snapshots.get(CHANGE_REFERENCE_KEY)
        change = effective_change_24h(
            spot.data.change_24h if spot and spot.data else None,
            reference.data.points if reference and reference.data else (),
        )
        return JSONResponse(
            {
                "chartRange": poller.chart_range.value,
                "sentimentRange": poller.sentiment_range.value,
                "effectiveChange24h": change,
                "metrics": {
                    key: serializers.snapshot_body(snap) for key, snap in snapshots.items()
                },
            },
            headers=NO_STORE,
        )

    @app.post("/api/dashboard/refresh/{key}")
    async def dashboard_refresh(key: str, user: dict = Depends(get_current_user)):
        try:
            snapshot = await poller.refresh(key)
        except UnknownStreamError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown metric {key!r}") from exc
        return JSONResponse(serializers.snapshot_body(snapshot), headers=NO_STORE)

    @app.post("/api/dashboard/range")
    async def dashboard_range(body: RangeRequest, user: dict = Depends(get_current_user)):
        if body.chart is not None:
            poller.set_chart_range(RangeKey.parse(body.chart))
        if body.sentiment is not None:
            poller.set_sentiment_range(RangeKey.parse(body.sentiment))
        return {
            "chartRange": poller.chart_range.value,
            "sentimentRange": poller.sentiment_range.value,
        }

    # ------------------------------------------------------------------
    # Headline
    # ------------------------------------------------------------------

    @app.post("/api/analyze")
    async def analyze(body: AnalyzeRequest, request: Request):
        summary = MarketSummary(
            price=body.price,
            daily_change_pct=body.daily_change,
            sentiment_value=body.sentiment,
            sentiment_label=body.sentiment_label,
            selected_range=body.range,
            range_return_pct=body.range_return,
            source=body.source,
        )
        try:
            headline = await headline_uc.execute(summary, session_username(request))
        except HeadlineUnavailableError as exc:
            return JSONResponse({"error": str(exc)}, status_code=502)
        return JSONResponse(
            {"headline": headline.text, "model": headline.model, "ts": headline.ts},
            headers=NO_STORE,
        )

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    @app.get("/api/journal")
    def list_journal(user: dict = Depends(get_current_user)):
        entries = list_journal_uc.execute(user["sub"])
        return {"entries": [serializers.journal_entry_body(e) for e in entries]}

    @app.post("/api/journal")
    def add_journal(body: JournalEntryRequest, user: dict = Depends(get_current_user)):
        try:
            entry = add_journal_uc.execute(user["sub"], body.model_dump())
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"entry": serializers.journal_entry_body(entry)}

    @app.delete("/api/journal")
    def delete_journal(
        entry_id: Optional[str] = Query(default=None, alias="id"),
        user: dict = Depends(get_current_user),
    ):
        try:
            deleted = delete_journal_uc.execute(user["sub"], entry_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if not deleted:
            raise HTTPException(status_code=404, detail="Entry not found")
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "ok", "polling": poller.controller.running}

    return app


app = create_app()
