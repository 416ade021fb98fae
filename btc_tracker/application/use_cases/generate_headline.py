"""
Use-case: one-sentence market headline from a dashboard snapshot.
langchain_core.messages is treated as framework (not infrastructure); the model
itself is injected through ILanguageModel, and an optional IObservabilityHandler
traces each call. Without a model the deterministic demo headline is returned
instead.
"""

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from btc_tracker.application.headline.prompts import (
    HEADLINE_SYSTEM_PROMPT,
    HEADLINE_USER_TEMPLATE,
)
from btc_tracker.domain.errors import HeadlineUnavailableError
from btc_tracker.domain.ports.llm_port import ILanguageModel
from btc_tracker.domain.ports.observability_port import IObservabilityHandler
from btc_tracker.domain.services.clock import now_ms

logger = logging.getLogger(__name__)

DEMO_MODEL = "demo"
TRACE_TAGS = ["btc-headline"]


@dataclass(frozen=True)
class MarketSummary:
    price: Optional[float] = None
    daily_change_pct: Optional[float] = None
    sentiment_value: Optional[float] = None
    sentiment_label: Optional[str] = None
    selected_range: Optional[str] = None
    range_return_pct: Optional[float] = None
    source: Optional[str] = None


@dataclass(frozen=True)
class Headline:
    text: str
    model: str
    ts: int


def build_demo_headline(summary: MarketSummary) -> str:
    if summary.price is None:
        return (
            "Demo insight: waiting for live data; use this view to understand "
            "structure and timing, then compare momentum and sentiment before acting."
        )
    change = summary.daily_change_pct
    if change is None:
        momentum = "mixed momentum"
    elif change >= 1:
        momentum = "positive momentum"
    elif change <= -1:
        momentum = "defensive momentum"
    else:
        momentum = "sideways momentum"
    sentiment = (summary.sentiment_label or "").lower() or "neutral sentiment"
    return (
        f"Demo insight: price action suggests {momentum} while {sentiment} keeps "
        "conviction moderate, so monitor confirmation across sessions before "
        "committing to any directional exposure."
    )


def extract_text(response: Any) -> Optional[str]:
    """First non-empty text in a chat response (plain string or content blocks)."""
    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content.strip() or None
    if isinstance(content, list):
        for block in content:
            text = block.get("text") if isinstance(block, dict) else block
            if isinstance(text, str) and text.strip():
                return text.strip()
    return None


class GenerateHeadlineUseCase:
    def __init__(
        self,
        llm: Optional[ILanguageModel] = None,
        clock: Callable[[], int] = now_ms,
        observability: Optional[IObservabilityHandler] = None,
    ) -> None:
        self._llm = llm
        self._clock = clock
        self._observability = observability

    async def execute(self, summary: MarketSummary, user_id: Optional[str] = None) -> Headline:
        """Return a headline for *summary*; *user_id* is attached to the trace.

        Raises:
            HeadlineUnavailableError: if the model call fails or returns no text.
        """
        if self._llm is None:
            return Headline(build_demo_headline(summary), DEMO_MODEL, self._clock())

        messages = [
            SystemMessage(content=HEADLINE_SYSTEM_PROMPT),
            HumanMessage(
                content=HEADLINE_USER_TEMPLATE.format(snapshot=json.dumps(asdict(summary)))
            ),
        ]
        config = None
        if self._observability is not None:
            config = {
                "callbacks": [self._observability.as_callback()],
                "metadata": {"langfuse_user_id": user_id, "langfuse_tags": TRACE_TAGS},
            }
        try:
            response = await asyncio.to_thread(self._llm.invoke, messages, config)
        except Exception as exc:
            logger.warning("headline model call failed: %s", exc)
            raise HeadlineUnavailableError(f"Headline request failed: {exc}") from exc

        text = extract_text(response)
        if not text:
            raise HeadlineUnavailableError("No analysis text returned by the model")
        return Headline(text, self._llm.model_id, self._clock())
