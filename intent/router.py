"""Rule-based query intent classification."""
from __future__ import annotations
import re
import time
from datetime import date, datetime, timezone
from typing import Optional, Tuple, Union

from core.logger import get_logger
from intent.entities import extract_amount_thresholds, extract_categories
from intent.lexicon import FINANCIAL_KEYWORDS, INTENT_GROUPS
from intent.timeframe import resolve_timeframe
from models.intent import IntentResponse, PrimaryIntent, QueryEntities, QueryIntent

log = get_logger("intent/router")

_FINANCIAL_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(k) for k in sorted(FINANCIAL_KEYWORDS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)

_INTENT_PATTERNS: Tuple[Tuple[PrimaryIntent, "re.Pattern[str]"], ...] = tuple(
    (intent, re.compile(r"\b(?:" + "|".join(phrases) + r")\b", re.IGNORECASE))
    for intent, phrases in INTENT_GROUPS
)


def is_financial_query(question: str) -> bool:
    return bool(_FINANCIAL_RE.search(question))


def classify_primary_intent(question: str) -> PrimaryIntent:
    for intent, pattern in _INTENT_PATTERNS:
        if pattern.search(question):
            return intent
    return PrimaryIntent.GENERAL


def extract_query_intent(question: str, today: Union[date, datetime, None] = None) -> QueryIntent:
    """
    Classify a free-text question and extract its filter entities.

    Entities are always populated, whatever the intent.

    Args:
        question: User question
        today: Reference day for relative timeframes (defaults to now)

    Returns:
        QueryIntent
    """
    text = question if isinstance(question, str) else ""

    intent = QueryIntent(
        isFinancialQuery=is_financial_query(text),
        primaryIntent=classify_primary_intent(text),
        entities=QueryEntities(
            timeframe=resolve_timeframe(text, today),
            categories=extract_categories(text),
            amountThresholds=extract_amount_thresholds(text),
        ),
    )
    log.info(
        f"Query intent: intent={intent.primaryIntent.value} financial={intent.isFinancialQuery} "
        f"categories={[c.value for c in intent.entities.categories]}"
    )
    return intent


def classify_query(question: str, today: Union[date, datetime, None] = None) -> IntentResponse:
    """Wrap extract_query_intent with a timestamp and processing time for callers and logs."""
    start_time = time.time()
    intent = extract_query_intent(question, today)
    processing_time = (time.time() - start_time) * 1000

    return IntentResponse(
        query=question,
        intent=intent,
        timestamp=datetime.now(timezone.utc).isoformat(),
        processing_time_ms=round(processing_time, 2),
    )


def classify_query_safe(question: str, today: Union[date, datetime, None] = None) -> Optional[IntentResponse]:
    """Return None instead of raising, for chat loops that must keep going."""
    try:
        return classify_query(question, today)
    except Exception as e:
        log.error(f"Query classification failed (safe mode): {e}")
        return None
