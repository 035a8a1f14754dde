from intent.entities import extract_amount_thresholds, extract_categories
from intent.router import classify_query, extract_query_intent
from intent.timeframe import resolve_timeframe

__all__ = [
    "classify_query",
    "extract_amount_thresholds",
    "extract_categories",
    "extract_query_intent",
    "resolve_timeframe",
]
