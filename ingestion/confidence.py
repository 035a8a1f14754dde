"""Heuristic completeness score for extracted SMS transactions."""
from __future__ import annotations
import re

from ingestion.sms_extractor import ExtractedFields

BASE_SCORE = 0.5
FIELD_BONUS = 0.1
MAX_SCORE = 1.0

_ALNUM_ID_RE = re.compile(r"[A-Z0-9]+")


def score_confidence(fields: ExtractedFields) -> float:
    """
    Score = 0.5 plus 0.1 for each of: alphanumeric id, extracted date,
    amount > 0, balance >= 0, product marker in the message. Capped at 1.0.

    Scores below 0.6 mean "needs verification"; this is a completeness
    signal, not a correctness guarantee.
    """
    score = BASE_SCORE

    if fields.transaction_id and _ALNUM_ID_RE.search(fields.transaction_id):
        score += FIELD_BONUS
    if fields.date is not None:
        score += FIELD_BONUS
    if fields.amount is not None and fields.amount > 0:
        score += FIELD_BONUS
    if fields.balance is not None and fields.balance >= 0:
        score += FIELD_BONUS
    if fields.has_product_marker:
        score += FIELD_BONUS

    return round(min(score, MAX_SCORE), 2)
