"""M-Pesa SMS format classification via an ordered rule list."""
from __future__ import annotations
import re
from typing import Callable, Tuple

from core.logger import get_logger
from models.schema import SmsFormat

log = get_logger("ingestion/sms_classifier")

_LEADING_REF_RE = re.compile(r"^[A-Z0-9]{10,12}")
_COMPLETED_RE = re.compile(r"completed", re.IGNORECASE)


def is_combined_statement(text: str) -> bool:
    """
    Detect the bulk format: leading 10-12 char reference, more than one
    "Completed" marker and bracketed sub-records.
    """
    has_reference = bool(_LEADING_REF_RE.match(text))
    completed_count = len(_COMPLETED_RE.findall(text))
    has_brackets = "[" in text and "]" in text
    return has_reference and completed_count > 1 and has_brackets


# First match wins; each predicate receives the lower-cased text
FORMAT_RULES: Tuple[Tuple[SmsFormat, Callable[[str], bool]], ...] = (
    (SmsFormat.RECEIVED, lambda t: "received" in t and "from" in t),
    (SmsFormat.SENT, lambda t: "sent to" in t),
    (SmsFormat.BUSINESS_PAYMENT, lambda t: "paid to" in t or "buy goods" in t),
    (SmsFormat.WITHDRAWAL, lambda t: "withdraw" in t),
    (SmsFormat.AIRTIME, lambda t: "airtime" in t),
)


def classify_sms(text: str) -> SmsFormat:
    """
    Assign a format tag to a raw SMS.

    Args:
        text: Raw SMS text

    Returns:
        SmsFormat, UNRECOGNIZED when no rule matches
    """
    if not text or not text.strip():
        return SmsFormat.UNRECOGNIZED

    stripped = text.strip()
    if is_combined_statement(stripped):
        log.debug("Classified SMS as COMBINED_STATEMENT")
        return SmsFormat.COMBINED_STATEMENT

    lowered = stripped.lower()
    for sms_format, predicate in FORMAT_RULES:
        if predicate(lowered):
            log.debug(f"Classified SMS as {sms_format.value}")
            return sms_format

    log.debug(f"No SMS format matched: preview={stripped[:60]!r}")
    return SmsFormat.UNRECOGNIZED
