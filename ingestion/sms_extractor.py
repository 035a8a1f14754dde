"""
Field extraction for single-transaction M-Pesa SMS formats.

Each recognized format has one rule-set of ordered regular expressions per
field. The first pattern that matches a field wins. A field that cannot be
located is left as None and later takes its documented default; partial
extraction lowers confidence and never raises.
"""
from __future__ import annotations
import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Pattern, Tuple

from core.logger import get_logger
from core.utils import parse_amount, parse_sms_datetime
from models.schema import Category, SmsFormat, Source, Transaction, TransactionType

log = get_logger("ingestion/sms_extractor")

_CURRENCY = r"(?:Ksh|KES)[.\s]*"
_NUMBER = r"([0-9][0-9,]*(?:\.[0-9]+)?)"
# Counterparty runs until " on D/M/Y", a sentence-ending period or end of text
_UNTIL_DELIMITER = r"(.+?)(?=\s+on\s+\d{1,2}/\d{1,2}/\d{2,4}|\.\s|\.$|$)"

TRANSACTION_ID_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(?i:\bMPESA)\s+([A-Z0-9]{6,})\b"),
    re.compile(r"^([A-Z0-9]{8,12})\s+(?i:confirmed)"),
)
DATETIME_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(\d{1,2}/\d{1,2}/\d{2,4})\s+at\s+(\d{1,2}:\d{2}\s*(?:AM|PM)?)", re.IGNORECASE),
    re.compile(r"\bon\s+(\d{1,2}/\d{1,2}/\d{2,4})", re.IGNORECASE),
)
BALANCE_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(rf"balance\s+is\s+{_CURRENCY}{_NUMBER}", re.IGNORECASE),
)
PRODUCT_MARKER_RE = re.compile(r"MPESA|M-PESA", re.IGNORECASE)


@dataclass(frozen=True)
class FormatRules:
    """Per-format extraction rule-set."""
    transaction_type: TransactionType
    amount_patterns: Tuple[Pattern[str], ...]
    counterparty_patterns: Tuple[Pattern[str], ...] = ()
    description_template: str = "{counterparty}"
    fixed_counterparty: Optional[str] = None
    category: Category = Category.OTHER  # refined later by the categorizer


FORMAT_RULESETS = {
    SmsFormat.RECEIVED: FormatRules(
        transaction_type=TransactionType.RECEIVED,
        amount_patterns=(re.compile(rf"received\s+{_CURRENCY}{_NUMBER}", re.IGNORECASE),),
        counterparty_patterns=(re.compile(rf"\bfrom\s+{_UNTIL_DELIMITER}", re.IGNORECASE),),
        description_template="Received from {counterparty}",
    ),
    SmsFormat.SENT: FormatRules(
        transaction_type=TransactionType.SENT,
        amount_patterns=(re.compile(rf"{_CURRENCY}{_NUMBER}\s+sent", re.IGNORECASE),),
        counterparty_patterns=(re.compile(rf"\bsent\s+to\s+{_UNTIL_DELIMITER}", re.IGNORECASE),),
        description_template="Sent to {counterparty}",
    ),
    SmsFormat.BUSINESS_PAYMENT: FormatRules(
        transaction_type=TransactionType.PAYMENT,
        amount_patterns=(
            re.compile(rf"{_CURRENCY}{_NUMBER}\s+paid", re.IGNORECASE),
            re.compile(rf"{_CURRENCY}{_NUMBER}\s+(?:to\s+)?buy\s+goods", re.IGNORECASE),
        ),
        counterparty_patterns=(re.compile(rf"\bpaid\s+to\s+{_UNTIL_DELIMITER}", re.IGNORECASE),),
        description_template="Paid to {counterparty}",
    ),
    SmsFormat.WITHDRAWAL: FormatRules(
        transaction_type=TransactionType.WITHDRAWAL,
        amount_patterns=(
            re.compile(rf"withdrawn?\s+{_CURRENCY}{_NUMBER}", re.IGNORECASE),
            re.compile(rf"{_CURRENCY}{_NUMBER}\s+withdrawn", re.IGNORECASE),
        ),
        counterparty_patterns=(re.compile(rf"\bfrom\s+{_UNTIL_DELIMITER}", re.IGNORECASE),),
        description_template="Withdrawal from {counterparty}",
    ),
    SmsFormat.AIRTIME: FormatRules(
        transaction_type=TransactionType.PAYMENT,
        amount_patterns=(
            re.compile(rf"bought\s+{_CURRENCY}{_NUMBER}", re.IGNORECASE),
            re.compile(rf"{_CURRENCY}{_NUMBER}\s+(?:of\s+)?airtime", re.IGNORECASE),
        ),
        description_template="Airtime Purchase",
        fixed_counterparty="Airtime Purchase",
        category=Category.UTILITIES,
    ),
}


@dataclass
class ExtractedFields:
    """Raw extraction outcome; None means the field was not located."""
    sms_format: SmsFormat
    transaction_id: Optional[str] = None
    date: Optional[datetime] = None
    amount: Optional[float] = None
    balance: Optional[float] = None
    counterparty: Optional[str] = None
    has_product_marker: bool = False
    defaulted: List[str] = field(default_factory=list)


def _first_match(patterns: Tuple[Pattern[str], ...], text: str) -> Optional[re.Match]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def extract_fields(text: str, sms_format: SmsFormat) -> ExtractedFields:
    """
    Locate id, date/time, amount, counterparty and balance for one format.

    Args:
        text: Raw SMS text
        sms_format: Format tag from the classifier (single-transaction formats only)

    Returns:
        ExtractedFields with None for every field that could not be located

    Raises:
        ValueError: If the format has no single-transaction rule-set
    """
    rules = FORMAT_RULESETS.get(sms_format)
    if rules is None:
        raise ValueError(f"No extraction rules for format: {sms_format.value}")

    fields = ExtractedFields(sms_format=sms_format)
    fields.has_product_marker = bool(PRODUCT_MARKER_RE.search(text))

    id_match = _first_match(TRANSACTION_ID_PATTERNS, text)
    if id_match:
        fields.transaction_id = id_match.group(1)

    dt_match = _first_match(DATETIME_PATTERNS, text)
    if dt_match:
        time_str = dt_match.group(2) if dt_match.lastindex and dt_match.lastindex >= 2 else None
        fields.date = parse_sms_datetime(dt_match.group(1), time_str)

    amount_match = _first_match(rules.amount_patterns, text)
    if amount_match:
        fields.amount = parse_amount(amount_match.group(1))

    balance_match = _first_match(BALANCE_PATTERNS, text)
    if balance_match:
        fields.balance = parse_amount(balance_match.group(1))

    if rules.fixed_counterparty is not None:
        fields.counterparty = rules.fixed_counterparty
    else:
        party_match = _first_match(rules.counterparty_patterns, text)
        if party_match:
            fields.counterparty = party_match.group(1).strip() or None

    for name in ("transaction_id", "date", "amount", "balance", "counterparty"):
        if getattr(fields, name) is None:
            fields.defaulted.append(name)

    if fields.defaulted:
        log.debug(
            f"Fields defaulted for {sms_format.value}: {', '.join(fields.defaulted)}"
        )

    return fields


def build_transaction(fields: ExtractedFields, confidence: float) -> Transaction:
    """
    Turn extracted fields into a Transaction, applying field defaults.

    Defaults: generated id timestamped now, current time for date, 0 for
    amount, empty counterparty, balance stays absent.
    """
    rules = FORMAT_RULESETS[fields.sms_format]

    transaction_id = fields.transaction_id or f"MPESA{int(time.time() * 1000)}"
    counterparty = fields.counterparty or ""
    amount = fields.amount if fields.amount is not None else 0.0

    return Transaction(
        transactionId=transaction_id,
        date=fields.date or datetime.now(),
        type=rules.transaction_type,
        amount=amount,
        balance=fields.balance,
        counterparty=counterparty,
        description=rules.description_template.format(counterparty=counterparty),
        category=rules.category,
        source=Source.SMS,
        confidence=confidence,
        format=fields.sms_format.template,
        mpesaReference=transaction_id,
    )
