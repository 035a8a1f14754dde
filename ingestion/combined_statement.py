"""
Combined-statement splitter.

A combined statement is one SMS carrying many transactions in a bracketed
shorthand:

    ABC1234567 Confirmed. [20240105; ;Customer Transfer;JOHN DOE;Ksh500.00]Completed
    [20240106; ;Bundle Purchase;SAFARICOM;Ksh100.00]Completed

Each sub-record becomes one transaction whose id is "{reference}-{index}".
"""
from __future__ import annotations
import re
from typing import List, Optional, Tuple

from pydantic import ValidationError

from core.logger import get_logger
from core.utils import parse_amount, parse_date_code
from models.results import ParseError, SmsParseResult
from models.schema import (
    Category,
    CombinedStatementBlock,
    SmsFormat,
    Source,
    Transaction,
    TransactionType,
)

log = get_logger("ingestion/combined_statement")

COMBINED_CONFIDENCE = 0.8  # no balance corroboration in this format

_REFERENCE_RE = re.compile(r"^([A-Z0-9]{10,12})")
_BLOCK_RE = re.compile(r"\[(\d{8});[^\]]*\]\s*Completed", re.IGNORECASE)
_BLOCK_FIELDS_RE = re.compile(
    r"\[(\d{8});\s*;([^;\]]+);\s*([^;\]]*);\s*(?:Ksh|KES)?[.\s]*([0-9][0-9,]*(?:\.[0-9]+)?)\s*\]",
    re.IGNORECASE,
)

# Ordered keyword -> category rules for sub-record descriptions
DESCRIPTION_CATEGORY_RULES: Tuple[Tuple[Tuple[str, ...], Category], ...] = (
    (("bundle", "airtime", "safaricom"), Category.UTILITIES),
    (("transfer",), Category.TRANSFER),
    (("pay bill", "paybill"), Category.BILLS),
    (("buy goods",), Category.SHOPPING),
)


def categorize_by_description(description: str) -> Category:
    desc = description.lower()
    for keywords, category in DESCRIPTION_CATEGORY_RULES:
        if any(keyword in desc for keyword in keywords):
            return category
    return Category.OTHER


def _type_for_description(description: str) -> TransactionType:
    # "Bundle Purchase" and everything else that is not a transfer is a payment
    if "transfer" in description.lower():
        return TransactionType.SENT
    return TransactionType.PAYMENT


def _parse_block(raw_block: str) -> Optional[CombinedStatementBlock]:
    match = _BLOCK_FIELDS_RE.search(raw_block)
    if not match:
        log.debug(f"Sub-record did not match field layout: {raw_block!r}")
        return None

    amount = parse_amount(match.group(4))
    if amount is None:
        return None

    try:
        return CombinedStatementBlock(
            dateCode=match.group(1),
            description=match.group(2).strip(),
            counterparty=match.group(3).strip(),
            amount=amount,
        )
    except ValidationError as e:
        log.debug(f"Sub-record failed validation: {raw_block!r} errors={e.errors()}")
        return None


def parse_combined_statement(text: str) -> SmsParseResult:
    """
    Split a combined-statement SMS into one transaction per sub-record.

    Args:
        text: Raw SMS text already classified as COMBINED_STATEMENT

    Returns:
        SmsParseResult with isBulk=True, or a NO_TRANSACTIONS error when no
        sub-record could be parsed
    """
    stripped = text.strip()
    ref_match = _REFERENCE_RE.match(stripped)
    reference = ref_match.group(1) if ref_match else ""

    raw_blocks = [m.group(0) for m in _BLOCK_RE.finditer(stripped)]
    if not raw_blocks:
        log.warning(f"Combined statement has no sub-records: reference={reference}")
        return SmsParseResult(
            ok=False,
            error=ParseError(
                code="NO_TRANSACTIONS",
                message="No transactions found in combined statement",
            ),
        )

    transactions: List[Transaction] = []
    skipped = 0

    for index, raw_block in enumerate(raw_blocks, start=1):
        block = _parse_block(raw_block)
        date = parse_date_code(block.dateCode) if block else None
        if block is None or date is None:
            skipped += 1
            continue

        transactions.append(
            Transaction(
                transactionId=f"{reference}-{index}",
                date=date,
                type=_type_for_description(block.description),
                amount=block.amount,
                balance=None,
                counterparty=block.counterparty,
                description=block.description,
                category=categorize_by_description(block.description),
                source=Source.SMS,
                confidence=COMBINED_CONFIDENCE,
                format=SmsFormat.COMBINED_STATEMENT.template,
                mpesaReference=reference,
            )
        )

    if skipped:
        log.warning(f"Skipped {skipped}/{len(raw_blocks)} malformed sub-records: reference={reference}")

    if not transactions:
        return SmsParseResult(
            ok=False,
            error=ParseError(
                code="NO_TRANSACTIONS",
                message="Failed to parse transactions from combined statement",
                details=f"{len(raw_blocks)} sub-records found, none parsable",
            ),
        )

    log.info(f"Parsed combined statement: reference={reference} transactions={len(transactions)}")
    return SmsParseResult(ok=True, transactions=transactions, isBulk=True)
