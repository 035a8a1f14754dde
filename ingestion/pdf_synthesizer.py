"""
Summary-to-transaction synthesis for PDF statements.

Each summary row expands into up to two synthetic transactions: an income
leg for "paid in" and an expense leg for "paid out". Synthesis produces
plain draft dicts; `heal_transaction_types` is a separate pass that repairs
invalid types before the drafts are validated into Transactions.
"""
from __future__ import annotations
import random
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Optional

from core.logger import get_logger
from core.utils import make_id
from models.schema import (
    STATEMENT_SUMMARY_MARKER,
    Category,
    Source,
    SummaryLine,
    Transaction,
    TransactionType,
    VALID_FLOW_TYPES,
)

log = get_logger("ingestion/pdf_synthesizer")

PDF_FORMAT = "PDF_SUMMARY"
LEG_IN = "in"
LEG_OUT = "out"

SUMMARY_CATEGORY_MAP = MappingProxyType({
    "Cash Out": Category.OTHER,
    "Send Money": Category.OTHER,
    "B2C Payment": Category.OTHER,
    "Pay Bill": Category.UTILITIES,
    "FSI Withdraw": Category.OTHER,
    "Cash In": Category.OTHER,
    "FSI Deposit": Category.OTHER,
    "ODRepayment": Category.OTHER,
    "Customer Merchant Payment": Category.SHOPPING,
    "Customer Airtime Purchase": Category.UTILITIES,
    "Customer Bundle Purchase": Category.UTILITIES,
})

_VALID_TYPE_VALUES = frozenset(t.value for t in VALID_FLOW_TYPES)


def map_category(transaction_type: str) -> Category:
    return SUMMARY_CATEGORY_MAP.get(transaction_type, Category.OTHER)


def expense_type_for(label: str) -> TransactionType:
    if "Payment" in label or "Pay" in label:
        return TransactionType.PAYMENT
    if "Withdraw" in label:
        return TransactionType.WITHDRAWAL
    return TransactionType.SENT


def _statement_rng(statement_date: datetime) -> random.Random:
    # Same statement month always yields the same pseudo-random days
    return random.Random(f"{statement_date.year}-{statement_date.month:02d}")


def _draft_id(prefix: str, statement_date: datetime, index: int, label: str, amount: float) -> str:
    # amount is part of the id: a corrected statement for the same month is a new transaction
    digest = make_id(statement_date.date().isoformat(), str(index), label, prefix, f"{amount:.2f}")
    return f"PDF-{prefix}-{digest[:12].upper()}"


def synthesize_drafts(lines: List[SummaryLine], statement_date: datetime) -> List[Dict[str, Any]]:
    """
    Expand summary rows into income/expense drafts dated within the statement month.

    Args:
        lines: Summary rows in input order
        statement_date: Any date inside the statement's month

    Returns:
        Draft dicts in input order (income leg before expense leg per row)
    """
    rng = _statement_rng(statement_date)
    drafts: List[Dict[str, Any]] = []

    for index, line in enumerate(lines, start=1):
        day = rng.randint(1, 28)
        txn_date = datetime(statement_date.year, statement_date.month, day)
        category = map_category(line.transactionType)

        if line.paidIn > 0:
            drafts.append({
                "transactionId": _draft_id("IN", statement_date, index, line.transactionType, line.paidIn),
                "date": txn_date,
                "type": TransactionType.RECEIVED,
                "amount": line.paidIn,
                "description": f"{line.transactionType} (Received)",
                "category": category,
                "leg": LEG_IN,
            })

        if line.paidOut > 0:
            drafts.append({
                "transactionId": _draft_id("OUT", statement_date, index, line.transactionType, line.paidOut),
                "date": txn_date,
                "type": expense_type_for(line.transactionType),
                "amount": line.paidOut,
                "description": f"{line.transactionType} (Sent)",
                "category": category,
                "leg": LEG_OUT,
            })

    log.debug(f"Synthesized {len(drafts)} drafts from {len(lines)} summary rows")
    return drafts


def build_summary_draft(lines: List[SummaryLine], statement_date: datetime) -> Dict[str, Any]:
    """
    Build the statement-level audit anchor.

    Its amount duplicates total income, so it is tagged with
    metadata.isStatementSummary and excluded from aggregate totals.
    """
    total_income = round(sum(line.paidIn for line in lines), 2)
    total_expenses = round(sum(line.paidOut for line in lines), 2)
    digest = make_id(statement_date.date().isoformat(), str(len(lines)), f"{total_income:.2f}", f"{total_expenses:.2f}")

    return {
        "transactionId": f"PDF-SUMMARY-{digest[:12].upper()}",
        "date": statement_date,
        "type": TransactionType.RECEIVED,
        "amount": total_income,
        "description": f"{STATEMENT_SUMMARY_MARKER} ({statement_date.strftime('%d/%m/%Y')})",
        "category": Category.OTHER,
        "leg": LEG_IN,
        "metadata": {
            "totalIncome": total_income,
            "totalExpenses": total_expenses,
            "netAmount": round(total_income - total_expenses, 2),
            "transactionCount": len(lines),
            "isStatementSummary": True,
        },
    }


def _type_value(value: Any) -> Optional[str]:
    if isinstance(value, TransactionType):
        return value.value
    return value if isinstance(value, str) else None


def heal_transaction_types(drafts: List[Dict[str, Any]]) -> int:
    """
    Repair drafts whose type is OTHER or not a valid flow type.

    The type is re-derived from the description ("Received" / "Sent"),
    then from the leg role (income leg -> RECEIVED, expense leg -> SENT),
    then from the amount sign.

    Args:
        drafts: Draft dicts, modified in place

    Returns:
        Number of drafts repaired
    """
    healed = 0
    for draft in drafts:
        current = _type_value(draft.get("type"))
        if current in _VALID_TYPE_VALUES:
            continue

        description = draft.get("description") or ""
        leg = draft.get("leg")
        if "Received" in description:
            new_type, reason = TransactionType.RECEIVED, "description"
        elif "Sent" in description:
            new_type, reason = TransactionType.SENT, "description"
        elif leg == LEG_IN:
            new_type, reason = TransactionType.RECEIVED, "income leg"
        elif leg == LEG_OUT:
            new_type, reason = TransactionType.SENT, "expense leg"
        elif (draft.get("amount") or 0) > 0:
            new_type, reason = TransactionType.RECEIVED, "positive amount"
        else:
            new_type, reason = TransactionType.SENT, "non-positive amount"

        draft["type"] = new_type
        healed += 1
        log.info(
            f"Fixed transaction type {current!r} -> {new_type.value} "
            f"based on {reason}: {draft.get('transactionId')}"
        )

    return healed


def finalize_drafts(drafts: List[Dict[str, Any]], statement_ref: Optional[str] = None) -> List[Transaction]:
    """
    Validate drafts into PDF-sourced Transactions.

    Raises:
        ValueError: If a draft still carries an invalid type (strict mode)
    """
    transactions: List[Transaction] = []
    for draft in drafts:
        type_value = _type_value(draft.get("type"))
        if type_value not in _VALID_TYPE_VALUES:
            raise ValueError(
                f"Invalid transaction type {draft.get('type')!r} for {draft.get('transactionId')}"
            )

        amount = draft.get("amount") or 0.0
        transactions.append(
            Transaction(
                transactionId=draft["transactionId"],
                date=draft["date"],
                type=TransactionType(type_value),
                amount=abs(amount),
                description=draft.get("description", ""),
                category=draft.get("category", Category.OTHER),
                source=Source.PDF,
                confidence=1.0,
                format=PDF_FORMAT,
                parsingMethod="summary",
                statementRef=statement_ref,
                metadata=draft.get("metadata", {}),
            )
        )
    return transactions
