"""Result envelopes returned by the parse entry points."""
from __future__ import annotations
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from models.schema import Transaction

ErrorCode = Literal[
    "UNSUPPORTED_FORMAT",
    "NO_TRANSACTIONS",
    "SMS_PARSE_ERROR",
    "PDF_PARSE_ERROR",
    "INVALID_INPUT",
]


class ParseError(BaseModel):
    code: ErrorCode
    message: str
    details: Optional[str] = None


class SmsParseResult(BaseModel):
    """Outcome of parse_sms; single messages fill `transaction`, bulk ones `transactions`."""

    ok: bool
    transaction: Optional[Transaction] = None
    transactions: List[Transaction] = Field(default_factory=list)
    isBulk: bool = False
    error: Optional[ParseError] = None

    @property
    def all_transactions(self) -> List[Transaction]:
        if self.transaction is not None:
            return [self.transaction]
        return list(self.transactions)


class PdfStats(BaseModel):
    income: float = 0.0
    expenses: float = 0.0
    netAmount: float = 0.0
    count: int = 0
    incomeCount: int = 0
    expenseCount: int = 0
    byType: Dict[str, int] = Field(default_factory=dict)
    summaryExcluded: bool = True


class PdfParseResult(BaseModel):
    ok: bool
    transactions: List[Transaction] = Field(default_factory=list)
    stats: PdfStats = Field(default_factory=PdfStats)
    isSample: bool = False  # fallback demo table, not real statement data
    error: Optional[ParseError] = None


class StatementTotals(BaseModel):
    totalIncome: float = 0.0
    totalExpenses: float = 0.0
    netAmount: float = 0.0
    count: int = 0


class ProcessingResult(BaseModel):
    """Outcome of a StatementService ingestion call."""

    ok: bool
    transactions: List[Transaction] = Field(default_factory=list)
    statementRef: Optional[str] = None
    totals: Optional[StatementTotals] = None
    isBulk: bool = False
    isSample: bool = False
    persisted: bool = False  # False when the store was unreachable; transactions are still returned
    error: Optional[ParseError] = None
