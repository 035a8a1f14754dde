from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from core.config import config


class TransactionType(str, Enum):
    SENT = "SENT"
    RECEIVED = "RECEIVED"
    PAYMENT = "PAYMENT"
    WITHDRAWAL = "WITHDRAWAL"
    DEPOSIT = "DEPOSIT"
    OTHER = "OTHER"


# Types that count in income/expense arithmetic
VALID_FLOW_TYPES = frozenset({
    TransactionType.RECEIVED,
    TransactionType.SENT,
    TransactionType.PAYMENT,
    TransactionType.WITHDRAWAL,
    TransactionType.DEPOSIT,
})
EXPENSE_TYPES = frozenset({TransactionType.SENT, TransactionType.PAYMENT, TransactionType.WITHDRAWAL})


class Category(str, Enum):
    FOOD = "FOOD"
    TRANSPORT = "TRANSPORT"
    UTILITIES = "UTILITIES"
    ENTERTAINMENT = "ENTERTAINMENT"
    SHOPPING = "SHOPPING"
    HEALTH = "HEALTH"
    EDUCATION = "EDUCATION"
    HOUSING = "HOUSING"
    PERSONAL = "PERSONAL"
    SAVINGS = "SAVINGS"
    INCOME = "INCOME"
    DEBT = "DEBT"
    TRANSFER = "TRANSFER"
    BILLS = "BILLS"
    OTHER = "OTHER"


class Source(str, Enum):
    SMS = "SMS"
    PDF = "PDF"
    MANUAL = "MANUAL"
    TEST = "TEST"


class SmsFormat(str, Enum):
    RECEIVED = "RECEIVED"
    SENT = "SENT"
    BUSINESS_PAYMENT = "BUSINESS_PAYMENT"
    WITHDRAWAL = "WITHDRAWAL"
    AIRTIME = "AIRTIME"
    COMBINED_STATEMENT = "COMBINED_STATEMENT"
    UNRECOGNIZED = "UNRECOGNIZED"

    @property
    def template(self) -> str:
        """Extraction template tag stored on the transaction."""
        if self is SmsFormat.COMBINED_STATEMENT:
            return "MPESA_COMBINED"
        if self is SmsFormat.UNRECOGNIZED:
            return "OTHER"
        return f"MPESA_{self.value}"


STATEMENT_SUMMARY_MARKER = "M-Pesa Statement Summary"


class Transaction(BaseModel):
    """Canonical transaction record produced by every extractor."""

    transactionId: str
    date: datetime
    type: TransactionType
    amount: float = Field(ge=0)
    balance: Optional[float] = None  # absent is valid, never assumed zero
    counterparty: str = ""
    description: str = ""
    category: Category = Category.OTHER
    source: Source = Source.MANUAL
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    format: str = "OTHER"
    parsingMethod: str = "enhanced"
    mpesaReference: Optional[str] = None
    statementRef: Optional[str] = None
    userId: Optional[str] = None
    id: Optional[str] = None  # assigned by the store
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "validate_assignment": True,
    }

    @field_validator("counterparty", "description", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.RECEIVED

    @property
    def is_expense(self) -> bool:
        return self.type in EXPENSE_TYPES

    @property
    def is_statement_summary(self) -> bool:
        """Synthetic PDF audit anchor; excluded from aggregate totals."""
        return bool(self.metadata.get("isStatementSummary")) or (
            self.source == Source.PDF and self.description.startswith(STATEMENT_SUMMARY_MARKER)
        )

    def needs_verification(self, threshold: Optional[float] = None) -> bool:
        """Low-confidence extraction; the threshold defaults to config.confidence_threshold."""
        if threshold is None:
            threshold = config.confidence_threshold
        return self.confidence < threshold


class SummaryLine(BaseModel):
    """One row of the PDF 'transaction type / paid in / paid out' table."""

    transactionType: str
    paidIn: float = Field(default=0.0, ge=0)
    paidOut: float = Field(default=0.0, ge=0)

    @field_validator("transactionType", mode="before")
    @classmethod
    def _strip_type(cls, value: Any) -> str:
        return str(value).strip() if value is not None else ""


class CombinedStatementBlock(BaseModel):
    """One bracketed sub-record of a combined-statement SMS."""

    dateCode: str = Field(pattern=r"^\d{8}$")
    description: str
    counterparty: str = ""
    amount: float = Field(ge=0)
