"""Query intent models and the storage-agnostic filter descriptor."""
from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from models.schema import Category, Transaction


class PrimaryIntent(str, Enum):
    BALANCE = "BALANCE"
    SPENDING = "SPENDING"
    INCOME = "INCOME"
    CATEGORY = "CATEGORY"
    TREND = "TREND"
    ADVICE = "ADVICE"
    GENERAL = "GENERAL"


class DateRange(BaseModel):
    """Inclusive day-bounded range: start at 00:00:00, end at 23:59:59.999999."""

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("start must be on or before end")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class AmountThresholds(BaseModel):
    """Amount bounds extracted from phrasing; both absent means no constraint."""

    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.min is None and self.max is None


class QueryEntities(BaseModel):
    timeframe: DateRange
    categories: List[Category] = Field(default_factory=list)
    amountThresholds: AmountThresholds = Field(default_factory=AmountThresholds)

    @field_validator("categories", mode="after")
    @classmethod
    def _dedupe_categories(cls, value: List[Category]) -> List[Category]:
        seen: List[Category] = []
        for category in value:
            if category not in seen:
                seen.append(category)
        return seen


class QueryIntent(BaseModel):
    """Intent classification result for one free-text question."""

    isFinancialQuery: bool = Field(..., description="Question mentions financial vocabulary")
    primaryIntent: PrimaryIntent = Field(default=PrimaryIntent.GENERAL)
    entities: QueryEntities


class IntentResponse(BaseModel):
    """Wrapper for intent classification with timing, used for logging and callers."""

    query: str = Field(..., description="Original user query")
    intent: QueryIntent = Field(..., description="Intent classification")
    timestamp: str = Field(..., description="Timestamp of classification")
    processing_time_ms: Optional[float] = Field(None, description="Processing time in milliseconds")


class AmountClause(BaseModel):
    """Amount bounds of a filter; only built when at least one bound is set."""

    gte: Optional[float] = None
    lte: Optional[float] = None

    @model_validator(mode="after")
    def _require_a_bound(self) -> "AmountClause":
        if self.gte is None and self.lte is None:
            raise ValueError("amount clause needs at least one bound")
        return self


class FilterDescriptor(BaseModel):
    """Storage-agnostic transaction query."""

    userId: str
    dateRange: Optional[DateRange] = None
    categories: Optional[List[Category]] = None
    amount: Optional[AmountClause] = None

    def matches(self, transaction: Transaction) -> bool:
        """Evaluate the descriptor against one transaction in memory."""
        if transaction.userId != self.userId:
            return False
        if self.dateRange is not None and not self.dateRange.contains(transaction.date):
            return False
        if self.categories and transaction.category not in self.categories:
            return False
        if self.amount is not None:
            if self.amount.gte is not None and transaction.amount < self.amount.gte:
                return False
            if self.amount.lte is not None and transaction.amount > self.amount.lte:
                return False
        return True
