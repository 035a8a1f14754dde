#!/usr/bin/env python3
"""Tests for the ingestion/retrieval service over the in-memory store."""
from __future__ import annotations
import sys
from datetime import date, datetime
from pathlib import Path

# Add project root to path
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import pytest

from core.errors import ExternalServiceError
from core.storage import InMemoryTransactionStore, TransactionStore
from ingestion.pdf_summary import SAMPLE_SUMMARY_ROWS
from models.schema import Category, TransactionType
from services.statement_service import StatementService, compute_statement_totals

RECEIVED_SMS = (
    "QWE123ABC Confirmed. You have received Ksh1,500.00 from JANE DOE 254700000000 "
    "on 5/6/24 at 2:30 PM. New M-PESA balance is Ksh10,000.00."
)
COMBINED_SMS = (
    "ABC1234567 Confirmed. [20240105; ;Customer Transfer;JOHN DOE;Ksh500.00]Completed "
    "[20240106; ;Bundle Purchase;SAFARICOM;Ksh100.00]Completed"
)


class FailingStore(TransactionStore):
    def insert_transactions(self, transactions):
        raise ExternalServiceError("Failed to store transactions", details="connection refused")

    def find_transactions(self, user_id, descriptor, limit=10):
        raise ExternalServiceError("Failed to search transactions")


class FixedCategorizer:
    def __init__(self, category: Category):
        self.category = category
        self.calls = []

    def categorize(self, transactions):
        self.calls.append(list(transactions))
        return [self.category for _ in transactions]


@pytest.fixture
def store():
    return InMemoryTransactionStore()


@pytest.fixture
def service(store):
    return StatementService(store=store)


def test_sms_round_trip_to_question(service):
    result = service.process_sms_message(RECEIVED_SMS, "u1")

    assert result.ok and result.persisted and not result.isBulk
    assert result.statementRef is None
    assert result.transactions[0].userId == "u1"
    assert result.transactions[0].id
    assert result.totals.totalIncome == 1500.0

    found = service.find_relevant_transactions("u1", "what did I receive in June 2024", today=date(2024, 7, 1))
    assert [t.transactionId for t in found] == ["QWE123ABC"]

    assert service.find_relevant_transactions("u2", "what did I receive in June 2024", today=date(2024, 7, 1)) == []
    assert service.find_relevant_transactions("u1", "what did I receive in May 2024", today=date(2024, 7, 1)) == []


def test_unparsable_sms_is_not_stored(service, store):
    result = service.process_sms_message("Your parcel has arrived.", "u1")

    assert not result.ok
    assert result.error.code == "UNSUPPORTED_FORMAT"
    assert len(store) == 0


def test_duplicate_message_is_stored_once(service, store):
    first = service.process_sms_message(RECEIVED_SMS, "u1")
    second = service.process_sms_message(RECEIVED_SMS, "u1")
    assert len(store) == 1
    assert second.persisted
    assert [t.id for t in second.transactions] == [t.id for t in first.transactions]

    # same message from another user is a different record
    service.process_sms_message(RECEIVED_SMS, "u2")
    assert len(store) == 2


def test_combined_statement_gets_statement_ref(service):
    result = service.process_sms_message(COMBINED_SMS, "u1")

    assert result.ok and result.isBulk
    assert result.statementRef == "COMBINED-ABC1234567"
    assert {t.statementRef for t in result.transactions} == {"COMBINED-ABC1234567"}
    assert result.totals.totalExpenses == 600.0

    assert service.delete_statement("u1", "COMBINED-ABC1234567") == 2


def test_pdf_sample_statement(service):
    result = service.process_pdf_statement(None, "u1", statement_date=datetime(2024, 3, 31))

    assert result.ok and result.isBulk and result.isSample
    assert result.statementRef.startswith("PDF-")
    assert len(result.transactions) == 18
    assert result.totals.count == 17
    assert result.totals.totalIncome == pytest.approx(sum(r[1] for r in SAMPLE_SUMMARY_ROWS))
    assert result.totals.totalExpenses == pytest.approx(sum(r[2] for r in SAMPLE_SUMMARY_ROWS))

    assert service.delete_statement("u2", result.statementRef) == 0
    assert service.delete_statement("u1", result.statementRef) == 18


def test_pdf_statement_ref_is_stable_per_month(service):
    first = service.process_pdf_statement(None, "u1", statement_date=datetime(2024, 3, 1))
    second = service.process_pdf_statement(None, "u1", statement_date=datetime(2024, 3, 31))
    assert first.statementRef == second.statementRef


def test_store_failure_keeps_transactions():
    service = StatementService(store=FailingStore())
    result = service.process_sms_message(RECEIVED_SMS, "u1")

    assert result.ok
    assert not result.persisted
    assert result.transactions[0].transactionId == "QWE123ABC"
    assert result.transactions[0].id is None

    assert service.find_relevant_transactions("u1", "what did I receive") == []


def test_categorizer_updates_stored_category(store):
    categorizer = FixedCategorizer(Category.FOOD)
    service = StatementService(store=store, categorizer=categorizer)

    result = service.process_sms_message(RECEIVED_SMS, "u1")
    assert result.transactions[0].category is Category.FOOD

    found = service.find_relevant_transactions("u1", "what did I receive in June 2024", today=date(2024, 7, 1))
    assert found[0].category is Category.FOOD


def test_categorizer_skips_categorized_and_summary_transactions(store):
    categorizer = FixedCategorizer(Category.FOOD)
    service = StatementService(store=store, categorizer=categorizer)

    result = service.process_pdf_statement(None, "u1", statement_date=datetime(2024, 3, 31))

    sent = [t for call in categorizer.calls for t in call]
    assert all(t.category is Category.OTHER for t in sent)
    assert not any(t.is_statement_summary for t in sent)
    utilities = [t for t in result.transactions if t.description.startswith("Pay Bill")]
    assert utilities and all(t.category is Category.UTILITIES for t in utilities)


def test_totals_ignore_summary_and_other_types():
    result = StatementService(store=InMemoryTransactionStore()).process_pdf_statement(
        None, "u1", statement_date=datetime(2024, 3, 31)
    )
    with_extra = result.transactions + [
        result.transactions[0].model_copy(update={"type": TransactionType.DEPOSIT, "amount": 99.0})
    ]
    totals = compute_statement_totals(with_extra)

    assert totals.totalIncome == result.totals.totalIncome
    assert totals.totalExpenses == result.totals.totalExpenses
    assert totals.count == 18
