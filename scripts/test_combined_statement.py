#!/usr/bin/env python3
"""Tests for combined-statement SMS splitting."""
from __future__ import annotations
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from ingestion.combined_statement import categorize_by_description, parse_combined_statement
from ingestion.sms_classifier import classify_sms, is_combined_statement
from ingestion.sms_parser import parse_sms
from models.schema import Category, SmsFormat, TransactionType

COMBINED_SMS = (
    "ABC1234567 Confirmed. [20240105; ;Customer Transfer;JOHN DOE;Ksh500.00]Completed "
    "[20240106; ;Bundle Purchase;SAFARICOM;Ksh100.00]Completed"
)


def test_detects_combined_statement():
    assert is_combined_statement(COMBINED_SMS)
    assert classify_sms(COMBINED_SMS) is SmsFormat.COMBINED_STATEMENT


def test_single_completed_marker_is_not_combined():
    text = "ABC1234567 Confirmed. [20240105; ;Customer Transfer;JOHN DOE;Ksh500.00]Completed"
    assert not is_combined_statement(text)


def test_splits_every_sub_record_in_order():
    result = parse_sms(COMBINED_SMS)

    assert result.ok and result.isBulk
    first, second = result.transactions

    assert first.transactionId == "ABC1234567-1"
    assert first.type is TransactionType.SENT
    assert first.category is Category.TRANSFER
    assert first.amount == 500.0
    assert first.counterparty == "JOHN DOE"
    assert first.date == datetime(2024, 1, 5)

    assert second.transactionId == "ABC1234567-2"
    assert second.type is TransactionType.PAYMENT
    assert second.category is Category.UTILITIES
    assert second.amount == 100.0

    for txn in result.transactions:
        assert txn.balance is None
        assert txn.confidence == 0.8
        assert txn.format == "MPESA_COMBINED"
        assert txn.mpesaReference == "ABC1234567"


def test_invalid_calendar_date_block_is_skipped():
    text = (
        "ABC1234567 Confirmed. [20241345; ;Customer Transfer;JOHN DOE;Ksh500.00]Completed "
        "[20240106; ;Pay Bill;KPLC;Ksh1,000.00]Completed"
    )
    result = parse_combined_statement(text)

    assert result.ok
    assert len(result.transactions) == 1
    # index follows the block position, not the parsed count
    assert result.transactions[0].transactionId == "ABC1234567-2"
    assert result.transactions[0].category is Category.BILLS
    assert result.transactions[0].amount == 1000.0


def test_no_parsable_blocks_is_no_transactions():
    text = (
        "ABC1234567 Confirmed. [20241345; ;Transfer;A;Ksh1.00]Completed "
        "[20241399; ;Transfer;B;Ksh2.00]Completed"
    )
    result = parse_sms(text)

    assert not result.ok
    assert result.error.code == "NO_TRANSACTIONS"


def test_description_categories():
    assert categorize_by_description("Airtime Purchase") is Category.UTILITIES
    assert categorize_by_description("Customer Transfer") is Category.TRANSFER
    assert categorize_by_description("Pay Bill Online") is Category.BILLS
    assert categorize_by_description("Buy Goods") is Category.SHOPPING
    assert categorize_by_description("Something else") is Category.OTHER
