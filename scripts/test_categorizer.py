#!/usr/bin/env python3
"""Tests for Gemini-backed categorization with an injected fake model."""
from __future__ import annotations
import sys
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

# Add project root to path
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import pytest

from llm.categorizer import TransactionCategorizer, _extract_json_from_response, parse_categories
from models.schema import Category, Transaction, TransactionType


def _txn(txn_id: str, category: Category = Category.OTHER) -> Transaction:
    return Transaction(
        transactionId=txn_id,
        date=datetime(2024, 6, 5, 14, 30),
        type=TransactionType.PAYMENT,
        amount=1200.0,
        counterparty="NAIVAS SUPERMARKET",
        category=category,
    )


class FakeModel:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    def generate_content(self, prompt, generation_config=None):
        self.prompts.append(prompt)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(text=response)


def test_extract_json_strips_code_fences():
    assert _extract_json_from_response('```json\n["FOOD"]\n```') == '["FOOD"]'
    assert _extract_json_from_response('  ["FOOD"]  ') == '["FOOD"]'


def test_parse_categories_maps_unknown_to_other():
    assert parse_categories('["food", "bogus"]', 2) == [Category.FOOD, Category.OTHER]


@pytest.mark.parametrize("payload", ["not json", '{"a": 1}', '["FOOD"]'])
def test_parse_categories_rejects_bad_payloads(payload):
    with pytest.raises(ValueError):
        parse_categories(payload, 2)


def test_categorize_with_fenced_response():
    model = FakeModel('```json\n["FOOD", "bogus"]\n```')
    categorizer = TransactionCategorizer(model=model, sleep=lambda _: None)

    assert categorizer.categorize([_txn("A"), _txn("B")]) == [Category.FOOD, Category.OTHER]
    assert "NAIVAS SUPERMARKET" in model.prompts[0]


def test_retries_then_keeps_current_categories():
    sleeps = []
    model = FakeModel(*[RuntimeError("quota")] * 3)
    categorizer = TransactionCategorizer(model=model, retries=2, sleep=sleeps.append)

    result = categorizer.categorize([_txn("A", Category.SHOPPING)])

    assert result == [Category.SHOPPING]
    assert len(model.prompts) == 3
    assert sleeps == [1, 2]


def test_recovers_after_transient_failure():
    model = FakeModel(RuntimeError("timeout"), '["TRANSPORT"]')
    categorizer = TransactionCategorizer(model=model, sleep=lambda _: None)

    assert categorizer.categorize([_txn("A")]) == [Category.TRANSPORT]


def test_wrong_length_keeps_current_categories():
    model = FakeModel('["FOOD"]')
    categorizer = TransactionCategorizer(model=model, sleep=lambda _: None)

    assert categorizer.categorize([_txn("A"), _txn("B", Category.HEALTH)]) == [Category.OTHER, Category.HEALTH]


def test_empty_batch_makes_no_call():
    model = FakeModel()
    assert TransactionCategorizer(model=model).categorize([]) == []
    assert model.prompts == []
