#!/usr/bin/env python3
"""Tests for category and amount-threshold extraction."""
from __future__ import annotations
import sys
from pathlib import Path

# Add project root to path
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import pytest

from intent.entities import extract_amount_thresholds, extract_categories
from models.schema import Category


@pytest.mark.parametrize("question, expected", [
    ("How much did I spend on food last month?", [Category.FOOD]),
    ("my health spending", [Category.HEALTH]),
    ("uber and groceries", [Category.FOOD, Category.TRANSPORT]),
    ("my gas bill", [Category.TRANSPORT, Category.UTILITIES]),
    ("Where did I eat out?", [Category.FOOD]),
    ("driving costs", [Category.TRANSPORT]),
    ("I need to create a budget", []),
    ("rent and netflix", [Category.ENTERTAINMENT, Category.HOUSING]),
])
def test_extract_categories(question, expected):
    assert extract_categories(question) == expected


def test_categories_are_unique():
    found = extract_categories("food food dinner eating")
    assert found == [Category.FOOD]


def test_substrings_do_not_match():
    # "carpet" is not "car", "busy" is not "bus"
    assert extract_categories("carpet cleaning keeps me busy") == []


@pytest.mark.parametrize("question, minimum, maximum", [
    ("transactions more than 1,000", 1000.0, None),
    ("payments less than KSh 500", None, 500.0),
    ("at least 250", 250.0, None),
    ("at most ksh.75", None, 75.0),
    ("between 100 and 2,000", 100.0, 2000.0),
    ("from 200 to 800", 200.0, 800.0),
    ("payments over KES 5000", 5000.0, None),
    ("anything under 300", None, 300.0),
    ("exceeding 10000", 10000.0, None),
    ("1000+ transfers", 1000.0, None),
    ("500 and above", 500.0, None),
    ("500 and below", None, 500.0),
    ("500 or more", 500.0, None),
    ("500 or less", None, 500.0),
])
def test_extract_amount_thresholds(question, minimum, maximum):
    thresholds = extract_amount_thresholds(question)
    assert thresholds.min == minimum
    assert thresholds.max == maximum


def test_no_amount_phrase_means_no_bounds():
    assert extract_amount_thresholds("what did I spend last week").is_empty
