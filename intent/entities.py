"""Category and amount-threshold extraction from free-text questions."""
from __future__ import annotations
import re
from typing import Callable, List, Tuple

from core.logger import get_logger
from core.utils import parse_amount
from intent.lexicon import CATEGORY_KEYWORDS, SEMANTIC_CATEGORY_RULES
from models.intent import AmountThresholds
from models.schema import Category

log = get_logger("intent/entities")


def _word_pattern(terms: Tuple[str, ...]) -> "re.Pattern[str]":
    alternation = "|".join(re.escape(term) for term in sorted(terms, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


# Category name or any of its keywords, whole-word
_CATEGORY_PATTERNS: Tuple[Tuple[Category, "re.Pattern[str]"], ...] = tuple(
    (category, _word_pattern((category.value.lower(),) + keywords))
    for category, keywords in CATEGORY_KEYWORDS.items()
)
_SEMANTIC_PATTERNS: Tuple[Tuple[Category, "re.Pattern[str]"], ...] = tuple(
    (category, _word_pattern(words)) for words, category in SEMANTIC_CATEGORY_RULES
)


def extract_categories(question: str) -> List[Category]:
    """
    Categories mentioned in a question, in lexicon order, without duplicates.

    Semantic verbs (ate, dining, driving...) add FOOD/TRANSPORT when not
    already present.
    """
    found: List[Category] = [c for c, pattern in _CATEGORY_PATTERNS if pattern.search(question)]
    for category, pattern in _SEMANTIC_PATTERNS:
        if category not in found and pattern.search(question):
            found.append(category)
    return found


_CUR = r"(?:ksh|kes)?\.?\s*"
_NUM = r"(\d[\d,]*(?:\.\d+)?)"


def _minimum(m: re.Match) -> AmountThresholds:
    return AmountThresholds(min=parse_amount(m.group(1)))


def _maximum(m: re.Match) -> AmountThresholds:
    return AmountThresholds(max=parse_amount(m.group(1)))


def _between(m: re.Match) -> AmountThresholds:
    low, high = parse_amount(m.group(1)), parse_amount(m.group(2))
    if low is not None and high is not None and low > high:
        low, high = high, low
    return AmountThresholds(min=low, max=high)


AMOUNT_RULES: Tuple[Tuple["re.Pattern[str]", Callable[[re.Match], AmountThresholds]], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), handler)
    for pattern, handler in (
        (rf"\bmore\s+than\s+{_CUR}{_NUM}", _minimum),
        (rf"\bless\s+than\s+{_CUR}{_NUM}", _maximum),
        (rf"\bat\s+least\s+{_CUR}{_NUM}", _minimum),
        (rf"\bat\s+most\s+{_CUR}{_NUM}", _maximum),
        (rf"\bbetween\s+{_CUR}{_NUM}\s+and\s+{_CUR}{_NUM}", _between),
        (rf"{_CUR}{_NUM}\s*(?:or|to)\s+{_CUR}{_NUM}", _between),
        (rf"\bover\s+{_CUR}{_NUM}", _minimum),
        (rf"\bunder\s+{_CUR}{_NUM}", _maximum),
        (rf"\bexceeding\s+{_CUR}{_NUM}", _minimum),
        (rf"\babove\s+{_CUR}{_NUM}", _minimum),
        (rf"\bbelow\s+{_CUR}{_NUM}", _maximum),
        (rf"\bgreater\s+than\s+{_CUR}{_NUM}", _minimum),
        (rf"\bsmaller\s+than\s+{_CUR}{_NUM}", _maximum),
        (rf"{_CUR}{_NUM}\s*\+", _minimum),
        (rf"{_CUR}{_NUM}\s*and\s+above\b", _minimum),
        (rf"{_CUR}{_NUM}\s*and\s+below\b", _maximum),
        (rf"{_CUR}{_NUM}\s*or\s+more\b", _minimum),
        (rf"{_CUR}{_NUM}\s*or\s+less\b", _maximum),
    )
)


def extract_amount_thresholds(question: str) -> AmountThresholds:
    """First matching amount phrase wins; no phrase means no bounds."""
    for pattern, handler in AMOUNT_RULES:
        match = pattern.search(question)
        if match:
            thresholds = handler(match)
            log.debug(f"Amount thresholds: pattern={pattern.pattern!r} min={thresholds.min} max={thresholds.max}")
            return thresholds
    return AmountThresholds()
