"""Transaction categorization using Vertex AI Gemini."""
from __future__ import annotations
import json
import time
from typing import Any, Callable, List, Optional

from core.config import config as cfg
from core.logger import get_logger
from models.schema import Category, Transaction

log = get_logger("llm/categorizer")

DEFAULT_TEMPERATURE = 0.0
DEFAULT_MAX_RETRIES = 2
MAX_OUTPUT_TOKENS = 2048

ALLOWED_CATEGORIES = tuple(c.value for c in Category)

CATEGORIZE_PROMPT = """Categorize each of the following M-Pesa transactions into exactly one of these categories:
{categories}

Transactions (JSON, one object per line):
{transactions}

Return ONLY a JSON array of category names, one per transaction, in the same order.
Example: ["FOOD", "TRANSPORT"]
"""


def _extract_json_from_response(text: str) -> str:
    """Strip markdown code fences and a leading "json" tag from an LLM response."""
    text = text.strip()
    if text.startswith("```"):
        start = text.find("\n")
        if start != -1:
            text = text[start + 1:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    if text.startswith("json\n"):
        text = text[5:]
    return text.strip()


def _prompt_line(transaction: Transaction) -> str:
    return json.dumps({
        "type": transaction.type.value,
        "amount": transaction.amount,
        "counterparty": transaction.counterparty,
        "description": transaction.description,
    })


def _init_model() -> Any:
    from vertexai import init as vertex_init
    from vertexai.generative_models import GenerativeModel

    log.info(f"Initializing Vertex AI: project={cfg.gcp_project_id}, location={cfg.gcp_location}")
    vertex_init(project=cfg.gcp_project_id, location=cfg.gcp_location)
    return GenerativeModel(cfg.vertex_model)


def parse_categories(payload: str, expected: int) -> List[Category]:
    """
    Parse the model's JSON array into categories.

    Unknown names become OTHER.

    Raises:
        ValueError: If the payload is not a JSON array of the expected length
    """
    try:
        data = json.loads(_extract_json_from_response(payload))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON from LLM: {e}")

    if not isinstance(data, list) or len(data) != expected:
        raise ValueError(f"Expected a JSON array of {expected} categories, got {str(data)[:100]!r}")

    categories: List[Category] = []
    for raw in data:
        name = str(raw).strip().upper()
        categories.append(Category(name) if name in ALLOWED_CATEGORIES else Category.OTHER)
    return categories


class TransactionCategorizer:
    """
    Batch categorizer over a Gemini model.

    The model is created lazily from config unless one is injected, so
    tests can pass any object with a `generate_content` method.
    """

    def __init__(
        self,
        model: Optional[Any] = None,
        retries: int = DEFAULT_MAX_RETRIES,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._model = model
        self.retries = retries
        self._sleep = sleep

    @property
    def model(self) -> Any:
        if self._model is None:
            self._model = _init_model()
        return self._model

    def _invoke(self, prompt: str) -> str:
        last_err: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            try:
                resp = self.model.generate_content(
                    prompt,
                    generation_config={
                        "temperature": DEFAULT_TEMPERATURE,
                        "max_output_tokens": MAX_OUTPUT_TOKENS,
                        "response_mime_type": "application/json",
                    },
                )
                text = (resp.text or "").strip()
                if not text:
                    raise ValueError("Empty response from LLM")
                return text
            except Exception as e:
                last_err = e
                log.warning(
                    f"Categorization call failed (attempt {attempt + 1}/{self.retries + 1}): "
                    f"error={type(e).__name__}: {e}"
                )
                if attempt < self.retries:
                    self._sleep(2 ** attempt)  # 1s, 2s, 4s

        raise RuntimeError(f"Vertex AI categorization failed after {self.retries + 1} attempts: {last_err!r}")

    def categorize(self, transactions: List[Transaction]) -> List[Category]:
        """
        Predict a category for every transaction.

        Never raises: on any failure the transactions' current categories
        are returned unchanged.
        """
        if not transactions:
            return []

        current = [t.category for t in transactions]
        prompt = CATEGORIZE_PROMPT.format(
            categories=", ".join(ALLOWED_CATEGORIES),
            transactions="\n".join(_prompt_line(t) for t in transactions),
        )

        start_time = time.time()
        try:
            categories = parse_categories(self._invoke(prompt), len(transactions))
        except Exception as e:
            log.warning(f"Categorization skipped, keeping existing categories: {type(e).__name__}: {e}")
            return current

        elapsed = time.time() - start_time
        log.info(f"Categorized {len(categories)} transactions elapsed={elapsed:.2f}s")
        return categories
