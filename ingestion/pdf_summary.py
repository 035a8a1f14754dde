"""
PDF statement summary extraction.

Accepts pre-structured rows, a raw text block, or nothing at all. For raw
text the table starts after the header line holding "TRANSACTION TYPE",
"PAID IN" and "PAID OUT" and runs until a line starting with "TOTAL:".
Each row ends with two numeric tokens: paid in, then paid out (last).
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from core.logger import get_logger
from core.utils import parse_amount
from models.schema import SummaryLine

log = get_logger("ingestion/pdf_summary")

HEADER_MARKERS = ("TRANSACTION TYPE", "PAID IN", "PAID OUT")
TOTAL_PREFIX = "TOTAL:"

# Offline/demo table returned when no PDF data is supplied
SAMPLE_SUMMARY_ROWS = (
    ("Cash Out", 5242.87, 9435.00),
    ("Send Money", 41981.87, 27262.00),
    ("B2C Payment", 5000.00, 0.00),
    ("Pay Bill", 3851.41, 6459.00),
    ("FSI Withdraw", 8000.00, 0.00),
    ("Cash In", 12000.00, 0.00),
    ("FSI Deposit", 0.00, 6000.00),
    ("ODRepayment", 0.00, 23745.79),
    ("Customer Merchant Payment", 3114.16, 5925.00),
    ("Customer Airtime Purchase", 50.00, 150.00),
    ("Customer Bundle Purchase", 856.48, 1120.00),
)


@dataclass(frozen=True)
class SummaryExtraction:
    """
    Attributes:
        lines: Parsed summary rows in input order
        is_sample: True when the rows are the built-in demo table
    """
    lines: List[SummaryLine]
    is_sample: bool = False


def sample_summary_lines() -> List[SummaryLine]:
    return [
        SummaryLine(transactionType=name, paidIn=paid_in, paidOut=paid_out)
        for name, paid_in, paid_out in SAMPLE_SUMMARY_ROWS
    ]


def parse_summary_text(text: str) -> List[SummaryLine]:
    """
    Parse the summary table out of raw statement text.

    Returns:
        Summary rows; empty when the header is missing
    """
    lines = text.splitlines()

    start: Optional[int] = None
    for i, line in enumerate(lines):
        if all(marker in line for marker in HEADER_MARKERS):
            start = i + 1
            break

    if start is None:
        log.warning("Summary header not found in PDF text")
        return []

    rows: List[SummaryLine] = []
    for line_no, raw in enumerate(lines[start:], start=start + 1):
        line = raw.strip()
        if line.startswith(TOTAL_PREFIX):
            break
        if not line:
            continue

        parts = line.split()
        if len(parts) < 3:
            log.warning(f"Skipping summary row {line_no}: too few tokens | row={line!r}")
            continue

        paid_out = parse_amount(parts.pop())
        paid_in = parse_amount(parts.pop())
        if paid_in is None or paid_out is None:
            log.warning(f"Skipping summary row {line_no}: malformed amounts | row={line!r}")
            continue

        rows.append(
            SummaryLine(transactionType=" ".join(parts), paidIn=paid_in, paidOut=paid_out)
        )

    log.debug(f"Parsed {len(rows)} summary rows from text")
    return rows


def _coerce_rows(rows: Iterable[Any]) -> List[SummaryLine]:
    lines: List[SummaryLine] = []
    for i, row in enumerate(rows):
        if isinstance(row, SummaryLine):
            lines.append(row)
            continue
        try:
            lines.append(SummaryLine.model_validate(row))
        except ValidationError as e:
            log.warning(f"Skipping structured summary row {i}: {e.error_count()} errors | row={row!r}")
    return lines


def extract_summary(pdf_data: Any, *, allow_sample: bool = True) -> SummaryExtraction:
    """
    Extract summary rows from any supported PDF payload.

    Args:
        pdf_data: None, raw text, a list of rows, or a dict with
            "summaryData"/"summaryTable"
        allow_sample: Return the demo table when pdf_data is None

    Returns:
        SummaryExtraction

    Raises:
        TypeError: If pdf_data is of an unsupported type
    """
    if pdf_data is None:
        if allow_sample:
            log.warning("No PDF data supplied, using built-in sample summary table")
            return SummaryExtraction(lines=sample_summary_lines(), is_sample=True)
        return SummaryExtraction(lines=[])

    if isinstance(pdf_data, str):
        return SummaryExtraction(lines=parse_summary_text(pdf_data))

    if isinstance(pdf_data, dict):
        for key in ("summaryData", "summaryTable"):
            if isinstance(pdf_data.get(key), list):
                log.debug(f"Using structured rows from '{key}'")
                return SummaryExtraction(lines=_coerce_rows(pdf_data[key]))
        raise TypeError("PDF data dict must carry a 'summaryData' or 'summaryTable' list")

    if isinstance(pdf_data, (list, tuple)):
        return SummaryExtraction(lines=_coerce_rows(pdf_data))

    raise TypeError(f"Unsupported PDF data type: {type(pdf_data).__name__}")
