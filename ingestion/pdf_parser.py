"""PDF statement entry point: summary extraction, synthesis, self-healing, stats."""
from __future__ import annotations
from collections import Counter
from datetime import datetime
from typing import Any, List, Optional

from core.config import config
from core.logger import get_logger
from ingestion.pdf_summary import extract_summary
from ingestion.pdf_synthesizer import (
    build_summary_draft,
    finalize_drafts,
    heal_transaction_types,
    synthesize_drafts,
)
from models.results import ParseError, PdfParseResult, PdfStats
from models.schema import Transaction

log = get_logger("ingestion/pdf_parser")


def compute_pdf_stats(transactions: List[Transaction]) -> PdfStats:
    """Income/expense stats over synthesized transactions, summary anchor excluded."""
    counted = [t for t in transactions if not t.is_statement_summary]
    income = sum(t.amount for t in counted if t.is_income)
    expenses = sum(t.amount for t in counted if t.is_expense)
    by_type = Counter(t.type.value for t in counted)

    return PdfStats(
        income=round(income, 2),
        expenses=round(expenses, 2),
        netAmount=round(income - expenses, 2),
        count=len(counted),
        incomeCount=sum(1 for t in counted if t.is_income),
        expenseCount=sum(1 for t in counted if t.is_expense),
        byType=dict(by_type),
    )


def parse_pdf(
    pdf_data: Any = None,
    statement_date: Optional[datetime] = None,
    *,
    strict: Optional[bool] = None,
    allow_sample: Optional[bool] = None,
    statement_ref: Optional[str] = None,
) -> PdfParseResult:
    """
    Turn an M-Pesa statement summary into synthetic transactions.

    Never raises: failures come back as ok=False with INVALID_INPUT,
    NO_TRANSACTIONS or PDF_PARSE_ERROR.

    Args:
        pdf_data: Raw statement text, structured rows, or None for the sample table
        statement_date: Date inside the statement month (defaults to now)
        strict: Skip type self-healing (defaults to config.strict_mode)
        allow_sample: Allow the sample fallback (defaults to config.pdf_sample_fallback)
        statement_ref: Optional statement reference stamped on every transaction

    Returns:
        PdfParseResult
    """
    strict = config.strict_mode if strict is None else strict
    allow_sample = config.pdf_sample_fallback if allow_sample is None else allow_sample
    statement_date = statement_date or datetime.now()

    try:
        extraction = extract_summary(pdf_data, allow_sample=allow_sample)
    except TypeError as e:
        log.warning(f"Rejected PDF input: {e}")
        return PdfParseResult(
            ok=False,
            error=ParseError(code="INVALID_INPUT", message="Unsupported PDF input", details=str(e)),
        )

    if not extraction.lines:
        return PdfParseResult(
            ok=False,
            error=ParseError(code="NO_TRANSACTIONS", message="No summary rows found in PDF statement"),
        )

    try:
        drafts = synthesize_drafts(extraction.lines, statement_date)
        drafts.append(build_summary_draft(extraction.lines, statement_date))

        if strict:
            log.debug("Strict mode: skipping transaction type self-healing")
        else:
            healed = heal_transaction_types(drafts)
            if healed:
                log.info(f"Self-healing repaired {healed} transaction types")

        transactions = finalize_drafts(drafts, statement_ref=statement_ref)
    except Exception as e:
        log.error(f"PDF parsing failed: {type(e).__name__}: {e}", exc_info=True)
        return PdfParseResult(
            ok=False,
            error=ParseError(code="PDF_PARSE_ERROR", message="Failed to parse PDF statement", details=str(e)),
        )

    stats = compute_pdf_stats(transactions)
    log.info(
        f"Parsed PDF statement: rows={len(extraction.lines)} transactions={len(transactions)} "
        f"income={stats.income} expenses={stats.expenses} sample={extraction.is_sample}"
    )
    return PdfParseResult(ok=True, transactions=transactions, stats=stats, isSample=extraction.is_sample)


def parse_pdf_file(path: str, password: Optional[str] = None, **kwargs: Any) -> PdfParseResult:
    """Read a statement PDF from disk and parse it; read failures become PDF_PARSE_ERROR."""
    from ingestion.pdf_reader import read_pdf_text

    try:
        text = read_pdf_text(path, password)
    except Exception as e:
        log.error(f"Could not read statement PDF: path={path} error={type(e).__name__}: {e}")
        return PdfParseResult(
            ok=False,
            error=ParseError(code="PDF_PARSE_ERROR", message="Could not read PDF file", details=str(e)),
        )
    return parse_pdf(text, **kwargs)
