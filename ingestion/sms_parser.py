"""SMS parsing entry point: classify, extract, score."""
from __future__ import annotations
from typing import Any, List

from core.errors import NoTransactionsFoundError, PesaSyncError, UnsupportedFormatError
from core.logger import get_logger
from ingestion.combined_statement import parse_combined_statement
from ingestion.confidence import score_confidence
from ingestion.sms_classifier import classify_sms
from ingestion.sms_extractor import build_transaction, extract_fields
from models.results import ParseError, SmsParseResult
from models.schema import SmsFormat, Transaction

log = get_logger("ingestion/sms_parser")


def parse_sms(text: Any) -> SmsParseResult:
    """
    Parse one M-Pesa SMS into a transaction (or several for combined statements).

    Never raises for string input: failures come back as ok=False with a
    coded error (UNSUPPORTED_FORMAT, NO_TRANSACTIONS, SMS_PARSE_ERROR).

    Args:
        text: Raw SMS text

    Returns:
        SmsParseResult
    """
    if not isinstance(text, str):
        return SmsParseResult(
            ok=False,
            error=ParseError(code="INVALID_INPUT", message="SMS text must be a string"),
        )

    try:
        sms_format = classify_sms(text)

        if sms_format is SmsFormat.COMBINED_STATEMENT:
            return parse_combined_statement(text)

        if sms_format is SmsFormat.UNRECOGNIZED:
            log.info(f"Unsupported SMS format: preview={text.strip()[:60]!r}")
            return SmsParseResult(
                ok=False,
                error=ParseError(code="UNSUPPORTED_FORMAT", message="Unsupported SMS format"),
            )

        fields = extract_fields(text, sms_format)
        confidence = score_confidence(fields)
        transaction = build_transaction(fields, confidence)

        log.info(
            f"Parsed SMS: format={transaction.format} id={transaction.transactionId} "
            f"amount={transaction.amount} confidence={confidence}"
        )
        if transaction.needs_verification():
            log.warning(
                f"Low-confidence SMS needs verification: id={transaction.transactionId} "
                f"confidence={confidence} defaulted={fields.defaulted}"
            )
        return SmsParseResult(ok=True, transaction=transaction)

    except Exception as e:
        log.error(f"SMS parsing failed: {type(e).__name__}: {e}", exc_info=True)
        return SmsParseResult(
            ok=False,
            error=ParseError(
                code="SMS_PARSE_ERROR",
                message="Failed to parse SMS message",
                details=str(e),
            ),
        )


def parse_sms_or_raise(text: str) -> List[Transaction]:
    """
    Raising variant of parse_sms for callers without result handling.

    Raises:
        UnsupportedFormatError: No format matched
        NoTransactionsFoundError: Combined statement yielded nothing
        PesaSyncError: Any other parse failure
    """
    result = parse_sms(text)
    if result.ok:
        return result.all_transactions

    error = result.error
    if error.code == "UNSUPPORTED_FORMAT":
        raise UnsupportedFormatError(error.message, details=error.details)
    if error.code == "NO_TRANSACTIONS":
        raise NoTransactionsFoundError(error.message, details=error.details)
    raise PesaSyncError(error.message, details=error.details)


def parse_sms_batch(messages: List[str]) -> List[SmsParseResult]:
    """Parse many messages independently; output order follows input order."""
    results = [parse_sms(message) for message in messages]
    parsed = sum(1 for r in results if r.ok)
    log.info(f"Parsed SMS batch: total={len(results)} ok={parsed} failed={len(results) - parsed}")
    return results
