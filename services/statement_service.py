"""
Statement ingestion and retrieval service.

Glues the pure parsers to the outside world: stamps user and statement
references on parsed transactions, persists them, asks the categorizer
for categories, and answers questions with matching transactions.
Store and categorizer failures never discard extracted transactions.
"""
from __future__ import annotations
from datetime import date, datetime
from typing import Any, List, Optional, Union

from core.config import config
from core.errors import ExternalServiceError
from core.logger import get_logger
from core.storage import DEFAULT_FIND_LIMIT, TransactionStore, get_transaction_store
from core.utils import format_currency, make_id
from elastic.query_builders import build_transaction_filter
from ingestion.pdf_parser import parse_pdf
from ingestion.sms_parser import parse_sms
from intent.router import extract_query_intent
from models.results import ProcessingResult, StatementTotals
from models.schema import Category, Transaction

log = get_logger("services/statement_service")


def compute_statement_totals(transactions: List[Transaction]) -> StatementTotals:
    """
    Income/expense totals over transactions.

    RECEIVED counts as income; SENT, PAYMENT and WITHDRAWAL as expenses.
    Synthetic statement summaries are excluded, their amount repeats the
    statement's income.
    """
    counted = [t for t in transactions if not t.is_statement_summary]
    income = sum(t.amount for t in counted if t.is_income)
    expenses = sum(t.amount for t in counted if t.is_expense)
    return StatementTotals(
        totalIncome=round(income, 2),
        totalExpenses=round(expenses, 2),
        netAmount=round(income - expenses, 2),
        count=len(counted),
    )


class StatementService:
    def __init__(
        self,
        store: Optional[TransactionStore] = None,
        categorizer: Optional[Any] = None,
    ):
        self.store = store if store is not None else get_transaction_store()
        if categorizer is None and config.categorizer_enabled:
            from llm.categorizer import TransactionCategorizer
            categorizer = TransactionCategorizer()
        self.categorizer = categorizer

    def _stamp(self, transactions: List[Transaction], user_id: str, statement_ref: Optional[str]) -> List[Transaction]:
        update = {"userId": user_id}
        if statement_ref is not None:
            update["statementRef"] = statement_ref
        return [t.model_copy(update=update) for t in transactions]

    def _persist(self, transactions: List[Transaction]) -> tuple[List[Transaction], bool]:
        try:
            stored = self.store.insert_transactions(transactions)
        except ExternalServiceError as e:
            log.error(f"Store unavailable, returning unsaved transactions: {e.message} details={e.details}")
            return transactions, False
        return stored, True

    def _categorize(self, transactions: List[Transaction], persisted: bool) -> List[Transaction]:
        if self.categorizer is None:
            return transactions

        pending = [i for i, t in enumerate(transactions) if t.category == Category.OTHER and not t.is_statement_summary]
        if not pending:
            return transactions

        predicted = self.categorizer.categorize([transactions[i] for i in pending])
        result = list(transactions)
        changed = 0
        for i, category in zip(pending, predicted):
            if category == result[i].category:
                continue
            result[i] = result[i].model_copy(update={"category": category})
            changed += 1
            if persisted and result[i].id:
                try:
                    self.store.update_transaction_category(result[i].id, category)
                except ExternalServiceError as e:
                    log.warning(f"Could not save category: id={result[i].id} error={e.message}")

        log.info(f"Categorization updated {changed}/{len(pending)} transactions")
        return result

    def process_sms_message(self, sms_text: str, user_id: str) -> ProcessingResult:
        """
        Parse, persist and categorize one SMS.

        Combined statements get a statement reference derived from their
        M-Pesa reference so they can be deleted together.
        """
        parsed = parse_sms(sms_text)
        if not parsed.ok:
            log.info(f"SMS not ingested: user={user_id} code={parsed.error.code}")
            return ProcessingResult(ok=False, error=parsed.error)

        transactions = parsed.all_transactions
        statement_ref = None
        if parsed.isBulk and transactions:
            statement_ref = f"COMBINED-{transactions[0].mpesaReference or make_id(sms_text)[:12]}"

        stamped = self._stamp(transactions, user_id, statement_ref)
        stored, persisted = self._persist(stamped)
        final = self._categorize(stored, persisted)

        log.info(
            f"Processed SMS: user={user_id} transactions={len(final)} "
            f"bulk={parsed.isBulk} persisted={persisted}"
        )
        return ProcessingResult(
            ok=True,
            transactions=final,
            statementRef=statement_ref,
            totals=compute_statement_totals(final),
            isBulk=parsed.isBulk,
            persisted=persisted,
        )

    def process_pdf_statement(
        self,
        pdf_data: Any,
        user_id: str,
        statement_date: Optional[datetime] = None,
        statement_ref: Optional[str] = None,
    ) -> ProcessingResult:
        """Parse, persist and categorize a PDF statement summary."""
        statement_date = statement_date or datetime.now()
        statement_ref = statement_ref or f"PDF-{make_id(user_id, statement_date.strftime('%Y-%m'))[:12].upper()}"

        parsed = parse_pdf(pdf_data, statement_date, statement_ref=statement_ref)
        if not parsed.ok:
            log.info(f"PDF not ingested: user={user_id} code={parsed.error.code}")
            return ProcessingResult(ok=False, error=parsed.error)

        stamped = self._stamp(parsed.transactions, user_id, statement_ref)
        stored, persisted = self._persist(stamped)
        final = self._categorize(stored, persisted)

        totals = compute_statement_totals(final)
        log.info(
            f"Processed PDF statement: user={user_id} statement={statement_ref} "
            f"transactions={len(final)} income={format_currency(totals.totalIncome, config.currency)} "
            f"expenses={format_currency(totals.totalExpenses, config.currency)} "
            f"sample={parsed.isSample} persisted={persisted}"
        )
        return ProcessingResult(
            ok=True,
            transactions=final,
            statementRef=statement_ref,
            totals=totals,
            isBulk=True,
            isSample=parsed.isSample,
            persisted=persisted,
        )

    def delete_statement(self, user_id: str, statement_ref: str) -> int:
        """Delete every transaction of the statement; returns how many were removed."""
        return self.store.delete_transactions_by_statement(user_id, statement_ref)

    def find_relevant_transactions(
        self,
        user_id: str,
        question: str,
        limit: int = DEFAULT_FIND_LIMIT,
        today: Union[date, datetime, None] = None,
    ) -> List[Transaction]:
        """Transactions matching the timeframe, categories and amounts named in a question."""
        intent = extract_query_intent(question, today)
        descriptor = build_transaction_filter(user_id, intent.entities)
        try:
            return self.store.find_transactions(user_id, descriptor, limit)
        except ExternalServiceError as e:
            log.error(f"Transaction lookup failed: user={user_id} error={e.message}")
            return []
