"""
Transaction persistence abstraction.

Provides a unified interface for transaction storage with support for:
- In-memory storage (development and tests)
- Elasticsearch (production, see elastic/store.py)

The backend is selected from configuration by get_transaction_store().
"""
from __future__ import annotations
import threading
from typing import Dict, List, Optional

from core.logger import get_logger
from core.utils import make_id
from models.intent import FilterDescriptor
from models.schema import Category, Transaction

log = get_logger("core/storage")

DEFAULT_FIND_LIMIT = 10


def store_id_for(transaction: Transaction) -> str:
    """Stable store id: the same transaction from the same user is stored once."""
    return make_id(transaction.userId or "", transaction.transactionId)


class TransactionStore:
    """
    Abstract transaction store.

    All store implementations must inherit from this class and implement
    all methods.
    """

    def insert_transactions(self, transactions: List[Transaction]) -> List[Transaction]:
        """
        Persist transactions, skipping ones already stored for the same user.

        Args:
            transactions: Transactions with userId set

        Returns:
            Every input transaction with `id` assigned, duplicates included

        Raises:
            ExternalServiceError: If any non-duplicate transaction could not be stored
            NotImplementedError: Must be implemented by subclass
        """
        raise NotImplementedError(f"{self.__class__.__name__}.insert_transactions() must be implemented")

    def find_transactions(
        self, user_id: str, descriptor: FilterDescriptor, limit: int = DEFAULT_FIND_LIMIT
    ) -> List[Transaction]:
        """
        Find a user's transactions matching a filter, newest first.

        Raises:
            NotImplementedError: Must be implemented by subclass
        """
        raise NotImplementedError(f"{self.__class__.__name__}.find_transactions() must be implemented")

    def update_transaction_category(self, store_id: str, category: Category) -> bool:
        """
        Set the category of one stored transaction.

        Returns:
            bool: False if no transaction has that id

        Raises:
            NotImplementedError: Must be implemented by subclass
        """
        raise NotImplementedError(f"{self.__class__.__name__}.update_transaction_category() must be implemented")

    def delete_transactions_by_statement(self, user_id: str, statement_ref: str) -> int:
        """
        Delete every transaction of a user that references a statement.

        Returns:
            int: Number of deleted transactions

        Raises:
            NotImplementedError: Must be implemented by subclass
        """
        raise NotImplementedError(f"{self.__class__.__name__}.delete_transactions_by_statement() must be implemented")


class InMemoryTransactionStore(TransactionStore):
    """
    Process-local transaction store.

    Filters are evaluated with FilterDescriptor.matches. Suitable for
    development and testing environments.
    """

    def __init__(self):
        self._items: Dict[str, Transaction] = {}
        self._lock = threading.Lock()
        log.info("In-memory transaction store initialized")

    def __len__(self) -> int:
        return len(self._items)

    def insert_transactions(self, transactions: List[Transaction]) -> List[Transaction]:
        stored: List[Transaction] = []
        duplicates = 0
        with self._lock:
            for transaction in transactions:
                saved = transaction.model_copy(update={"id": store_id_for(transaction)}, deep=True)
                stored.append(saved)
                if saved.id in self._items:
                    duplicates += 1
                    continue
                self._items[saved.id] = saved.model_copy(deep=True)

        if duplicates:
            log.warning(f"Skipped {duplicates} duplicate transactions already in store")
        log.info(f"Stored {len(stored) - duplicates} transactions in memory")
        return stored

    def find_transactions(
        self, user_id: str, descriptor: FilterDescriptor, limit: int = DEFAULT_FIND_LIMIT
    ) -> List[Transaction]:
        with self._lock:
            candidates = [
                t for t in self._items.values()
                if t.userId == user_id and descriptor.matches(t)
            ]
        candidates.sort(key=lambda t: t.date, reverse=True)
        found = [t.model_copy(deep=True) for t in candidates[:limit]]
        log.debug(f"Found {len(found)}/{len(candidates)} transactions: user={user_id} limit={limit}")
        return found

    def update_transaction_category(self, store_id: str, category: Category) -> bool:
        with self._lock:
            transaction: Optional[Transaction] = self._items.get(store_id)
            if transaction is None:
                log.warning(f"Transaction not found for category update: id={store_id}")
                return False
            transaction.category = category
        log.debug(f"Updated category: id={store_id} category={category.value}")
        return True

    def delete_transactions_by_statement(self, user_id: str, statement_ref: str) -> int:
        with self._lock:
            doomed = [
                store_id for store_id, t in self._items.items()
                if t.userId == user_id and t.statementRef == statement_ref
            ]
            for store_id in doomed:
                del self._items[store_id]
        log.info(f"Deleted {len(doomed)} transactions: user={user_id} statement={statement_ref}")
        return len(doomed)


def get_transaction_store() -> TransactionStore:
    """
    Factory function to get the configured transaction store.

    - store_backend == "elastic": ElasticTransactionStore
    - Otherwise: InMemoryTransactionStore

    Raises:
        RuntimeError: If backend initialization fails
    """
    from core.config import config

    try:
        if config.store_backend == "elastic":
            from elastic.store import ElasticTransactionStore

            log.info(
                f"Using Elasticsearch transaction store: "
                f"index={config.elastic_index_transactions} environment={config.environment}"
            )
            return ElasticTransactionStore(config.elastic_index_transactions)

        log.info(f"Using in-memory transaction store: environment={config.environment}")
        return InMemoryTransactionStore()

    except Exception as e:
        log.error(f"Failed to initialize transaction store: {e}", exc_info=True)
        raise RuntimeError(f"Failed to initialize transaction store: {e}")
