"""Elasticsearch-backed transaction store."""
from __future__ import annotations
import time
from typing import Any, Dict, List, Optional

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import ApiError, NotFoundError, TransportError
from elasticsearch.helpers import BulkIndexError, bulk

from core.errors import ExternalServiceError
from core.logger import get_logger
from core.storage import DEFAULT_FIND_LIMIT, TransactionStore, store_id_for
from models.intent import FilterDescriptor
from models.schema import Category, Transaction
from .mappings import mapping_transactions
from .query_builders import q_by_statement, q_transactions

log = get_logger("elastic/store")


def to_doc(transaction: Transaction) -> Dict[str, Any]:
    """Transaction -> Elasticsearch _source; None values are dropped."""
    doc = transaction.model_dump(mode="json", exclude={"id"})
    return {k: v for k, v in doc.items() if v is not None}


def from_hit(hit: Dict[str, Any]) -> Transaction:
    return Transaction.model_validate({**hit["_source"], "id": hit["_id"]})


class ElasticTransactionStore(TransactionStore):
    """
    Transactions stored one document per transaction.

    Document ids are derived from (userId, transactionId), so re-ingesting
    the same message or statement does not create duplicates.
    """

    def __init__(self, index_name: str, client: Optional[Elasticsearch] = None):
        self.index_name = index_name
        self._client = client
        self._index_checked = False

    @property
    def client(self) -> Elasticsearch:
        if self._client is None:
            from .client import es
            self._client = es()
        return self._client

    def ensure_index(self) -> None:
        if self._index_checked:
            return
        try:
            if not self.client.indices.exists(index=self.index_name):
                self.client.indices.create(index=self.index_name, body=mapping_transactions())
                log.info(f"Created transactions index: {self.index_name}")
            else:
                log.debug(f"Transactions index exists: {self.index_name}")
        except (ApiError, TransportError) as e:
            log.error(f"Failed to ensure index {self.index_name}: {e}", exc_info=True)
            raise ExternalServiceError("Could not prepare transactions index", details=str(e))
        self._index_checked = True

    def insert_transactions(self, transactions: List[Transaction]) -> List[Transaction]:
        start_time = time.time()
        if not transactions:
            log.debug("No transactions to index, skipping bulk operation")
            return []

        self.ensure_index()
        stored = [t.model_copy(update={"id": store_id_for(t)}) for t in transactions]
        # op_type=create: documents already stored for the same user are skipped
        actions = [
            {"_op_type": "create", "_index": self.index_name, "_id": t.id, "_source": to_doc(t)}
            for t in stored
        ]

        try:
            success, errors = bulk(self.client, actions, raise_on_error=False, refresh="wait_for")
        except (ApiError, TransportError, BulkIndexError) as e:
            log.error(f"Bulk index failed: index={self.index_name} error={e}", exc_info=True)
            raise ExternalServiceError("Failed to store transactions", details=str(e))

        failed_ids = []
        duplicates = 0
        for item in errors or []:
            info = item.get("create", {})
            if info.get("status") == 409:
                duplicates += 1
            else:
                log.warning(f"Failed to index transaction: id={info.get('_id')} error={info.get('error')}")
                failed_ids.append(info.get("_id"))

        elapsed = time.time() - start_time
        log.info(
            f"Bulk index complete: index={self.index_name} indexed={success} "
            f"duplicates={duplicates} failed={len(failed_ids)} elapsed={elapsed:.2f}s"
        )
        if failed_ids:
            raise ExternalServiceError(
                f"Failed to store {len(failed_ids)} of {len(stored)} transactions",
                details=f"ids={failed_ids}",
            )
        # duplicates are already stored under the same id
        return stored

    def find_transactions(
        self, user_id: str, descriptor: FilterDescriptor, limit: int = DEFAULT_FIND_LIMIT
    ) -> List[Transaction]:
        body = q_transactions(descriptor.model_copy(update={"userId": user_id}), limit=limit)
        try:
            response = self.client.search(index=self.index_name, body=body)
        except NotFoundError:
            log.warning(f"Transactions index missing: {self.index_name}")
            return []
        except (ApiError, TransportError) as e:
            log.error(f"Transaction search failed: {e}", exc_info=True)
            raise ExternalServiceError("Failed to search transactions", details=str(e))

        hits = response.get("hits", {}).get("hits", [])
        log.debug(f"Found {len(hits)} transactions: user={user_id} limit={limit}")
        return [from_hit(hit) for hit in hits]

    def update_transaction_category(self, store_id: str, category: Category) -> bool:
        try:
            self.client.update(index=self.index_name, id=store_id, body={"doc": {"category": category.value}})
        except NotFoundError:
            log.warning(f"Transaction not found for category update: id={store_id}")
            return False
        except (ApiError, TransportError) as e:
            log.error(f"Category update failed: id={store_id} error={e}", exc_info=True)
            raise ExternalServiceError("Failed to update category", details=str(e))
        return True

    def delete_transactions_by_statement(self, user_id: str, statement_ref: str) -> int:
        try:
            response = self.client.delete_by_query(
                index=self.index_name, body=q_by_statement(user_id, statement_ref), refresh=True
            )
        except NotFoundError:
            return 0
        except (ApiError, TransportError) as e:
            log.error(f"Delete by statement failed: statement={statement_ref} error={e}", exc_info=True)
            raise ExternalServiceError("Failed to delete statement transactions", details=str(e))

        deleted = int(response.get("deleted", 0))
        log.info(f"Deleted {deleted} transactions: user={user_id} statement={statement_ref}")
        return deleted
