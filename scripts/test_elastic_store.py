#!/usr/bin/env python3
"""Tests for the Elasticsearch store against a fake client."""
from __future__ import annotations
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import pytest

import elastic.store as store_module
from core.errors import ExternalServiceError
from core.storage import store_id_for
from elastic.store import ElasticTransactionStore, from_hit, to_doc
from models.intent import FilterDescriptor
from models.schema import Category, Source, Transaction, TransactionType
from services.statement_service import StatementService


def _txn(txn_id: str = "QWE123ABC") -> Transaction:
    return Transaction(
        transactionId=txn_id,
        date=datetime(2024, 6, 5, 14, 30),
        type=TransactionType.RECEIVED,
        amount=1500.0,
        counterparty="JANE DOE",
        source=Source.SMS,
        userId="u1",
    )


class FakeIndices:
    def __init__(self):
        self.created = []

    def exists(self, index):
        return bool(self.created)

    def create(self, index, body):
        self.created.append((index, body))


class FakeClient:
    def __init__(self, hits=None):
        self.indices = FakeIndices()
        self.hits = hits or []
        self.searches = []
        self.updates = []
        self.deleted_queries = []

    def search(self, index, body):
        self.searches.append((index, body))
        return {"hits": {"hits": self.hits}}

    def update(self, index, id, body):
        self.updates.append((index, id, body))

    def delete_by_query(self, index, body, refresh):
        self.deleted_queries.append(body)
        return {"deleted": 3}


def test_to_doc_drops_none_and_id():
    doc = to_doc(_txn().model_copy(update={"id": "abc"}))

    assert "id" not in doc
    assert "balance" not in doc
    assert doc["type"] == "RECEIVED"
    assert doc["date"] == "2024-06-05T14:30:00"


def test_from_hit_restores_transaction():
    txn = _txn()
    restored = from_hit({"_id": "doc-1", "_source": to_doc(txn)})

    assert restored.id == "doc-1"
    assert restored.transactionId == txn.transactionId
    assert restored.date == txn.date
    assert restored.balance is None


def test_insert_creates_index_and_keeps_duplicates(monkeypatch):
    client = FakeClient()
    store = ElasticTransactionStore("txns", client=client)
    first, second = _txn("A"), _txn("B")
    captured = {}

    def fake_bulk(es_client, actions, **kwargs):
        captured["actions"] = list(actions)
        captured["kwargs"] = kwargs
        return 1, [{"create": {"_id": store_id_for(second), "status": 409}}]

    monkeypatch.setattr(store_module, "bulk", fake_bulk)
    stored = store.insert_transactions([first, second])

    assert client.indices.created[0][0] == "txns"
    assert [a["_op_type"] for a in captured["actions"]] == ["create", "create"]
    assert captured["actions"][0]["_id"] == store_id_for(first)
    assert captured["kwargs"]["raise_on_error"] is False
    assert [t.transactionId for t in stored] == ["A", "B"]
    assert stored[0].id == store_id_for(first)


def test_find_renders_descriptor_for_user():
    client = FakeClient(hits=[{"_id": "doc-1", "_source": to_doc(_txn())}])
    store = ElasticTransactionStore("txns", client=client)

    found = store.find_transactions("u1", FilterDescriptor(userId="ignored"), limit=3)

    assert [t.id for t in found] == ["doc-1"]
    index, body = client.searches[0]
    assert index == "txns"
    assert body["size"] == 3
    assert body["query"]["bool"]["must"][0] == {"term": {"userId": "u1"}}


def test_update_and_delete():
    client = FakeClient()
    store = ElasticTransactionStore("txns", client=client)

    assert store.update_transaction_category("doc-1", Category.FOOD) is True
    assert client.updates == [("txns", "doc-1", {"doc": {"category": "FOOD"}})]

    assert store.delete_transactions_by_statement("u1", "PDF-ABC") == 3
    must = client.deleted_queries[0]["query"]["bool"]["must"]
    assert {"term": {"statementRef": "PDF-ABC"}} in must


def _bulk_rejecting(transaction_id: str):
    def fake_bulk(es_client, actions, **kwargs):
        actions = list(actions)
        rejected = [a["_id"] for a in actions if a["_source"]["transactionId"] == transaction_id]
        errors = [{"create": {"_id": _id, "status": 400, "error": {"type": "mapper_parsing_exception"}}}
                  for _id in rejected]
        return len(actions) - len(rejected), errors
    return fake_bulk


def test_insert_raises_when_a_document_is_rejected(monkeypatch):
    monkeypatch.setattr(store_module, "bulk", _bulk_rejecting("B"))
    store = ElasticTransactionStore("txns", client=FakeClient())

    with pytest.raises(ExternalServiceError) as excinfo:
        store.insert_transactions([_txn("A"), _txn("B")])
    assert store_id_for(_txn("B")) in excinfo.value.details


def test_service_keeps_transactions_the_store_rejected(monkeypatch):
    monkeypatch.setattr(store_module, "bulk", _bulk_rejecting("SBC1234567-2"))
    service = StatementService(store=ElasticTransactionStore("txns", client=FakeClient()))
    combined = (
        "SBC1234567 Confirmed. [20240105; ;Customer Transfer;JOHN DOE;Ksh500.00]Completed "
        "[20240106; ;Bundle Purchase;SAFARICOM;Ksh100.00]Completed"
    )

    result = service.process_sms_message(combined, "u1")

    assert result.ok
    assert not result.persisted
    assert [t.transactionId for t in result.transactions] == ["SBC1234567-1", "SBC1234567-2"]
