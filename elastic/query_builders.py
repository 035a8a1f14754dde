"""Transaction filter building and its Elasticsearch rendering."""
from __future__ import annotations
from typing import Any, Dict, List

from core.logger import get_logger
from models.intent import AmountClause, FilterDescriptor, QueryEntities

log = get_logger("elastic/query_builders")


def build_transaction_filter(user_id: str, entities: QueryEntities) -> FilterDescriptor:
    """
    Build a storage-agnostic filter from extracted query entities.

    The amount clause is only present when at least one bound was extracted,
    and categories only when any were found.

    Args:
        user_id: Owner of the transactions
        entities: Entities from extract_query_intent

    Returns:
        FilterDescriptor
    """
    thresholds = entities.amountThresholds
    amount = None
    if not thresholds.is_empty:
        amount = AmountClause(gte=thresholds.min, lte=thresholds.max)

    descriptor = FilterDescriptor(
        userId=user_id,
        dateRange=entities.timeframe,
        categories=list(entities.categories) or None,
        amount=amount,
    )
    log.debug(
        f"Built transaction filter: user={user_id} "
        f"range={descriptor.dateRange.start.date()}..{descriptor.dateRange.end.date()} "
        f"categories={[c.value for c in descriptor.categories or []]} amount={amount}"
    )
    return descriptor


def q_transactions(
    descriptor: FilterDescriptor,
    limit: int = 10,
    sort_field: str = "date",
    sort_order: str = "desc",
) -> Dict[str, Any]:
    """
    Render a filter descriptor into an Elasticsearch listing query.

    Returns query with:
    - size=limit
    - Filters: userId, date range, categories, amount range
    - Sort by date desc (default)

    Args:
        descriptor: Filter to render
        limit: Number of results to return
        sort_field: Field to sort by
        sort_order: Sort order (asc/desc)

    Returns:
        Elasticsearch query dict
    """
    must_filters: List[Dict[str, Any]] = [{"term": {"userId": descriptor.userId}}]

    if descriptor.dateRange is not None:
        must_filters.append({
            "range": {
                "date": {
                    "gte": descriptor.dateRange.start.isoformat(),
                    "lte": descriptor.dateRange.end.isoformat(),
                }
            }
        })

    if descriptor.categories:
        must_filters.append({"terms": {"category": [c.value for c in descriptor.categories]}})

    if descriptor.amount is not None:
        amount_range: Dict[str, float] = {}
        if descriptor.amount.gte is not None:
            amount_range["gte"] = descriptor.amount.gte
        if descriptor.amount.lte is not None:
            amount_range["lte"] = descriptor.amount.lte
        must_filters.append({"range": {"amount": amount_range}})

    query_body = {
        "size": limit,
        "query": {
            "bool": {
                "must": must_filters
            }
        },
        "sort": [
            {sort_field: {"order": sort_order}}
        ],
    }
    log.info(f"Built transactions query: filters={len(must_filters)} limit={limit} sort={sort_field} {sort_order}")
    return query_body


def q_by_statement(user_id: str, statement_ref: str) -> Dict[str, Any]:
    """Query matching every transaction of a user that references a statement."""
    return {
        "query": {
            "bool": {
                "must": [
                    {"term": {"userId": user_id}},
                    {"term": {"statementRef": statement_ref}},
                ]
            }
        }
    }
