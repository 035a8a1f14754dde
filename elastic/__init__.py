from .query_builders import build_transaction_filter, q_transactions
