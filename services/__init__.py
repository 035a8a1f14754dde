from .statement_service import StatementService, compute_statement_totals
