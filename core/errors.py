"""Exception types for callers that prefer raising over result objects."""
from __future__ import annotations


class PesaSyncError(Exception):
    """Base error carrying a stable machine-readable code."""

    code = "PESASYNC_ERROR"

    def __init__(self, message: str, *, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class UnsupportedFormatError(PesaSyncError):
    code = "UNSUPPORTED_FORMAT"


class NoTransactionsFoundError(PesaSyncError):
    code = "NO_TRANSACTIONS"


class ExternalServiceError(PesaSyncError):
    """A store or categorization call failed; extracted data is still valid."""

    code = "EXTERNAL_SERVICE_FAILURE"
