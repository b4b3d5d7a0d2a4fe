"""
Ledger error taxonomy.

Every public service operation either completes fully or raises one of
these. The HTTP layer maps them to status codes in one place
(see spendshare.main), so services never import FastAPI.
"""


class LedgerError(Exception):
    """Base class for all ledger failures."""

    status_code: int = 500
    retryable: bool = False
    default_code: str = "ledger_error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "code": self.code,
            "retryable": self.retryable
        }


class LedgerValidationError(LedgerError):
    """Client mistake: bad split inputs, non-positive amount, missing fields."""
    status_code = 422
    default_code = "validation_error"


class AuthorizationError(LedgerError):
    """Acting user may not perform this operation."""
    status_code = 403
    default_code = "forbidden"


class NotFoundError(LedgerError):
    status_code = 404
    default_code = "not_found"


class ConflictError(LedgerError):
    """State does not allow the transition (e.g. the owe is already paid)."""
    status_code = 409
    default_code = "conflict"


class TransientError(LedgerError):
    """Storage timeout or contention. Retry the whole operation."""
    status_code = 503
    retryable = True
    default_code = "transient"
