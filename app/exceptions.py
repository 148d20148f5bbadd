"""
Error kinds raised by the ledger services.

Services raise these directly, the same way they raise HTTPException, so the
API surfaces them verbatim with a fixed status while Python callers can still
catch a specific kind.
"""
from fastapi import HTTPException, status


class LedgerError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)

    def __str__(self) -> str:
        return self.detail


class AuthenticationError(LedgerError):
    """No caller identity could be resolved"""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(LedgerError):
    """Caller is not allowed to act on the requested scope"""
    status_code = status.HTTP_403_FORBIDDEN


class ValidationError(LedgerError):
    """Request is well-formed but violates a ledger rule"""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
