"""
Errors raised by the CRI client.

DialError and RuntimeValidationError are bootstrap failures and safe to retry;
the retrier turns repeated ones into RetriesExhaustedError. QueryError covers
RPCs made after bootstrap and is never retried here.
"""
from typing import Optional

import grpc


class CRIError(Exception):
    """Base exception for the CRI client."""


class DialError(CRIError):
    """Runtime socket unreachable or not ready within the connect timeout."""


class RuntimeValidationError(CRIError):
    """Socket accepted the connection but the Version call failed."""

    def __init__(self, message: str, code: Optional[grpc.StatusCode] = None) -> None:
        super().__init__(message)
        self.code = code


class QueryError(CRIError):
    def __init__(self, message: str, code: Optional[grpc.StatusCode] = None) -> None:
        super().__init__(message)
        self.code = code

    @classmethod
    def from_rpc_error(cls, method: str, err: grpc.RpcError) -> "QueryError":
        code = err.code() if hasattr(err, "code") else None
        details = err.details() if hasattr(err, "details") else str(err)
        klass = QueryTimeoutError if code == grpc.StatusCode.DEADLINE_EXCEEDED else cls
        name = code.name if code is not None else "UNKNOWN"
        return klass(f"{method} failed: {name}: {details}", code)


class QueryTimeoutError(QueryError):
    """The call did not complete before its deadline."""


class NotInitializedError(QueryError):
    """Query issued on a client that is not bootstrapped, or already closed."""
