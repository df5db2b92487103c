"""Error taxonomy shared by the remote client, the local store and the UI state.

Every failure that crosses a component boundary is a :class:`CatalogError`
subclass carrying an :class:`ErrorKind`. Presentation code renders ``kind`` and
``message``; ``detail`` keeps the low-level reason for logs.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Categories of failure surfaced to callers."""

    TIMEOUT = "timeout"
    CONNECTION_FAILURE = "connection_failure"
    NOT_FOUND = "not_found"
    SERVER_FAILURE = "server_failure"
    STORE_IO = "store_io"
    STORE_OPEN = "store_open"
    UNKNOWN_TRANSPORT = "unknown_transport"


class CatalogError(Exception):
    """Base class for all typed catalog failures."""

    kind: ErrorKind = ErrorKind.UNKNOWN_TRANSPORT
    default_message = "Catalog request failed"

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.detail is not None:
            payload["detail"] = self.detail
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class RequestTimeoutError(CatalogError):
    kind = ErrorKind.TIMEOUT
    default_message = "The catalog service did not respond in time"


class ConnectionFailureError(CatalogError):
    kind = ErrorKind.CONNECTION_FAILURE
    default_message = "Could not connect to the catalog service"


class _HTTPStatusFailure(CatalogError):
    """Failure derived from a non-success HTTP status."""

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message, detail=detail)
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        return payload


class NotFoundError(_HTTPStatusFailure):
    kind = ErrorKind.NOT_FOUND
    default_message = "The requested catalog entry does not exist"


class ServerFailureError(_HTTPStatusFailure):
    kind = ErrorKind.SERVER_FAILURE
    default_message = "The catalog service returned an error"


class StoreIOError(CatalogError):
    kind = ErrorKind.STORE_IO
    default_message = "Local cache operation failed"


class StoreOpenError(CatalogError):
    kind = ErrorKind.STORE_OPEN
    default_message = "Local cache could not be opened"


class UnknownTransportError(CatalogError):
    kind = ErrorKind.UNKNOWN_TRANSPORT
    default_message = "Catalog request failed"


__all__ = [
    "CatalogError",
    "ConnectionFailureError",
    "ErrorKind",
    "NotFoundError",
    "RequestTimeoutError",
    "ServerFailureError",
    "StoreIOError",
    "StoreOpenError",
    "UnknownTransportError",
]
