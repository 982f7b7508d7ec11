# aetherfy_vectors/exceptions.py
# SPDX-License-Identifier: Apache-2.0
"""
Error taxonomy for the Aetherfy Vectors SDK.

All SDK errors derive from `AetherfyVectorsError` and carry:

- a class-level `kind` (ErrorKind) used as the single discriminant for
  retry decisions and error handling,
- a machine-readable `code` (UPPER_SNAKE_CASE default per subclass),
- optional `request_id`, `status_code` and JSON-safe `details`.

`create_error_from_response` maps an HTTP status and decoded body to exactly
one error class. `is_retryable_error` is a pure function of the error kind
(plus, for rate limits, whether the server told us when to come back).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from aetherfy_vectors.models import PointID, VectorValidationError


class ErrorKind(str, Enum):
    """Discriminant shared by every SDK error."""

    GENERIC = "generic"
    VALIDATION = "validation"
    SCHEMA_VALIDATION = "schema_validation"
    SCHEMA_NOT_FOUND = "schema_not_found"
    AUTHENTICATION = "authentication"
    SERVICE_UNAVAILABLE = "service_unavailable"
    REQUEST_TIMEOUT = "request_timeout"
    NETWORK = "network"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    CONFLICT = "conflict"
    COLLECTION_NOT_FOUND = "collection_not_found"
    POINT_NOT_FOUND = "point_not_found"
    QUOTA_EXCEEDED = "quota_exceeded"


_RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.SERVICE_UNAVAILABLE,
        ErrorKind.REQUEST_TIMEOUT,
        ErrorKind.NETWORK,
    }
)


class AetherfyVectorsError(Exception):
    """
    Base exception for all Aetherfy Vectors SDK errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (UPPER_SNAKE_CASE)
        request_id: Server request id, when the failure came from a response
        status_code: HTTP status, when the failure came from a response
        details: Additional context (JSON-serializable)
    """

    kind: ErrorKind = ErrorKind.GENERIC

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        request_id: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "AETHERFY_VECTORS_ERROR"
        self.request_id = request_id
        self.status_code = status_code
        self.details = dict(details or {})

    def _extra(self) -> Dict[str, Any]:
        return {}

    def asdict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization and logging."""
        out = {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "request_id": self.request_id,
            "status_code": self.status_code,
            "details": {k: self.details[k] for k in sorted(self.details)},
        }
        out.update(self._extra())
        return out

# Subclasses set default `code` in UPPER_SNAKE_CASE where not explicitly provided.


class AuthenticationError(AetherfyVectorsError):
    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str = "Invalid or missing API key", **kwargs: Any):
        kwargs.setdefault("code", "AUTHENTICATION_ERROR")
        super().__init__(message, **kwargs)


class RateLimitExceededError(AetherfyVectorsError):
    """429. `retry_after` is in seconds when the server provides it."""

    kind = ErrorKind.RATE_LIMIT_EXCEEDED

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("code", "RATE_LIMIT_EXCEEDED")
        super().__init__(message, **kwargs)
        self.retry_after = retry_after

    def _extra(self) -> Dict[str, Any]:
        return {"retry_after": self.retry_after}


class ServiceUnavailableError(AetherfyVectorsError):
    kind = ErrorKind.SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Service temporarily unavailable", **kwargs: Any):
        kwargs.setdefault("code", "SERVICE_UNAVAILABLE")
        super().__init__(message, **kwargs)


class ValidationError(AetherfyVectorsError):
    """Request validation failure, local or reported by the server (400)."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Invalid request parameters",
        field: Optional[str] = None,
        violations: Optional[List[str]] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("code", "VALIDATION_ERROR")
        super().__init__(message, **kwargs)
        self.field = field
        self.violations = list(violations) if violations else None

    def _extra(self) -> Dict[str, Any]:
        return {"field": self.field, "violations": self.violations}


class SchemaValidationError(AetherfyVectorsError):
    """
    One or more payloads violate the collection's payload schema.

    `validation_errors` holds the typed per-item records; `errors` is the same
    content as plain dicts.
    """

    kind = ErrorKind.SCHEMA_VALIDATION

    def __init__(self, validation_errors: Iterable[VectorValidationError], **kwargs: Any):
        self.validation_errors = list(validation_errors)
        lines = [
            f"Vector {ve.index}: {e.message}"
            for ve in self.validation_errors
            for e in ve.errors
        ]
        kwargs.setdefault("code", "SCHEMA_VALIDATION_FAILED")
        super().__init__("Schema validation failed:\n" + "\n".join(lines), **kwargs)

    @property
    def errors(self) -> List[Dict[str, Any]]:
        return [ve.to_dict() for ve in self.validation_errors]

    def _extra(self) -> Dict[str, Any]:
        return {"validation_errors": self.errors}


class SchemaNotFoundError(AetherfyVectorsError):
    kind = ErrorKind.SCHEMA_NOT_FOUND

    def __init__(self, collection_name: str, **kwargs: Any):
        kwargs.setdefault("code", "SCHEMA_NOT_FOUND")
        super().__init__(f"No schema found for collection '{collection_name}'", **kwargs)
        self.collection_name = collection_name

    def _extra(self) -> Dict[str, Any]:
        return {"collection_name": self.collection_name}


class CollectionNotFoundError(AetherfyVectorsError):
    kind = ErrorKind.COLLECTION_NOT_FOUND

    def __init__(self, collection_name: str, **kwargs: Any):
        kwargs.setdefault("code", "COLLECTION_NOT_FOUND")
        super().__init__(f"Collection '{collection_name}' not found", **kwargs)
        self.collection_name = collection_name

    def _extra(self) -> Dict[str, Any]:
        return {"collection_name": self.collection_name}


class PointNotFoundError(AetherfyVectorsError):
    kind = ErrorKind.POINT_NOT_FOUND

    def __init__(self, point_id: PointID, collection_name: str, **kwargs: Any):
        kwargs.setdefault("code", "POINT_NOT_FOUND")
        super().__init__(
            f"Point '{point_id}' not found in collection '{collection_name}'", **kwargs
        )
        self.point_id = point_id
        self.collection_name = collection_name

    def _extra(self) -> Dict[str, Any]:
        return {"point_id": self.point_id, "collection_name": self.collection_name}


class RequestTimeoutError(AetherfyVectorsError):
    kind = ErrorKind.REQUEST_TIMEOUT

    def __init__(
        self,
        message: str = "Request timed out",
        timeout: Optional[float] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("code", "REQUEST_TIMEOUT")
        super().__init__(message, **kwargs)
        self.timeout = timeout

    def _extra(self) -> Dict[str, Any]:
        return {"timeout": self.timeout}


class NetworkError(AetherfyVectorsError):
    kind = ErrorKind.NETWORK

    def __init__(self, message: str = "Network error occurred", **kwargs: Any):
        kwargs.setdefault("code", "NETWORK_ERROR")
        super().__init__(message, **kwargs)


class ConflictError(AetherfyVectorsError):
    """409. Distinct from the 412 precondition failure handled during upsert."""

    kind = ErrorKind.CONFLICT

    def __init__(
        self,
        message: str = "Resource conflict",
        conflicting_resource: Optional[str] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("code", "CONFLICT")
        super().__init__(message, **kwargs)
        self.conflicting_resource = conflicting_resource

    def _extra(self) -> Dict[str, Any]:
        return {"conflicting_resource": self.conflicting_resource}


class QuotaExceededError(AetherfyVectorsError):
    kind = ErrorKind.QUOTA_EXCEEDED

    def __init__(
        self,
        message: str = "Quota exceeded",
        quota_type: Optional[str] = None,
        current: Optional[int] = None,
        limit: Optional[int] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("code", "QUOTA_EXCEEDED")
        super().__init__(message, **kwargs)
        self.quota_type = quota_type
        self.current = current
        self.limit = limit

    def _extra(self) -> Dict[str, Any]:
        return {"quota_type": self.quota_type, "current": self.current, "limit": self.limit}


# ------------------------------------------------------------------------------
# Classification
# ------------------------------------------------------------------------------


def _message_from(data: Mapping[str, Any], status_text: str) -> str:
    raw = data.get("message") or data.get("error") or status_text or "Unknown error"
    if isinstance(raw, Mapping):
        # {"error": {"message": ..., "code": ...}}
        return str(raw.get("message") or raw)
    return str(raw)


def _header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    if not headers:
        return None
    for key, value in headers.items():
        if key.lower() == name.lower():
            return value
    return None


def _parse_retry_after(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        # HTTP-date form is not supported
        return None
    return seconds if seconds >= 0 else None


def create_error_from_response(
    data: Optional[Mapping[str, Any]],
    status: int,
    status_text: str = "",
    request_id: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> AetherfyVectorsError:
    """Map an HTTP status and decoded response body to an SDK error."""
    data = data if isinstance(data, Mapping) else {}
    message = _message_from(data, status_text)
    details = data.get("details") if isinstance(data.get("details"), Mapping) else None
    common: Dict[str, Any] = {"request_id": request_id, "status_code": status}

    error = data.get("error")
    body_code = data.get("code") or (error.get("code") if isinstance(error, Mapping) else None)
    if body_code == "QUOTA_EXCEEDED":
        return QuotaExceededError(
            message,
            quota_type=data.get("quota_type", data.get("quotaType")),
            current=data.get("current"),
            limit=data.get("limit"),
            details=details,
            **common,
        )

    if status == 400:
        return ValidationError(
            message, data.get("field"), data.get("violations"), details=details, **common
        )
    if status in (401, 403):
        return AuthenticationError(message, **common)
    if status == 404:
        point_id = data.get("point_id", data.get("pointId"))
        collection = data.get("collection_name", data.get("collectionName"))
        if point_id is not None and collection:
            return PointNotFoundError(point_id, str(collection), **common)
        if collection:
            return CollectionNotFoundError(str(collection), **common)
        return AetherfyVectorsError(message, details=details, **common)
    if status == 408:
        return RequestTimeoutError(message, **common)
    if status == 409:
        return ConflictError(
            message,
            data.get("conflicting_resource", data.get("conflictingResource")),
            **common,
        )
    if status == 429:
        retry_after = _parse_retry_after(data.get("retryAfter", data.get("retry_after")))
        if retry_after is None:
            retry_after = _parse_retry_after(_header(headers, "Retry-After"))
        return RateLimitExceededError(message, retry_after, **common)
    if status in (502, 503, 504):
        return ServiceUnavailableError(message, **common)
    return AetherfyVectorsError(message, details=details, **common)


def is_retryable_error(error: Union[BaseException, ErrorKind]) -> bool:
    """
    Decide whether a failure is transient.

    Non-SDK exceptions are never retried.
    """
    if isinstance(error, ErrorKind):
        return error in _RETRYABLE_KINDS
    if not isinstance(error, AetherfyVectorsError):
        return False
    if error.kind is ErrorKind.RATE_LIMIT_EXCEEDED:
        return getattr(error, "retry_after", None) is not None
    return error.kind in _RETRYABLE_KINDS


def is_aetherfy_vectors_error(error: BaseException) -> bool:
    return isinstance(error, AetherfyVectorsError)


__all__ = [
    "ErrorKind",
    "AetherfyVectorsError",
    "AuthenticationError",
    "RateLimitExceededError",
    "ServiceUnavailableError",
    "ValidationError",
    "SchemaValidationError",
    "SchemaNotFoundError",
    "CollectionNotFoundError",
    "PointNotFoundError",
    "RequestTimeoutError",
    "NetworkError",
    "ConflictError",
    "QuotaExceededError",
    "create_error_from_response",
    "is_retryable_error",
    "is_aetherfy_vectors_error",
]
