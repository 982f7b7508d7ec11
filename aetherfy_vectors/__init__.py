# aetherfy_vectors/__init__.py
# SPDX-License-Identifier: Apache-2.0
"""
Aetherfy Vectors Python SDK.

Client-side consistency and resilience layer for the Aetherfy Vectors
service: schema caching with ETag concurrency, local payload validation, and
retry of transient failures.
"""

from aetherfy_vectors.auth import APIKeyManager
from aetherfy_vectors.cache import MISSING, SchemaCache
from aetherfy_vectors.client import AetherfyVectorsClient
from aetherfy_vectors.config import ClientConfig
from aetherfy_vectors.exceptions import (
    AetherfyVectorsError,
    AuthenticationError,
    CollectionNotFoundError,
    ConflictError,
    ErrorKind,
    NetworkError,
    PointNotFoundError,
    QuotaExceededError,
    RateLimitExceededError,
    RequestTimeoutError,
    SchemaNotFoundError,
    SchemaValidationError,
    ServiceUnavailableError,
    ValidationError,
    create_error_from_response,
    is_retryable_error,
)
from aetherfy_vectors.models import (
    AnalysisResult,
    Collection,
    DataKind,
    DistanceMetric,
    EnforcementMode,
    FieldDefinition,
    FieldValidationError,
    PayloadSchemaEntry,
    Point,
    Schema,
    SearchResult,
    ValidationCode,
    VectorConfig,
    VectorSchemaEntry,
    VectorValidationError,
)
from aetherfy_vectors.orchestrator import UpsertOrchestrator, UpsertState
from aetherfy_vectors.retry import RetryPolicy, retry_with_backoff
from aetherfy_vectors.schema import detect_type, validate_payload, validate_vectors
from aetherfy_vectors.transport import BaseTransport, HttpResponse, HttpxTransport

__version__ = "1.0.0"

__all__ = [
    "__version__",
    # client
    "AetherfyVectorsClient",
    "ClientConfig",
    "APIKeyManager",
    "UpsertOrchestrator",
    "UpsertState",
    "SchemaCache",
    "MISSING",
    "BaseTransport",
    "HttpxTransport",
    "HttpResponse",
    # validation / retry
    "detect_type",
    "validate_payload",
    "validate_vectors",
    "RetryPolicy",
    "retry_with_backoff",
    # models
    "AnalysisResult",
    "Collection",
    "DataKind",
    "DistanceMetric",
    "EnforcementMode",
    "FieldDefinition",
    "FieldValidationError",
    "PayloadSchemaEntry",
    "Point",
    "Schema",
    "SearchResult",
    "ValidationCode",
    "VectorConfig",
    "VectorSchemaEntry",
    "VectorValidationError",
    # errors
    "ErrorKind",
    "AetherfyVectorsError",
    "AuthenticationError",
    "CollectionNotFoundError",
    "ConflictError",
    "NetworkError",
    "PointNotFoundError",
    "QuotaExceededError",
    "RateLimitExceededError",
    "RequestTimeoutError",
    "SchemaNotFoundError",
    "SchemaValidationError",
    "ServiceUnavailableError",
    "ValidationError",
    "create_error_from_response",
    "is_retryable_error",
]
