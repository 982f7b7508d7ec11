# aetherfy_vectors/orchestrator.py
# SPDX-License-Identifier: Apache-2.0
"""
Upsert state machine.

An upsert walks these states:

    RESOLVE_VECTOR_SCHEMA -> VALIDATE_DIMENSIONS -> RESOLVE_PAYLOAD_SCHEMA
        -> VALIDATE_PAYLOADS -> SEND_WRITE -> SUCCESS
                                    |
                                    +-- 412 --> CONFLICT_RETRY -> SUCCESS | FAILURE

Local validation failures never reach the network. The write carries an
`If-Match` concurrency token built from the cached schema ETags; when the
server answers 412 (schema changed since we cached it) both cache entries are
dropped, the schemas are fetched again, the batch is revalidated, and the
write is attempted exactly once more.

The first write runs under the client's RetryPolicy for transient failures.
A 412 is a normal outcome of that write, not an error, so the policy never
sees it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from urllib.parse import quote

from aetherfy_vectors.cache import MISSING, SchemaCache
from aetherfy_vectors.exceptions import (
    AetherfyVectorsError,
    SchemaValidationError,
    ValidationError,
)
from aetherfy_vectors.models import (
    EnforcementMode,
    PayloadSchemaEntry,
    Point,
    Schema,
    VectorSchemaEntry,
)
from aetherfy_vectors.retry import RetryPolicy
from aetherfy_vectors.schema import format_validation_errors, validate_vectors
from aetherfy_vectors.transport import BaseTransport, HttpResponse, raise_for_status
from aetherfy_vectors.validators import (
    format_points_for_upsert,
    normalize_distance,
    validate_batch_size,
    validate_collection_name,
)

LOG = logging.getLogger(__name__)

PRECONDITION_FAILED = 412

PointLike = Union[Point, Mapping[str, Any]]


class UpsertState(str, Enum):
    RESOLVE_VECTOR_SCHEMA = "resolve_vector_schema"
    VALIDATE_DIMENSIONS = "validate_dimensions"
    RESOLVE_PAYLOAD_SCHEMA = "resolve_payload_schema"
    VALIDATE_PAYLOADS = "validate_payloads"
    SEND_WRITE = "send_write"
    CONFLICT_RETRY = "conflict_retry"
    SUCCESS = "success"
    FAILURE = "failure"


def collection_path(collection: str) -> str:
    return f"/collections/{quote(collection, safe='')}"


def payload_schema_path(collection: str) -> str:
    return f"/api/v1/schema/{quote(collection, safe='')}"


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


def parse_vector_schema(data: Mapping[str, Any]) -> VectorSchemaEntry:
    """Build a VectorSchemaEntry from a GET /collections/{name} body."""
    vectors = _dig(data, "result", "config", "params", "vectors")
    size = _dig(vectors, "size")
    if isinstance(size, float) and size.is_integer():
        size = int(size)
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise ValidationError("Invalid collection schema received from server")
    distance = vectors.get("distance")
    try:
        distance = normalize_distance(distance)
    except ValidationError:
        # unknown metric names are passed through untouched
        pass
    etag = data.get("schema_version")
    return VectorSchemaEntry(size=size, distance=distance, etag=str(etag) if etag else None)


def parse_payload_schema(data: Mapping[str, Any]) -> PayloadSchemaEntry:
    """Build a PayloadSchemaEntry from a GET /api/v1/schema/{name} body."""
    raw_schema = data.get("schema")
    etag = data.get("etag")
    return PayloadSchemaEntry(
        schema=Schema.from_dict(raw_schema) if raw_schema else None,
        enforcement_mode=data.get("enforcement_mode") or EnforcementMode.OFF,
        etag=str(etag) if etag else None,
    )


def concurrency_token(
    vector_schema: Optional[VectorSchemaEntry],
    payload_schema: Optional[PayloadSchemaEntry],
) -> Dict[str, str]:
    """`If-Match` header for a write; the payload schema ETag wins over the vector one."""
    if payload_schema is not None and payload_schema.etag:
        return {"If-Match": payload_schema.etag}
    if vector_schema is not None and vector_schema.etag:
        return {"If-Match": vector_schema.etag}
    return {}


def check_point_shapes(points: Sequence[Any]) -> None:
    """Reject items that are not points or whose payload is not a mapping."""
    for index, point in enumerate(points):
        if isinstance(point, Point):
            payload = point.payload
        elif isinstance(point, Mapping):
            payload = point.get("payload")
        else:
            raise ValidationError(f"Point at index {index} must be a Point or mapping")
        if payload is not None and not isinstance(payload, Mapping):
            raise ValidationError(
                f"Point at index {index} has a payload that is not an object", field="payload"
            )


def check_dimensions(points: Sequence[PointLike], expected: int) -> None:
    for point in points:
        vector = point.vector if isinstance(point, Point) else point.get("vector")
        if isinstance(vector, (str, bytes)) or not isinstance(vector, Sequence):
            raise ValidationError("Each point must have a vector array", field="vector")
        if len(vector) != expected:
            raise ValidationError(
                f"Vector dimension mismatch: expected {expected}, got {len(vector)}",
                field="vector",
            )


class UpsertOrchestrator:
    """
    Runs validated, concurrency-guarded upserts for one client.

    Args:
        transport: Request transport (non-2xx responses are returned, not raised)
        cache: Shared schema cache of the owning client
        retry_policy: Policy for transient failures of the first write
        enforce_payload_schema: Default for per-call `enforce_schema`
    """

    def __init__(
        self,
        transport: BaseTransport,
        cache: SchemaCache,
        retry_policy: Optional[RetryPolicy] = None,
        *,
        enforce_payload_schema: bool = True,
    ):
        self.transport = transport
        self.cache = cache
        self.retry_policy = retry_policy or RetryPolicy()
        self.enforce_payload_schema = enforce_payload_schema

    # -- schema resolution -----------------------------------------------------

    async def fetch_vector_schema(self, collection: str) -> VectorSchemaEntry:
        response = raise_for_status(await self.transport.get(collection_path(collection)))
        entry = parse_vector_schema(response.data)
        self.cache.set_vector_schema(collection, entry)
        return entry

    async def resolve_vector_schema(self, collection: str) -> VectorSchemaEntry:
        entry = self.cache.get_vector_schema(collection)
        if entry is None:
            entry = await self.fetch_vector_schema(collection)
        return entry

    async def fetch_payload_schema(self, collection: str) -> Optional[PayloadSchemaEntry]:
        """Fetch and cache the payload schema; a 404 caches and returns None."""
        response = await self.transport.get(payload_schema_path(collection))
        if response.status == 404:
            self.cache.set_payload_schema(collection, None)
            return None
        raise_for_status(response)
        try:
            entry = parse_payload_schema(response.data)
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError("Invalid payload schema received from server") from e
        self.cache.set_payload_schema(collection, entry)
        return entry

    async def resolve_payload_schema(self, collection: str) -> Optional[PayloadSchemaEntry]:
        cached = self.cache.get_payload_schema(collection)
        if cached is not MISSING:
            return cached
        try:
            return await self.fetch_payload_schema(collection)
        except AetherfyVectorsError as e:
            LOG.warning(
                "could not fetch payload schema for %r, continuing without it: %s",
                collection,
                e,
            )
            self.cache.set_payload_schema(collection, None)
            return None

    # -- validation ------------------------------------------------------------

    def validate_payloads(
        self,
        collection: str,
        points: Sequence[PointLike],
        entry: Optional[PayloadSchemaEntry],
        enforce: bool,
    ) -> None:
        if not enforce or entry is None or entry.schema is None:
            return
        if entry.enforcement_mode is EnforcementMode.OFF:
            return
        results = validate_vectors(points, entry.schema)
        if not results:
            return
        if entry.enforcement_mode is EnforcementMode.STRICT:
            raise SchemaValidationError(results)
        LOG.warning(
            "payload schema violations in %r (warn mode, write proceeds): %s",
            collection,
            format_validation_errors(results),
        )

    # -- write -----------------------------------------------------------------

    async def _put_points(
        self,
        collection: str,
        formatted: List[Dict[str, Any]],
        headers: Dict[str, str],
    ) -> HttpResponse:
        return await self.transport.put(
            f"{collection_path(collection)}/points",
            json={"points": formatted},
            headers=headers,
        )

    async def _send_write(
        self,
        collection: str,
        formatted: List[Dict[str, Any]],
        headers: Dict[str, str],
    ) -> HttpResponse:
        response = await self._put_points(collection, formatted, headers)
        if response.status == PRECONDITION_FAILED:
            return response
        return raise_for_status(response)

    def _transition(self, collection: str, state: UpsertState, attempt: int) -> None:
        LOG.debug("upsert %r: %s (pass %d)", collection, state.value, attempt)

    async def upsert(
        self,
        collection: str,
        points: Sequence[PointLike],
        *,
        enforce_schema: Optional[bool] = None,
    ) -> bool:
        """
        Validate and write a batch of points.

        Raises:
            ValidationError: bad input, dimension mismatch, invalid server
                schema, or a conflict that could not be resolved
            SchemaValidationError: strict-mode payload violations
            AetherfyVectorsError: any other classified failure
        """
        validate_collection_name(collection)
        points = list(points)
        validate_batch_size(points)
        check_point_shapes(points)
        enforce = self.enforce_payload_schema if enforce_schema is None else enforce_schema
        attempt = 1

        try:
            self._transition(collection, UpsertState.RESOLVE_VECTOR_SCHEMA, attempt)
            vector_schema = await self.resolve_vector_schema(collection)

            self._transition(collection, UpsertState.VALIDATE_DIMENSIONS, attempt)
            check_dimensions(points, vector_schema.size)

            self._transition(collection, UpsertState.RESOLVE_PAYLOAD_SCHEMA, attempt)
            payload_schema = await self.resolve_payload_schema(collection)

            self._transition(collection, UpsertState.VALIDATE_PAYLOADS, attempt)
            self.validate_payloads(collection, points, payload_schema, enforce)
            formatted = format_points_for_upsert(points)

            self._transition(collection, UpsertState.SEND_WRITE, attempt)
            headers = concurrency_token(vector_schema, payload_schema)
            response = await self.retry_policy.run(
                lambda: self._send_write(collection, formatted, headers)
            )

            if response.status == PRECONDITION_FAILED:
                attempt = 2
                self._transition(collection, UpsertState.CONFLICT_RETRY, attempt)
                await self._retry_after_conflict(collection, points, formatted, enforce)
        except AetherfyVectorsError:
            self._transition(collection, UpsertState.FAILURE, attempt)
            raise

        self._transition(collection, UpsertState.SUCCESS, attempt)
        return True

    async def _retry_after_conflict(
        self,
        collection: str,
        points: List[PointLike],
        formatted: List[Dict[str, Any]],
        enforce: bool,
    ) -> None:
        LOG.info("schema changed for %r since it was cached, refreshing", collection)
        self.cache.invalidate(collection)

        payload_schema = await self.resolve_payload_schema(collection)
        self.validate_payloads(collection, points, payload_schema, enforce)

        try:
            vector_schema = await self.fetch_vector_schema(collection)
            check_dimensions(points, vector_schema.size)
            headers = concurrency_token(vector_schema, payload_schema)
            raise_for_status(await self._put_points(collection, formatted, headers))
        except AetherfyVectorsError as e:
            raise ValidationError(
                f"Collection schema has changed for '{collection}'. Please retry your request."
            ) from e


__all__ = [
    "UpsertState",
    "UpsertOrchestrator",
    "parse_vector_schema",
    "parse_payload_schema",
    "concurrency_token",
    "check_dimensions",
    "check_point_shapes",
]
