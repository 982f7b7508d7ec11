# aetherfy_vectors/client.py
# SPDX-License-Identifier: Apache-2.0
"""
Async client for the Aetherfy Vectors service.

Usage:
    from aetherfy_vectors import AetherfyVectorsClient

    async with AetherfyVectorsClient(api_key="afy_test_...") as client:
        await client.create_collection("docs", {"size": 384, "distance": "cosine"})
        await client.upsert("docs", [{"id": "a", "vector": [...], "payload": {...}}])
        hits = await client.search("docs", query_vector, limit=5)

Every operation validates its inputs locally before any network call.
Collection/search/read operations retry transient failures with the
configured RetryPolicy; upserts go through the UpsertOrchestrator.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from aetherfy_vectors.auth import APIKeyManager
from aetherfy_vectors.cache import MISSING, SchemaCache
from aetherfy_vectors.config import ClientConfig
from aetherfy_vectors.exceptions import (
    AetherfyVectorsError,
    SchemaNotFoundError,
    ValidationError,
)
from aetherfy_vectors.models import (
    AnalysisResult,
    Collection,
    EnforcementMode,
    PayloadSchemaEntry,
    Point,
    PointID,
    Schema,
    SearchResult,
    VectorConfig,
)
from aetherfy_vectors.orchestrator import (
    UpsertOrchestrator,
    collection_path,
    payload_schema_path,
)
from aetherfy_vectors.transport import BaseTransport, HttpResponse, HttpxTransport, raise_for_status
from aetherfy_vectors.validators import (
    normalize_vector_config,
    validate_collection_name,
    validate_point_id,
    validate_vector,
)

LOG = logging.getLogger(__name__)

USER_AGENT = "aetherfy-vectors-python/1.0.0"


class AetherfyVectorsClient:
    """
    Client for collection, point, search and payload-schema operations.

    Args:
        config: Fully resolved configuration. When omitted, one is built with
            `ClientConfig.from_env` from the keyword arguments.
        transport: Custom transport; defaults to an HttpxTransport on the
            configured endpoint.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        enforce_payload_schema: Optional[bool] = None,
        transport: Optional[BaseTransport] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        if config is None:
            config = ClientConfig.from_env(
                api_key=api_key,
                environ=environ,
                endpoint=endpoint,
                timeout=timeout,
                enforce_payload_schema=enforce_payload_schema,
            )
        self.config = config
        self._auth = APIKeyManager(config.api_key)

        headers = {
            **self._auth.auth_headers(),
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        if transport is None:
            transport = HttpxTransport(config.endpoint, timeout=config.timeout, headers=headers)
        else:
            for key, value in headers.items():
                transport.default_headers.setdefault(key, value)
        self.transport = transport

        self.retry_policy = config.retry_policy()
        self.schema_cache = SchemaCache()
        self._upserts = UpsertOrchestrator(
            transport,
            self.schema_cache,
            self.retry_policy,
            enforce_payload_schema=config.enforce_payload_schema,
        )

    async def __aenter__(self) -> "AetherfyVectorsClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    def __repr__(self) -> str:
        return f"AetherfyVectorsClient(endpoint={self.config.endpoint!r})"

    # ------------------------------------------------------------------ #
    # Request helpers
    # ------------------------------------------------------------------ #

    async def _call(
        self,
        method: str,
        path: str,
        *,
        retry: bool = False,
        allow_status: Sequence[int] = (),
        **kwargs: Any,
    ) -> HttpResponse:
        async def attempt() -> HttpResponse:
            response = await self.transport.request(method, path, **kwargs)
            if response.status in allow_status:
                return response
            return raise_for_status(response)

        if retry:
            return await self.retry_policy.run(attempt)
        return await attempt()

    # ------------------------------------------------------------------ #
    # Collections
    # ------------------------------------------------------------------ #

    async def create_collection(
        self,
        name: str,
        vectors_config: Union[VectorConfig, Mapping[str, Any]],
        description: Optional[str] = None,
    ) -> bool:
        validate_collection_name(name)
        vectors = normalize_vector_config(vectors_config)
        response = await self._call(
            "POST",
            "/collections",
            retry=True,
            json={"name": name, "vectors": vectors, "description": description},
        )
        LOG.info("created collection %r (size=%d, distance=%s)", name, vectors["size"], vectors["distance"])
        return response.status in (200, 201)

    async def delete_collection(self, name: str) -> bool:
        validate_collection_name(name)
        await self._call("DELETE", collection_path(name))
        self.schema_cache.invalidate(name)
        return True

    async def get_collections(self) -> List[Collection]:
        response = await self._call("GET", "/collections", retry=True)
        raw = response.data.get("collections")
        if raw is None:
            raw = response.data.get("result") or []
        if isinstance(raw, Mapping):
            raw = raw.get("collections") or []
        return [Collection.from_dict(item) for item in raw]

    async def get_collection(self, name: str) -> Collection:
        validate_collection_name(name)
        response = await self._call("GET", collection_path(name), retry=True)
        data = dict(response.data.get("result") or {})
        data.setdefault("name", name)
        return Collection.from_dict(data)

    async def collection_exists(self, name: str) -> bool:
        validate_collection_name(name)
        response = await self._call("GET", collection_path(name), retry=True, allow_status=(404,))
        return response.status != 404

    # ------------------------------------------------------------------ #
    # Points
    # ------------------------------------------------------------------ #

    async def upsert(
        self,
        collection_name: str,
        points: Sequence[Union[Point, Mapping[str, Any]]],
        *,
        enforce_schema: Optional[bool] = None,
    ) -> bool:
        """
        Insert or update points.

        Vectors are checked against the collection dimension and payloads
        against its payload schema (per its enforcement mode) before writing.
        `enforce_schema` overrides the client-wide `enforce_payload_schema`
        for this call.
        """
        return await self._upserts.upsert(collection_name, points, enforce_schema=enforce_schema)

    async def delete(
        self,
        collection_name: str,
        points_selector: Union[Sequence[PointID], Mapping[str, Any]],
    ) -> bool:
        """Delete points by id list or by filter mapping."""
        validate_collection_name(collection_name)
        if isinstance(points_selector, Mapping):
            body: Dict[str, Any] = {"filter": dict(points_selector)}
        else:
            ids = list(points_selector)
            if not ids:
                raise ValidationError("Points selector cannot be empty", field="points")
            for point_id in ids:
                validate_point_id(point_id)
            body = {"points": ids}
        await self._call("POST", f"{collection_path(collection_name)}/points/delete", json=body)
        return True

    async def retrieve(
        self,
        collection_name: str,
        ids: Sequence[PointID],
        *,
        with_payload: bool = True,
        with_vectors: bool = False,
    ) -> List[Point]:
        validate_collection_name(collection_name)
        ids = list(ids)
        if not ids:
            return []
        for point_id in ids:
            validate_point_id(point_id)
        response = await self._call(
            "POST",
            f"{collection_path(collection_name)}/points",
            retry=True,
            json={"ids": ids, "with_payload": with_payload, "with_vectors": with_vectors},
        )
        return [
            Point(id=item["id"], vector=list(item.get("vector") or []), payload=item.get("payload"))
            for item in response.data.get("result") or []
        ]

    async def count(
        self,
        collection_name: str,
        *,
        count_filter: Optional[Mapping[str, Any]] = None,
        exact: bool = False,
    ) -> int:
        validate_collection_name(collection_name)
        response = await self._call(
            "POST",
            f"{collection_path(collection_name)}/points/count",
            retry=True,
            json={"filter": count_filter, "exact": exact},
        )
        return int((response.data.get("result") or {}).get("count", 0))

    # ------------------------------------------------------------------ #
    # Search
    # ------------------------------------------------------------------ #

    async def search(
        self,
        collection_name: str,
        query_vector: Sequence[float],
        *,
        limit: int = 10,
        offset: int = 0,
        query_filter: Optional[Mapping[str, Any]] = None,
        with_payload: bool = True,
        with_vectors: bool = False,
        score_threshold: Optional[float] = None,
    ) -> List[SearchResult]:
        validate_collection_name(collection_name)
        validate_vector(query_vector)
        if limit <= 0:
            raise ValidationError("limit must be positive", field="limit")
        if offset < 0:
            raise ValidationError("offset must be >= 0", field="offset")
        response = await self._call(
            "POST",
            f"{collection_path(collection_name)}/points/search",
            retry=True,
            json={
                "vector": list(query_vector),
                "limit": limit,
                "offset": offset,
                "filter": query_filter,
                "with_payload": with_payload,
                "with_vector": with_vectors,
                "score_threshold": score_threshold,
            },
        )
        return [SearchResult.from_dict(item) for item in response.data.get("result") or []]

    # ------------------------------------------------------------------ #
    # Payload schema management
    # ------------------------------------------------------------------ #

    async def get_schema(self, collection_name: str) -> Optional[Schema]:
        """Return the collection's payload schema, or None when it has none."""
        validate_collection_name(collection_name)
        cached = self.schema_cache.get_payload_schema(collection_name)
        if cached is MISSING:
            cached = await self._upserts.fetch_payload_schema(collection_name)
        return cached.schema if cached else None

    async def set_schema(
        self,
        collection_name: str,
        schema: Union[Schema, Mapping[str, Any]],
        enforcement: Union[EnforcementMode, str] = EnforcementMode.OFF,
    ) -> Optional[str]:
        """Create or replace the payload schema; returns its new ETag."""
        validate_collection_name(collection_name)
        if not isinstance(schema, Schema):
            schema = Schema.from_dict(schema)
        try:
            mode = EnforcementMode(enforcement)
        except ValueError:
            raise ValidationError(
                f"Invalid enforcement mode '{enforcement}'. Valid options: off, warn, strict",
                field="enforcement",
            ) from None
        response = await self._call(
            "PUT",
            payload_schema_path(collection_name),
            json={"schema": schema.to_dict(), "enforcement_mode": mode.value},
        )
        etag = response.data.get("etag")
        entry_etag = str(etag) if etag else None
        self.schema_cache.set_payload_schema(
            collection_name,
            PayloadSchemaEntry(schema=schema, enforcement_mode=mode, etag=entry_etag),
        )
        return entry_etag

    async def delete_schema(self, collection_name: str) -> None:
        validate_collection_name(collection_name)
        response = await self._call(
            "DELETE", payload_schema_path(collection_name), allow_status=(404,)
        )
        self.schema_cache.invalidate_payload_schema(collection_name)
        if response.status == 404:
            raise SchemaNotFoundError(
                collection_name, request_id=response.request_id, status_code=404
            )

    async def analyze_schema(self, collection_name: str, sample_size: int = 1000) -> AnalysisResult:
        """Ask the server to sample payloads and suggest a schema."""
        validate_collection_name(collection_name)
        if isinstance(sample_size, bool) or not isinstance(sample_size, int) or sample_size <= 0:
            raise ValidationError("sample_size must be a positive integer", field="sample_size")
        response = await self._call(
            "POST",
            f"{payload_schema_path(collection_name)}/analyze",
            json={"sample_size": sample_size},
        )
        return AnalysisResult.from_dict(response.data)

    async def refresh_schema(self, collection_name: str) -> Optional[Schema]:
        """Drop the cached payload schema and fetch it again."""
        validate_collection_name(collection_name)
        self.schema_cache.invalidate_payload_schema(collection_name)
        return await self.get_schema(collection_name)

    def clear_schema_cache(self, collection_name: Optional[str] = None) -> None:
        self.schema_cache.invalidate(collection_name)

    # ------------------------------------------------------------------ #
    # Misc
    # ------------------------------------------------------------------ #

    async def test_connection(self) -> bool:
        try:
            await self.get_collections()
        except AetherfyVectorsError as e:
            LOG.debug("connection test failed: %s", e)
            return False
        return True


__all__ = ["AetherfyVectorsClient"]
