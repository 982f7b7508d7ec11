# aetherfy_vectors/cache.py
# SPDX-License-Identifier: Apache-2.0
"""
In-memory schema cache.

Holds two independent maps keyed by collection name:

- vector schema (dimension, distance metric, ETag)
- payload schema (field definitions, enforcement mode, ETag)

The payload map distinguishes "never fetched" (`MISSING`) from "fetched, and
the collection has no schema" (`None`). There is no TTL: entries live until
they are invalidated, which happens on 412 conflicts and collection/schema
deletion.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Union

from aetherfy_vectors.models import PayloadSchemaEntry, VectorSchemaEntry

LOG = logging.getLogger(__name__)


class _Missing:
    """Sentinel type for a payload schema that has never been fetched."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

PayloadLookup = Union[PayloadSchemaEntry, None, _Missing]


class SchemaCache:
    """Per-client cache of vector and payload schemas."""

    def __init__(self) -> None:
        self._vector: Dict[str, VectorSchemaEntry] = {}
        self._payload: Dict[str, Optional[PayloadSchemaEntry]] = {}

    # -- vector schema ---------------------------------------------------------

    def get_vector_schema(self, collection: str) -> Optional[VectorSchemaEntry]:
        entry = self._vector.get(collection)
        LOG.debug("vector schema cache %s for %r", "hit" if entry else "miss", collection)
        return entry

    def set_vector_schema(self, collection: str, entry: VectorSchemaEntry) -> None:
        self._vector[collection] = entry

    def invalidate_vector_schema(self, collection: str) -> None:
        self._vector.pop(collection, None)

    # -- payload schema --------------------------------------------------------

    def get_payload_schema(self, collection: str) -> PayloadLookup:
        """Return the cached entry, `None` for "no schema", or `MISSING`."""
        entry = self._payload.get(collection, MISSING)
        LOG.debug(
            "payload schema cache %s for %r",
            "miss" if entry is MISSING else "hit",
            collection,
        )
        return entry

    def set_payload_schema(self, collection: str, entry: Optional[PayloadSchemaEntry]) -> None:
        self._payload[collection] = entry

    def invalidate_payload_schema(self, collection: str) -> None:
        self._payload.pop(collection, None)

    # -- both ------------------------------------------------------------------

    def invalidate(self, collection: Optional[str] = None) -> None:
        """Drop one collection from both maps, or clear everything."""
        if collection is None:
            self._vector.clear()
            self._payload.clear()
            LOG.debug("schema cache cleared")
            return
        self._vector.pop(collection, None)
        self._payload.pop(collection, None)
        LOG.debug("schema cache invalidated for %r", collection)

    def __contains__(self, collection: object) -> bool:
        return collection in self._vector or collection in self._payload


__all__ = ["MISSING", "SchemaCache"]
