# aetherfy_vectors/models.py
# SPDX-License-Identifier: Apache-2.0
"""
Data models for the Aetherfy Vectors SDK.

Everything here is a plain, typed container mirroring the shapes exchanged
with the Aetherfy Vectors service:

- Enumerations for data kinds, distance metrics and enforcement modes
- Payload schema definitions (FieldDefinition / Schema)
- Cache entries for the vector and payload schemas of a collection
- Structured validation error records
- Read models returned by the client (Collection, SearchResult, AnalysisResult)

Models are frozen dataclasses unless they are results handed back to callers.
Wire conversion lives next to each model as `to_dict()` / `from_dict()`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

PointID = Union[str, int]

# =============================================================================
# Enumerations
# =============================================================================


class DataKind(str, Enum):
    """Semantic kind of a payload value."""

    NULL = "null"
    BOOLEAN = "boolean"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    ARRAY = "array"
    OBJECT = "object"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


class DistanceMetric(str, Enum):
    """Distance metrics supported by the service."""

    COSINE = "Cosine"
    EUCLIDEAN = "Euclidean"
    DOT = "Dot"
    MANHATTAN = "Manhattan"

    def __str__(self) -> str:
        return self.value


class EnforcementMode(str, Enum):
    """How strictly a payload schema is enforced on writes."""

    OFF = "off"
    WARN = "warn"
    STRICT = "strict"

    def __str__(self) -> str:
        return self.value


class ValidationCode(str, Enum):
    """Machine-readable codes for payload validation failures."""

    REQUIRED_FIELD_MISSING = "REQUIRED_FIELD_MISSING"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    ARRAY_ELEMENT_TYPE_MISMATCH = "ARRAY_ELEMENT_TYPE_MISMATCH"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Payload schema
# =============================================================================


@dataclass(frozen=True)
class FieldDefinition:
    """
    One node of a payload schema.

    Attributes:
        type: Declared kind of the field value
        required: Whether the field must be present and non-null
        element_type: Kind every element must have (array fields only)
        fields: Nested schema (object fields only)
    """

    type: DataKind
    required: bool = False
    element_type: Optional[DataKind] = None
    fields: Optional[Dict[str, "FieldDefinition"]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", DataKind(self.type))
        if self.element_type is not None:
            if self.type is not DataKind.ARRAY:
                raise ValueError("element_type is only allowed on array fields")
            object.__setattr__(self, "element_type", DataKind(self.element_type))
        if self.fields is not None:
            if self.type is not DataKind.OBJECT:
                raise ValueError("fields is only allowed on object fields")
            object.__setattr__(self, "fields", dict(self.fields))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.type.value, "required": self.required}
        if self.element_type is not None:
            out["element_type"] = self.element_type.value
        if self.fields is not None:
            out["fields"] = {name: fd.to_dict() for name, fd in self.fields.items()}
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldDefinition":
        element_type = data.get("element_type", data.get("elementType"))
        nested = data.get("fields")
        return cls(
            type=DataKind(data["type"]),
            required=bool(data.get("required", False)),
            element_type=DataKind(element_type) if element_type else None,
            fields=(
                {name: cls.from_dict(fd) for name, fd in nested.items()}
                if nested is not None
                else None
            ),
        )


@dataclass(frozen=True)
class Schema:
    """A payload schema: field name -> definition, in declaration order."""

    fields: Dict[str, FieldDefinition] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", dict(self.fields))

    def to_dict(self) -> Dict[str, Any]:
        return {"fields": {name: fd.to_dict() for name, fd in self.fields.items()}}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Schema":
        return cls(
            fields={
                name: FieldDefinition.from_dict(fd)
                for name, fd in (data.get("fields") or {}).items()
            }
        )


# =============================================================================
# Points and collections
# =============================================================================


@dataclass(frozen=True)
class VectorConfig:
    """Vector configuration of a collection."""

    size: int
    distance: DistanceMetric = DistanceMetric.COSINE

    def to_dict(self) -> Dict[str, Any]:
        return {"size": self.size, "distance": str(self.distance)}


@dataclass(frozen=True)
class Point:
    """
    A single record: identifier, vector, optional payload.

    Attributes:
        id: Point identifier (string or integer)
        vector: Fixed-length numeric vector
        payload: Optional structured metadata validated against the payload schema
    """

    id: PointID
    vector: List[float]
    payload: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "vector": list(self.vector), "payload": self.payload or {}}


@dataclass
class SearchResult:
    """A single similarity search hit."""

    id: PointID
    score: float
    payload: Optional[Dict[str, Any]] = None
    vector: Optional[List[float]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SearchResult":
        return cls(
            id=data["id"],
            score=float(data.get("score", 0.0)),
            payload=data.get("payload"),
            vector=data.get("vector"),
        )


@dataclass
class Collection:
    """Collection information as reported by the service."""

    name: str
    config: Optional[VectorConfig] = None
    points_count: Optional[int] = None
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Collection":
        raw_config = data.get("config") or {}
        # Accept both the flat {size, distance} and the nested params.vectors shape.
        vectors = (raw_config.get("params") or {}).get("vectors") or raw_config
        config = None
        if vectors.get("size"):
            distance = vectors.get("distance") or DistanceMetric.COSINE
            try:
                distance = DistanceMetric(distance)
            except ValueError:
                pass
            config = VectorConfig(size=int(vectors["size"]), distance=distance)
        points_count = data.get("points_count", data.get("pointsCount"))
        return cls(
            name=str(data.get("name", "")),
            config=config,
            points_count=int(points_count) if points_count is not None else None,
            status=data.get("status"),
        )


@dataclass
class AnalysisResult:
    """Server-side payload analysis with a suggested schema."""

    collection: str
    sample_size: int
    total_points: int
    fields: Dict[str, Dict[str, Any]]
    suggested_schema: Schema
    processing_time_ms: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalysisResult":
        return cls(
            collection=str(data.get("collection", "")),
            sample_size=int(data.get("sample_size", 0)),
            total_points=int(data.get("total_points", 0)),
            fields=dict(data.get("fields") or {}),
            suggested_schema=Schema.from_dict(data.get("suggested_schema") or {}),
            processing_time_ms=float(data.get("processing_time_ms", 0)),
        )


# =============================================================================
# Schema cache entries
# =============================================================================


@dataclass(frozen=True)
class VectorSchemaEntry:
    """
    Authoritative vector configuration of one collection at a point in time.

    Attributes:
        size: Vector dimensionality (positive)
        distance: Distance metric
        etag: Opaque schema version used as a concurrency token
    """

    size: int
    distance: Union[DistanceMetric, str]
    etag: Optional[str] = None


@dataclass(frozen=True)
class PayloadSchemaEntry:
    """
    Registered payload schema of one collection.

    `schema=None` means the server reported no field definitions.
    """

    schema: Optional[Schema]
    enforcement_mode: EnforcementMode = EnforcementMode.OFF
    etag: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "enforcement_mode", EnforcementMode(self.enforcement_mode))


# =============================================================================
# Validation error records
# =============================================================================


@dataclass(frozen=True)
class FieldValidationError:
    """One violated field rule."""

    field: str
    code: ValidationCode
    message: str
    expected: Optional[DataKind] = None
    actual: Optional[DataKind] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "field": self.field,
            "code": self.code.value,
            "message": self.message,
        }
        if self.expected is not None:
            out["expected"] = self.expected.value
        if self.actual is not None:
            out["actual"] = self.actual.value
        return out


@dataclass(frozen=True)
class VectorValidationError:
    """All field violations for one item of a batch."""

    index: int
    id: PointID
    errors: List[FieldValidationError]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "id": self.id,
            "errors": [e.to_dict() for e in self.errors],
        }


__all__ = [
    "PointID",
    "DataKind",
    "DistanceMetric",
    "EnforcementMode",
    "ValidationCode",
    "FieldDefinition",
    "Schema",
    "VectorConfig",
    "Point",
    "SearchResult",
    "Collection",
    "AnalysisResult",
    "VectorSchemaEntry",
    "PayloadSchemaEntry",
    "FieldValidationError",
    "VectorValidationError",
]
