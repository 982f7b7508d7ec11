# aetherfy_vectors/validators.py
# SPDX-License-Identifier: Apache-2.0
"""
Local request validation helpers.

Every public client operation runs its inputs through these checks before any
network call, so malformed requests fail fast with `ValidationError`.
"""

from __future__ import annotations

import math
import numbers
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from aetherfy_vectors.exceptions import ValidationError
from aetherfy_vectors.models import DistanceMetric, Point, VectorConfig

MAX_BATCH_SIZE = 1000
MAX_COLLECTION_NAME_LENGTH = 255
MAX_POINT_ID_LENGTH = 255

_COLLECTION_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")

_DISTANCE_ALIASES = {
    "cosine": DistanceMetric.COSINE,
    "euclidean": DistanceMetric.EUCLIDEAN,
    "euclid": DistanceMetric.EUCLIDEAN,
    "dot": DistanceMetric.DOT,
    "manhattan": DistanceMetric.MANHATTAN,
}

_SENSITIVE_KEYS = (
    "api_key",
    "apikey",
    "authorization",
    "password",
    "secret",
    "token",
    "x-api-key",
    "bearer",
    "auth",
    "credentials",
)

REDACTED = "[REDACTED]"


def validate_collection_name(name: Any) -> None:
    if not name or not isinstance(name, str):
        raise ValidationError("Collection name must be a non-empty string", field="collection_name")
    if len(name) > MAX_COLLECTION_NAME_LENGTH:
        raise ValidationError(
            f"Collection name must be between 1 and {MAX_COLLECTION_NAME_LENGTH} characters",
            field="collection_name",
        )
    if not _COLLECTION_NAME_RE.match(name):
        raise ValidationError(
            "Collection name can only contain letters, numbers, underscores, and hyphens",
            field="collection_name",
        )


def validate_vector(vector: Any, expected_dimension: Optional[int] = None) -> None:
    """Check a vector is a non-empty sequence of finite numbers."""
    if isinstance(vector, (str, bytes)) or not isinstance(vector, Sequence):
        raise ValidationError("Vector must be a list of numbers", field="vector")
    if len(vector) == 0:
        raise ValidationError("Vector cannot be empty", field="vector")
    if expected_dimension and len(vector) != expected_dimension:
        raise ValidationError(
            f"Vector dimension mismatch: expected {expected_dimension}, got {len(vector)}",
            field="vector",
        )
    for i, value in enumerate(vector):
        if (
            isinstance(value, bool)
            or not isinstance(value, numbers.Real)
            or not math.isfinite(value)
        ):
            raise ValidationError(f"Invalid vector component at index {i}: {value!r}", field="vector")


def validate_point_id(point_id: Any) -> None:
    if point_id is None:
        raise ValidationError("Point ID cannot be None", field="id")
    if isinstance(point_id, str):
        if not point_id:
            raise ValidationError("Point ID cannot be an empty string", field="id")
        if len(point_id) > MAX_POINT_ID_LENGTH:
            raise ValidationError(
                f"Point ID cannot exceed {MAX_POINT_ID_LENGTH} characters", field="id"
            )
    elif isinstance(point_id, bool) or not isinstance(point_id, int):
        raise ValidationError("Point ID must be a string or integer", field="id")


def validate_batch_size(items: Sequence[Any], max_size: int = MAX_BATCH_SIZE) -> None:
    if len(items) == 0:
        raise ValidationError("Batch cannot be empty", field="points")
    if len(items) > max_size:
        raise ValidationError(
            f"Batch size {len(items)} exceeds maximum of {max_size}", field="points"
        )


def normalize_distance(distance: Union[DistanceMetric, str]) -> DistanceMetric:
    if isinstance(distance, DistanceMetric):
        return distance
    metric = _DISTANCE_ALIASES.get(str(distance).strip().lower())
    if metric is None:
        valid = ", ".join(m.value for m in DistanceMetric)
        raise ValidationError(
            f"Invalid distance metric '{distance}'. Valid options: {valid}", field="distance"
        )
    return metric


def normalize_vector_config(config: Union[VectorConfig, Mapping[str, Any]]) -> Dict[str, Any]:
    """Turn a VectorConfig or {size, distance} mapping into the wire shape."""
    if isinstance(config, VectorConfig):
        size, distance = config.size, config.distance
    elif isinstance(config, Mapping):
        size, distance = config.get("size"), config.get("distance", DistanceMetric.COSINE)
    else:
        raise ValidationError("Vector config must be a VectorConfig or mapping", field="vectors_config")
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise ValidationError("Vector size must be a positive integer", field="size")
    return {"size": size, "distance": normalize_distance(distance).value}


def format_points_for_upsert(points: Sequence[Union[Point, Mapping[str, Any]]]) -> List[Dict[str, Any]]:
    """Validate ids and vectors and produce the wire shape `{id, vector, payload}`."""
    formatted = []
    for index, point in enumerate(points):
        if isinstance(point, Point):
            point_id, vector, payload = point.id, point.vector, point.payload
        elif isinstance(point, Mapping):
            point_id, vector, payload = point.get("id"), point.get("vector"), point.get("payload")
        else:
            raise ValidationError(f"Point at index {index} must be a Point or mapping")
        if point_id is None or point_id == "":
            raise ValidationError(f"Point at index {index} must have an id", field="id")
        if vector is None:
            raise ValidationError(f"Point at index {index} must have a vector array", field="vector")
        validate_point_id(point_id)
        validate_vector(vector)
        formatted.append({"id": point_id, "vector": list(vector), "payload": dict(payload or {})})
    return formatted


def sanitize_for_logging(data: Any) -> Any:
    """Return a copy of `data` with credential-like keys redacted."""
    if isinstance(data, Mapping):
        out = {}
        for key, value in data.items():
            lowered = str(key).lower()
            if any(s in lowered for s in _SENSITIVE_KEYS):
                out[key] = REDACTED
            else:
                out[key] = sanitize_for_logging(value)
        return out
    if isinstance(data, (list, tuple)):
        return [sanitize_for_logging(v) for v in data]
    return data


__all__ = [
    "MAX_BATCH_SIZE",
    "REDACTED",
    "validate_collection_name",
    "validate_vector",
    "validate_point_id",
    "validate_batch_size",
    "normalize_distance",
    "normalize_vector_config",
    "format_points_for_upsert",
    "sanitize_for_logging",
]
