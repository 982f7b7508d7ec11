# aetherfy_vectors/schema.py
# SPDX-License-Identifier: Apache-2.0
"""
Payload type detection and schema validation.

Validation is purely local: it never touches the network and never raises for
a bad payload. Callers get back a flat list of `ValidationError` records in
depth-first schema declaration order, and decide what to do with them
(the upsert path raises `SchemaValidationError` in strict mode and logs in
warn mode).

Nested object schemas are walked with an explicit stack so arbitrarily deep
schemas cannot exhaust the interpreter recursion limit.
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Mapping, Sequence, Set
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from aetherfy_vectors.models import (
    DataKind,
    FieldDefinition,
    FieldValidationError,
    Point,
    Schema,
    ValidationCode,
    VectorValidationError,
)

# Per-field record, exported under the short name used throughout the SDK.
ValidationError = FieldValidationError

_TEXT_TYPES = (str, bytes, bytearray, memoryview)

SchemaLike = Union[Schema, Mapping[str, FieldDefinition]]


def detect_type(value: Any) -> DataKind:
    """
    Classify a runtime value into a DataKind.

    Numbers are integer when they have no fractional part, so `42` and
    `42.0` both report `integer`; NaN and infinities report `float`.
    Only `Mapping` instances report `object`. Other compound values such as
    dataclass instances or `datetime` have no JSON shape and report
    `unknown`. Never raises.
    """
    if value is None:
        return DataKind.NULL
    if isinstance(value, (Sequence, Set)) and not isinstance(value, _TEXT_TYPES):
        return DataKind.ARRAY
    if isinstance(value, Mapping):
        return DataKind.OBJECT
    # bool is an int subclass
    if isinstance(value, bool):
        return DataKind.BOOLEAN
    if isinstance(value, str):
        return DataKind.STRING
    if isinstance(value, numbers.Integral):
        return DataKind.INTEGER
    if isinstance(value, Decimal):
        # sNaN raises on comparison
        if not value.is_finite():
            return DataKind.FLOAT
        return DataKind.INTEGER if value == value.to_integral_value() else DataKind.FLOAT
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return DataKind.INTEGER
        return DataKind.FLOAT
    if isinstance(value, numbers.Real):
        # exact check, float() would overflow or round large rationals
        try:
            return DataKind.INTEGER if value == math.floor(value) else DataKind.FLOAT
        except (ValueError, OverflowError, TypeError):
            return DataKind.FLOAT
    return DataKind.UNKNOWN


def _fields_of(schema: SchemaLike) -> Mapping[str, FieldDefinition]:
    if isinstance(schema, Schema):
        return schema.fields
    return schema


def validate_payload(
    payload: Optional[Mapping[str, Any]],
    schema: SchemaLike,
    path_prefix: str = "",
) -> List[ValidationError]:
    """
    Validate one payload against a schema.

    Args:
        payload: The payload mapping; None is treated as empty
        schema: Schema (or a mapping of field name -> FieldDefinition)
        path_prefix: Dotted prefix prepended to reported field paths

    Returns:
        All violations, one per violated rule. Empty when the payload is valid.
    """
    errors: List[ValidationError] = []
    frames: List[Tuple[Iterator[Tuple[str, FieldDefinition]], Mapping[str, Any], str]] = [
        (iter(_fields_of(schema).items()), payload or {}, path_prefix)
    ]

    while frames:
        fields_iter, data, prefix = frames[-1]
        entry = next(fields_iter, None)
        if entry is None:
            frames.pop()
            continue

        name, definition = entry
        path = f"{prefix}.{name}" if prefix else name
        value = data.get(name)

        if value is None:
            if definition.required:
                errors.append(
                    ValidationError(
                        field=path,
                        code=ValidationCode.REQUIRED_FIELD_MISSING,
                        message=f"Required field '{path}' is missing",
                    )
                )
            continue

        actual = detect_type(value)
        if actual is not definition.type:
            errors.append(
                ValidationError(
                    field=path,
                    code=ValidationCode.TYPE_MISMATCH,
                    message=f"Field '{path}' expected {definition.type}, got {actual}",
                    expected=definition.type,
                    actual=actual,
                )
            )
            continue

        if definition.type is DataKind.ARRAY and definition.element_type is not None:
            for i, element in enumerate(value):
                element_kind = detect_type(element)
                if element_kind is not definition.element_type:
                    errors.append(
                        ValidationError(
                            field=f"{path}[{i}]",
                            code=ValidationCode.ARRAY_ELEMENT_TYPE_MISMATCH,
                            message=(
                                f"Array element at '{path}[{i}]' expected "
                                f"{definition.element_type}, got {element_kind}"
                            ),
                            expected=definition.element_type,
                            actual=element_kind,
                        )
                    )
        elif definition.type is DataKind.OBJECT and definition.fields:
            frames.append((iter(definition.fields.items()), value, path))

    return errors


def _item_parts(item: Union[Point, Mapping[str, Any]]) -> Tuple[Any, Optional[Mapping[str, Any]]]:
    if isinstance(item, Point):
        return item.id, item.payload
    return item.get("id"), item.get("payload")


def validate_vectors(
    items: Iterable[Union[Point, Mapping[str, Any]]],
    schema: SchemaLike,
) -> List[VectorValidationError]:
    """Validate the payload of every item; only failing items are reported."""
    results: List[VectorValidationError] = []
    for index, item in enumerate(items):
        point_id, payload = _item_parts(item)
        errors = validate_payload(payload, schema)
        if errors:
            if point_id is None or point_id == "":
                point_id = "unknown"
            results.append(VectorValidationError(index=index, id=point_id, errors=errors))
    return results


def format_validation_errors(results: Iterable[VectorValidationError]) -> Dict[str, Any]:
    """Summarise batch validation results for log lines."""
    results = list(results)
    return {
        "failed_items": len(results),
        "errors": [r.to_dict() for r in results],
    }


__all__ = [
    "ValidationError",
    "detect_type",
    "validate_payload",
    "validate_vectors",
    "format_validation_errors",
]
