# SPDX-License-Identifier: Apache-2.0
"""
Payload validation against field schemas.
"""

import pytest

from aetherfy_vectors.models import (
    DataKind,
    FieldDefinition,
    Point,
    Schema,
    ValidationCode,
)
from aetherfy_vectors.schema import validate_payload, validate_vectors


@pytest.fixture
def product_schema():
    return Schema(
        fields={
            "name": FieldDefinition(type="string", required=True),
            "price": FieldDefinition(type="integer", required=True),
            "tags": FieldDefinition(type="array", element_type="string"),
            "meta": FieldDefinition(
                type="object",
                fields={
                    "brand": FieldDefinition(type="string", required=True),
                    "rating": FieldDefinition(type="float"),
                },
            ),
        }
    )


def test_valid_payload_has_no_errors(product_schema):
    """Verify a conforming payload produces an empty error list."""
    payload = {
        "name": "Lamp",
        "price": 30,
        "tags": ["home", "light"],
        "meta": {"brand": "Acme", "rating": 4.5},
    }
    assert validate_payload(payload, product_schema) == []


def test_missing_required_field_reported(product_schema):
    """Verify absent required fields report REQUIRED_FIELD_MISSING."""
    errors = validate_payload({"name": "Lamp"}, product_schema)
    assert len(errors) == 1
    assert errors[0].field == "price"
    assert errors[0].code is ValidationCode.REQUIRED_FIELD_MISSING
    assert errors[0].message == "Required field 'price' is missing"


def test_null_required_field_is_missing(product_schema):
    """Verify a None value counts as missing for required fields."""
    errors = validate_payload({"name": None, "price": 1}, product_schema)
    assert [e.code for e in errors] == [ValidationCode.REQUIRED_FIELD_MISSING]


def test_optional_fields_may_be_absent_or_null(product_schema):
    """Verify optional fields are skipped when absent or None."""
    assert validate_payload({"name": "a", "price": 1, "tags": None}, product_schema) == []


def test_none_payload_treated_as_empty(product_schema):
    """Verify a None payload reports every required top-level field."""
    errors = validate_payload(None, product_schema)
    assert [e.field for e in errors] == ["name", "price"]


def test_type_mismatch_reports_expected_and_actual(product_schema):
    """Verify wrong kinds produce a TYPE_MISMATCH with expected/actual kinds."""
    errors = validate_payload({"name": "Lamp", "price": "x"}, product_schema)
    assert len(errors) == 1
    err = errors[0]
    assert err.code is ValidationCode.TYPE_MISMATCH
    assert err.expected is DataKind.INTEGER
    assert err.actual is DataKind.STRING
    assert err.message == "Field 'price' expected integer, got string"


def test_type_mismatch_suppresses_sub_checks(product_schema):
    """Verify a mismatched object field is not descended into."""
    errors = validate_payload({"name": "a", "price": 1, "meta": "not-an-object"}, product_schema)
    assert [(e.field, e.code) for e in errors] == [("meta", ValidationCode.TYPE_MISMATCH)]


def test_integral_float_satisfies_integer(product_schema):
    """Verify 30.0 is accepted where an integer is declared."""
    assert validate_payload({"name": "a", "price": 30.0}, product_schema) == []


def test_array_element_mismatches_reported_per_index(product_schema):
    """Verify every bad array element is reported at its own index."""
    payload = {"name": "a", "price": 1, "tags": ["ok", 2, "fine", None]}
    errors = validate_payload(payload, product_schema)
    assert [e.field for e in errors] == ["tags[1]", "tags[3]"]
    assert all(e.code is ValidationCode.ARRAY_ELEMENT_TYPE_MISMATCH for e in errors)
    assert errors[0].message == "Array element at 'tags[1]' expected string, got integer"
    assert errors[1].actual is DataKind.NULL


def test_nested_errors_use_dotted_paths(product_schema):
    """Verify nested object errors carry the dotted path."""
    payload = {"name": "a", "price": 1, "meta": {"rating": "high"}}
    errors = validate_payload(payload, product_schema)
    assert [(e.field, e.code) for e in errors] == [
        ("meta.brand", ValidationCode.REQUIRED_FIELD_MISSING),
        ("meta.rating", ValidationCode.TYPE_MISMATCH),
    ]


def test_errors_follow_depth_first_declaration_order():
    """Verify nested errors appear before later sibling fields."""
    schema = Schema(
        fields={
            "a": FieldDefinition(
                type="object",
                fields={"x": FieldDefinition(type="string", required=True)},
            ),
            "b": FieldDefinition(type="integer", required=True),
        }
    )
    errors = validate_payload({"a": {}}, schema)
    assert [e.field for e in errors] == ["a.x", "b"]


def test_path_prefix_is_applied():
    """Verify a caller-supplied prefix is prepended to every path."""
    schema = Schema(fields={"x": FieldDefinition(type="string", required=True)})
    errors = validate_payload({}, schema, path_prefix="root")
    assert errors[0].field == "root.x"


def test_deeply_nested_schema_does_not_hit_recursion_limit():
    """Verify validation handles nesting far deeper than the recursion limit."""
    depth = 3000
    leaf = FieldDefinition(type="string", required=True)
    definition = leaf
    for _ in range(depth):
        definition = FieldDefinition(type="object", fields={"n": definition})
    schema = Schema(fields={"n": definition})

    payload = {}
    node = payload
    for _ in range(depth):
        child = {}
        node["n"] = child
        node = child
    node["n"] = 5

    errors = validate_payload(payload, schema)
    assert len(errors) == 1
    assert errors[0].code is ValidationCode.TYPE_MISMATCH
    assert errors[0].field == ".".join(["n"] * (depth + 1))


def test_one_error_per_violated_rule():
    """Verify each violated rule produces exactly one record."""
    schema = Schema(
        fields={
            "a": FieldDefinition(type="string", required=True),
            "b": FieldDefinition(type="boolean", required=True),
            "c": FieldDefinition(type="array", element_type="integer"),
        }
    )
    errors = validate_payload({"b": "yes", "c": [1, "2", 3.5]}, schema)
    assert len(errors) == 4


def test_validate_vectors_reports_only_failing_items(product_schema):
    """Verify only failing items appear, tagged with index and id."""
    items = [
        Point(id="ok", vector=[0.1], payload={"name": "a", "price": 1}),
        {"id": 7, "vector": [0.1], "payload": {"name": "b", "price": "x"}},
        {"id": "also-ok", "vector": [0.1], "payload": {"name": "c", "price": 2}},
    ]
    results = validate_vectors(items, product_schema)
    assert len(results) == 1
    assert results[0].index == 1
    assert results[0].id == 7
    assert results[0].errors[0].code is ValidationCode.TYPE_MISMATCH


def test_validate_vectors_unknown_id(product_schema):
    """Verify items without an id are reported as 'unknown'."""
    results = validate_vectors([{"vector": [0.1], "payload": {}}, {"id": "", "payload": {}}], product_schema)
    assert [r.id for r in results] == ["unknown", "unknown"]
    assert [r.index for r in results] == [0, 1]


def test_validate_vectors_all_valid_returns_empty(product_schema):
    """Verify a fully valid batch yields no results."""
    items = [{"id": i, "payload": {"name": "n", "price": i}} for i in range(5)]
    assert validate_vectors(items, product_schema) == []


def test_field_definition_rejects_misplaced_options():
    """Verify element_type and fields are only accepted on matching kinds."""
    with pytest.raises(ValueError):
        FieldDefinition(type="string", element_type="string")
    with pytest.raises(ValueError):
        FieldDefinition(type="array", fields={})
