"""Patch builder tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from record_patches.errors import PatchSyntaxError, PatchUsageError
from record_patches.operations import AddOperation, MergeOperation, MoveOperation, OperationKind
from record_patches.patching import build_patch
from record_patches.schema_management import load_record_types

_LIBRARY = load_record_types(
    Path(__file__).resolve().parents[3] / "samples" / "record-types.yaml"
)


def _build(spec: object):
    return build_patch(_LIBRARY, "Order", spec)


def test_builds_operations_in_order() -> None:
    patch = _build(
        [
            {"op": "test", "path": "/status", "value": "NEW"},
            {"op": "add", "path": "/tags/-", "value": "x"},
            {"op": "move", "from": "/note", "path": "/attrs/note"},
        ]
    )

    assert len(patch) == 3
    assert [operation.kind for operation in patch] == [
        OperationKind.TEST,
        OperationKind.ADD,
        OperationKind.MOVE,
    ]
    assert isinstance(patch.operations[1], AddOperation)
    assert isinstance(patch.operations[2], MoveOperation)
    assert str(patch.operations[2].source) == "/note"


def test_operation_values_are_copied() -> None:
    value = ["a", "b"]
    patch = _build([{"op": "replace", "path": "/tags", "value": value}])
    value.append("c")

    assert patch.operations[0].value == ["a", "b"]


def test_unknown_record_type_and_non_list_spec_are_usage_errors() -> None:
    with pytest.raises(PatchUsageError, match="Unknown record type Invoice"):
        build_patch(_LIBRARY, "Invoice", [])
    with pytest.raises(PatchUsageError, match="not a list"):
        _build({"op": "add"})


@pytest.mark.parametrize(
    ("spec", "fragment"),
    [
        (["add"], "#1: operation specification is not an object"),
        ([{"path": "/status"}], "#1: op is missing"),
        ([{"op": "test", "path": "/status", "value": "NEW"}, {"op": "frob"}], '#2: unknown'),
        ([{"op": "add", "path": "/id", "value": 5}], "non-modifiable property id"),
        ([{"op": "remove", "path": "/status"}], "may not remove required property status"),
        ([{"op": "replace", "path": "/tags/-", "value": "x"}], "trailing '-' is not allowed"),
        ([{"op": "remove", "path": "/tags/-"}], "trailing '-' is not allowed"),
        ([{"op": "add", "path": "/nope", "value": 1}], 'invalid "path"'),
        ([{"op": "add", "path": "/status"}], "no value is provided"),
        ([{"op": "move", "path": "/note"}], '"from" is missing'),
        (
            [{"op": "move", "from": "/lines", "path": "/lines/0/comment"}],
            "into one of its children",
        ),
        ([{"op": "copy", "from": "/urgent", "path": "/note"}], "incompatible property value types"),
        ([{"op": "merge", "path": "/shipping", "value": {}}], "patch is not a list"),
        ([{"op": "merge", "path": "/status", "value": {}, "patch": []}], "invalid merge target"),
        ([{"op": "test", "path": "", "value": {}}], "record as a whole"),
    ],
)
def test_rejects_invalid_operations(spec: list[object], fragment: str) -> None:
    with pytest.raises(PatchSyntaxError, match=fragment):
        _build(spec)


def test_merge_parses_nested_operations() -> None:
    patch = _build(
        [
            {
                "op": "merge",
                "path": "/shipping",
                "value": {"city": "Town"},
                "patch": [{"op": "replace", "path": "/shipping/city", "value": "Town"}],
            }
        ]
    )

    merge = patch.operations[0]
    assert isinstance(merge, MergeOperation)
    assert [str(operation.target) for operation in merge.operations] == ["/shipping/city"]


def test_tracks_involved_and_updated_property_paths() -> None:
    patch = _build(
        [
            {"op": "test", "path": "/status", "value": "NEW"},
            {"op": "replace", "path": "/lines/0/quantity", "value": 3},
            {"op": "copy", "from": "/shipping", "path": "/billing"},
        ]
    )

    assert patch.involved_prop_paths == {
        "status",
        "lines",
        "lines.quantity",
        "shipping",
        "shipping.street",
        "shipping.city",
        "shipping.notes",
        "billing",
        "billing.street",
        "billing.city",
        "billing.notes",
    }
    assert patch.updated_prop_paths == {
        "lines",
        "lines.quantity",
        "billing",
        "billing.street",
        "billing.city",
        "billing.notes",
    }


def test_polymorphic_object_target_involves_subtype_properties() -> None:
    patch = _build([{"op": "remove", "path": "/payment"}])

    assert patch.updated_prop_paths == {
        "payment",
        "payment.amount",
        "payment.last4",
        "payment.change",
    }
