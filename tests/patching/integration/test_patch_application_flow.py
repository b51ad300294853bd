"""Integration tests for building and applying record patches."""

from __future__ import annotations

import copy
from pathlib import Path

import pytest
from record_patches import (
    ChangeKind,
    ChangeRecorder,
    PatchDataError,
    build_merge_patch,
    build_patch,
    load_record_types,
)

_LIBRARY = load_record_types(
    Path(__file__).resolve().parents[3] / "samples" / "record-types.yaml"
)


def _order() -> dict[str, object]:
    return {
        "id": 7,
        "status": "NEW",
        "placedOn": "2024-05-01T08:00:00.000Z",
        "customer": "Customer#3",
        "tags": ["gift"],
        "lines": [
            {"id": 1, "sku": "A-1", "quantity": 2},
            {"id": 2, "sku": "B-2", "quantity": 1, "comment": "blue"},
        ],
        "shipping": {"street": "Main 1", "city": "Town"},
        "payment": {"kind": "CARD", "amount": 30, "last4": "4242"},
    }


def test_applies_patch_and_reports_changes() -> None:
    patch = build_patch(
        _LIBRARY,
        "Order",
        [
            {"op": "test", "path": "/status", "value": "NEW"},
            {"op": "replace", "path": "/status", "value": "PACKED"},
            {"op": "add", "path": "/lines/-", "value": {"id": 3, "sku": "C-3", "quantity": 5}},
            {"op": "remove", "path": "/lines/1/comment"},
            {"op": "replace", "path": "/payment/CARD:last4", "value": "0005"},
            {"op": "copy", "from": "/shipping", "path": "/billing"},
            {"op": "add", "path": "/attrs/wrap", "value": "yes"},
        ],
    )
    record = _order()
    recorder = ChangeRecorder()

    assert patch.apply(record, recorder) is True

    assert record["status"] == "PACKED"
    assert [line["id"] for line in record["lines"]] == [1, 2, 3]
    assert "comment" not in record["lines"][1]
    assert record["payment"]["last4"] == "0005"
    assert record["billing"] == record["shipping"]
    assert record["attrs"] == {"wrap": "yes"}
    assert recorder.kinds == (
        ChangeKind.TEST,
        ChangeKind.SET,
        ChangeKind.INSERT,
        ChangeKind.SET,
        ChangeKind.SET,
        ChangeKind.SET,
        ChangeKind.INSERT,
    )


def test_failed_test_stops_application_without_rollback() -> None:
    patch = build_patch(
        _LIBRARY,
        "Order",
        [
            {"op": "replace", "path": "/status", "value": "PACKED"},
            {"op": "test", "path": "/customer", "value": "Customer#4"},
            {"op": "replace", "path": "/tags", "value": ["late"]},
        ],
    )
    record = _order()

    assert patch.apply(record) is False

    assert record["status"] == "PACKED"
    assert record["tags"] == ["gift"]


def test_reapplying_patch_changes_nothing() -> None:
    patch = build_patch(
        _LIBRARY,
        "Order",
        [
            {"op": "replace", "path": "/status", "value": "PACKED"},
            {"op": "add", "path": "/shipping", "value": {"street": "Side 2", "city": "Ville"}},
            {"op": "replace", "path": "/lines/0", "value": {"id": 1, "sku": "A-1", "quantity": 9}},
        ],
    )
    record = _order()
    patch.apply(record)
    expected = copy.deepcopy(record)
    recorder = ChangeRecorder()

    assert patch.apply(record, recorder)

    assert record == expected
    assert recorder.events == []


def test_patch_is_reusable_across_records() -> None:
    patch = build_patch(_LIBRARY, "Order", [{"op": "add", "path": "/tags/0", "value": "first"}])
    first, second = _order(), _order()

    patch.apply(first)
    patch.apply(second)

    assert first["tags"] == second["tags"] == ["first", "gift"]


def test_missing_intermediate_object_is_a_data_error() -> None:
    patch = build_patch(
        _LIBRARY, "Order", [{"op": "replace", "path": "/billing/city", "value": "X"}]
    )

    with pytest.raises(PatchDataError, match="Missing intermediate value"):
        patch.apply(_order())


def test_remove_of_missing_array_index_is_a_data_error() -> None:
    patch = build_patch(_LIBRARY, "Order", [{"op": "remove", "path": "/lines/5"}])

    with pytest.raises(PatchDataError):
        patch.apply(_order())


def test_merge_patch_updates_nested_values() -> None:
    patch = build_merge_patch(
        _LIBRARY,
        "Order",
        {
            "status": "SHIPPED",
            "tags": None,
            "shipping": {"city": "Harbor", "notes": "ring twice"},
            "attrs": {"gate": "B"},
        },
    )
    record = _order()

    assert patch.apply(record)

    assert record["status"] == "SHIPPED"
    assert "tags" not in record
    assert record["shipping"] == {"street": "Main 1", "city": "Harbor", "notes": "ring twice"}
    assert record["attrs"] == {"gate": "B"}
