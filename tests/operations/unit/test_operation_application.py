"""Operation application tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from record_patches.errors import PatchDataError
from record_patches.operations import (
    AddOperation,
    ChangeKind,
    ChangeRecorder,
    CopyOperation,
    MergeOperation,
    MoveOperation,
    RemoveOperation,
    ReplaceOperation,
    TestOperation,
    apply_operation,
)
from record_patches.pointers import resolve_pointer
from record_patches.schema_management import load_record_types

_ORDER = load_record_types(
    Path(__file__).resolve().parents[3] / "samples" / "record-types.yaml"
).describe("Order")


def _pointer(text: str):
    return resolve_pointer(_ORDER, text)


def _record() -> dict[str, object]:
    return {
        "id": 1,
        "status": "NEW",
        "note": "fragile",
        "tags": ["a", "b"],
        "attrs": {"color": "red"},
        "shipping": {"street": "Main", "city": "Town"},
    }


def test_add_inserts_array_element_and_emits_insert() -> None:
    record = _record()
    recorder = ChangeRecorder()

    assert apply_operation(AddOperation(_pointer("/tags/1"), "x"), record, recorder)

    assert record["tags"] == ["a", "x", "b"]
    assert recorder.kinds == (ChangeKind.INSERT,)
    assert recorder.events[0].operation == "add"
    assert recorder.events[0].new_value == "x"


def test_add_of_equal_value_is_suppressed() -> None:
    record = _record()
    recorder = ChangeRecorder()

    apply_operation(AddOperation(_pointer("/status"), "NEW"), record, recorder)
    apply_operation(AddOperation(_pointer("/attrs/color"), "red"), record, recorder)
    apply_operation(
        AddOperation(_pointer("/shipping"), {"street": "Main", "city": "Town"}), record, recorder
    )

    assert recorder.events == []


def test_add_new_map_key_is_insert_and_existing_key_is_set() -> None:
    record = _record()
    recorder = ChangeRecorder()

    apply_operation(AddOperation(_pointer("/attrs/size"), "L"), record, recorder)
    apply_operation(AddOperation(_pointer("/attrs/color"), "blue"), record, recorder)

    assert record["attrs"] == {"color": "blue", "size": "L"}
    assert recorder.kinds == (ChangeKind.INSERT, ChangeKind.SET)
    assert recorder.events[1].old_value == "red"


def test_added_value_is_copied() -> None:
    record = _record()
    value = {"street": "Side", "city": "Village"}

    apply_operation(AddOperation(_pointer("/billing"), value), record)
    value["city"] = "Changed"

    assert record["billing"] == {"street": "Side", "city": "Village"}


def test_remove_array_element_and_whole_property() -> None:
    record = _record()
    recorder = ChangeRecorder()

    apply_operation(RemoveOperation(_pointer("/tags/0")), record, recorder)
    apply_operation(RemoveOperation(_pointer("/note")), record, recorder)
    apply_operation(RemoveOperation(_pointer("/urgent")), record, recorder)

    assert record["tags"] == ["b"]
    assert "note" not in record
    assert recorder.kinds == (ChangeKind.REMOVE, ChangeKind.SET)
    assert recorder.events[1].new_value is None
    assert recorder.events[1].old_value == "fragile"


def test_remove_of_missing_element_is_a_data_error() -> None:
    with pytest.raises(PatchDataError, match="No value to remove"):
        apply_operation(RemoveOperation(_pointer("/tags/7")), _record())


def test_replace_overwrites_and_skips_unchanged_values() -> None:
    record = _record()
    recorder = ChangeRecorder()

    apply_operation(ReplaceOperation(_pointer("/tags/1"), "c"), record, recorder)
    apply_operation(ReplaceOperation(_pointer("/status"), "NEW"), record, recorder)

    assert record["tags"] == ["a", "c"]
    assert recorder.kinds == (ChangeKind.SET,)
    assert recorder.events[0].old_value == "b"


def test_move_between_locations() -> None:
    record = _record()
    recorder = ChangeRecorder()

    apply_operation(MoveOperation(_pointer("/tags/-"), _pointer("/tags/0")), record, recorder)

    assert record["tags"] == ["b", "a"]
    assert recorder.kinds == (ChangeKind.REMOVE, ChangeKind.INSERT)
    assert all(event.operation == "move" for event in recorder.events)


def test_move_to_same_location_does_nothing() -> None:
    record = _record()
    recorder = ChangeRecorder()

    apply_operation(MoveOperation(_pointer("/note"), _pointer("/note")), record, recorder)

    assert record == _record()
    assert recorder.events == []


def test_copy_requires_source_value() -> None:
    record = _record()

    apply_operation(CopyOperation(_pointer("/billing"), _pointer("/shipping")), record)
    record["billing"]["city"] = "Elsewhere"

    assert record["shipping"]["city"] == "Town"
    with pytest.raises(PatchDataError, match="No value to copy"):
        apply_operation(CopyOperation(_pointer("/tags/-"), _pointer("/attrs/size")), record)


def test_test_operation_reports_result_to_observer() -> None:
    record = _record()
    recorder = ChangeRecorder()

    assert apply_operation(TestOperation(_pointer("/status"), "NEW"), record, recorder)
    assert not apply_operation(TestOperation(_pointer("/tags"), ["b", "a"]), record, recorder)

    assert recorder.kinds == (ChangeKind.TEST, ChangeKind.TEST)
    assert [event.passed for event in recorder.events] == [True, False]


def test_merge_applies_nested_operations_or_adds_whole_value() -> None:
    record = _record()
    nested = (ReplaceOperation(_pointer("/shipping/city"), "City"),)
    value = {"street": "Main", "city": "City"}

    apply_operation(MergeOperation(_pointer("/shipping"), {"city": "City"}, nested), record)
    assert record["shipping"] == value

    del record["shipping"]
    apply_operation(MergeOperation(_pointer("/shipping"), value, nested), record)
    assert record["shipping"] == value


def test_merge_propagates_failed_nested_test() -> None:
    nested = (TestOperation(_pointer("/shipping/city"), "Nowhere"),)

    assert not apply_operation(MergeOperation(_pointer("/shipping"), {}, nested), _record())


def test_observer_methods_are_optional() -> None:
    class InsertsOnly:
        def __init__(self) -> None:
            self.inserted: list[str] = []

        def on_insert(self, operation, pointer, new_value, old_value) -> None:
            self.inserted.append(str(pointer))

    observer = InsertsOnly()
    record = _record()

    apply_operation(AddOperation(_pointer("/tags/-"), "z"), record, observer)
    apply_operation(ReplaceOperation(_pointer("/status"), "DONE"), record, observer)

    assert observer.inserted == ["/tags/-"]


def test_merge_skips_removal_of_absent_map_key() -> None:
    record = _record()
    nested = (RemoveOperation(_pointer("/attrs/size")),)

    assert apply_operation(MergeOperation(_pointer("/attrs"), {"size": None}, nested), record)
    assert record["attrs"] == {"color": "red"}

    with pytest.raises(PatchDataError, match="No value to remove"):
        apply_operation(RemoveOperation(_pointer("/attrs/size")), record)
