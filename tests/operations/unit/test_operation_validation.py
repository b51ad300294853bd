"""Build-time operation validation tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from record_patches.errors import PatchSyntaxError
from record_patches.operations import (
    PointerUse,
    check_pointer_use,
    validate_operation_source,
    validate_operation_value,
)
from record_patches.pointers import MISSING, resolve_pointer
from record_patches.schema_management import load_record_types

_LIBRARY = load_record_types(
    Path(__file__).resolve().parents[3] / "samples" / "record-types.yaml"
)


def _pointer(text: str):
    return resolve_pointer(_LIBRARY.describe("Order"), text)


def _validate(text: str, value: object, op_name: str = "add", for_update: bool = True) -> object:
    return validate_operation_value(
        _LIBRARY, op_name, 0, _pointer(text), value, for_update=for_update
    )


def test_set_requires_modifiable_property() -> None:
    with pytest.raises(PatchSyntaxError, match="non-modifiable property placedOn"):
        check_pointer_use(_pointer("/placedOn"), PointerUse.SET, op_name="replace", op_index=2)


def test_erase_requires_optional_property_unless_collection_element() -> None:
    with pytest.raises(PatchSyntaxError, match=r"#1 \(remove\): may not remove required"):
        check_pointer_use(_pointer("/status"), PointerUse.ERASE, op_name="remove", op_index=0)

    pointer = _pointer("/lines/0")
    assert check_pointer_use(pointer, PointerUse.ERASE, op_name="remove", op_index=0) is pointer


def test_root_pointer_is_rejected() -> None:
    with pytest.raises(PatchSyntaxError, match="record as a whole"):
        check_pointer_use(_pointer(""), PointerUse.READ, op_name="test", op_index=0)


@pytest.mark.parametrize(
    ("text", "value"),
    [
        ("/status", "SHIPPED"),
        ("/note", None),
        ("/urgent", True),
        ("/scores", [1, 2.5]),
        ("/scores/0", 10**400),
        ("/attrs", {"k": "v"}),
        ("/customer", "Customer#17"),
        ("/lines/-", {"id": 3, "sku": "S", "quantity": 1}),
        ("/payment", {"kind": "CASH", "amount": 3}),
        ("/shipping", {"street": "Main", "city": "Town"}),
    ],
)
def test_accepts_valid_values(text: str, value: object) -> None:
    assert _validate(text, value) == value


@pytest.mark.parametrize(
    ("text", "value", "fragment"),
    [
        ("/status", None, "null for required property"),
        ("/status", 5, "expected string"),
        ("/urgent", 1, "expected boolean"),
        ("/scores", [1, True], "expected number"),
        ("/scores", [float("inf")], "expected number"),
        ("/scores/0", "1", "expected number"),
        ("/attrs", ["v"], "expected an object"),
        ("/tags", "a", "expected an array"),
        ("/customer", "Order#1", "expected Customer reference"),
        ("/customer", "Customer#abc", "expected Customer reference"),
        ("/lines/-", None, "null for nested object collection element"),
        ("/lines/-", {"id": 3, "sku": "S"}, "expected matching object properties"),
        ("/payment", {"kind": "BANK", "amount": 3}, "expected matching object properties"),
        ("/payment", {"kind": "CARD", "amount": 3}, "expected matching object properties"),
    ],
)
def test_rejects_invalid_values(text: str, value: object, fragment: str) -> None:
    with pytest.raises(PatchSyntaxError, match=fragment):
        _validate(text, value)


def test_datetime_values_use_millisecond_utc_format() -> None:
    pointer = _pointer("/placedOn")

    assert (
        validate_operation_value(
            _LIBRARY, "test", 0, pointer, "2024-02-29T10:15:30.123Z", for_update=False
        )
        == "2024-02-29T10:15:30.123Z"
    )
    for invalid in ("2024-02-30T10:15:30.123Z", "2024-02-29T10:15:30Z", "yesterday"):
        with pytest.raises(PatchSyntaxError, match="expected ISO 8601 string"):
            validate_operation_value(_LIBRARY, "test", 0, pointer, invalid, for_update=False)


def test_missing_value_is_rejected() -> None:
    with pytest.raises(PatchSyntaxError, match="no value is provided"):
        _validate("/status", MISSING)


def test_merge_value_must_target_map_or_object() -> None:
    assert _validate("/attrs", {"a": "b"}, op_name="merge") == {"a": "b"}
    assert _validate("/shipping", {"city": "X"}, op_name="merge") == {"city": "X"}
    with pytest.raises(PatchSyntaxError, match="invalid merge target"):
        _validate("/status", {"a": "b"}, op_name="merge")
    with pytest.raises(PatchSyntaxError, match="merge value must be a non-null object"):
        _validate("/shipping", None, op_name="merge")


def test_source_checks_kinds_and_shapes() -> None:
    assert validate_operation_source(
        "copy", 0, _pointer("/billing"), _pointer("/shipping"), for_move=False
    )
    assert validate_operation_source(
        "copy", 0, _pointer("/tags/-"), _pointer("/attrs/color"), for_move=False
    )
    with pytest.raises(PatchSyntaxError, match="incompatible property value types"):
        validate_operation_source("copy", 0, _pointer("/note"), _pointer("/urgent"), for_move=False)
    with pytest.raises(PatchSyntaxError, match="not an array"):
        validate_operation_source("copy", 0, _pointer("/tags"), _pointer("/note"), for_move=False)
    with pytest.raises(PatchSyntaxError, match="incompatible nested objects"):
        validate_operation_source(
            "copy", 0, _pointer("/shipping"), _pointer("/contacts/home"), for_move=False
        )


def test_move_into_own_child_is_rejected() -> None:
    with pytest.raises(PatchSyntaxError, match="into one of its children"):
        validate_operation_source(
            "move", 0, _pointer("/lines/0/sku"), _pointer("/lines"), for_move=True
        )
