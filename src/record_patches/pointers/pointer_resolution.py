"""Pointer string resolution against record type descriptors."""

from __future__ import annotations

import re

from record_patches.errors import PatchSyntaxError
from record_patches.schema_management.schema_models import (
    PropertiesContainer,
    PropertyDescriptor,
    is_object_valued,
)

from .pointer_models import PointerSegment, RecordPointer, SegmentKind

_ARRAY_INDEX_PATTERN = re.compile(r"^(?:0|[1-9]\d*)$")
_INVALID_ESCAPE_PATTERN = re.compile(r"~(?![01])")
_APPEND_TOKEN = "-"
_SUBTYPE_SEPARATOR = ":"


def resolve_pointer(
    record_type: PropertiesContainer, pointer: str, *, no_dash: bool = False
) -> RecordPointer:
    """Resolve an RFC 6901 pointer string against a record type descriptor.

    Args:
      record_type: Descriptor of the record type the pointer is relative to.
      pointer: The pointer string. An empty string addresses the record itself.
      no_dash: Reject a trailing ``-`` array token.

    Returns:
      The resolved pointer.

    Raises:
      PatchSyntaxError: If the pointer is not valid for the record type.
    """
    if not isinstance(pointer, str):
        raise PatchSyntaxError("Record pointer must be a string.")
    if pointer == "":
        return RecordPointer(record_type_name=record_type.record_type_name, segments=())
    if not pointer.startswith("/"):
        raise PatchSyntaxError(f"Invalid record pointer {pointer!r}: must start with '/'.")

    raw_tokens = pointer[1:].split("/")
    segments: list[PointerSegment] = []
    current: PointerSegment | None = None
    for position, raw_token in enumerate(raw_tokens):
        token = _unescape(raw_token, pointer)
        is_last = position == len(raw_tokens) - 1

        if current is None:
            current = _property_segment(record_type, token, pointer)
        elif _descends_into_object(current):
            nested = current.prop_desc.nested_properties
            if nested is None:
                raise PatchSyntaxError(
                    f"Invalid record pointer {pointer!r}: nested object has no properties."
                )
            current = _property_segment(nested, token, pointer)
        elif current.kind == SegmentKind.PROPERTY and current.prop_desc.is_array():
            current = _array_element_segment(
                current.prop_desc, token, pointer, is_last=is_last, no_dash=no_dash
            )
        elif current.kind == SegmentKind.PROPERTY and current.prop_desc.is_map():
            current = PointerSegment(token=token, kind=SegmentKind.KEY, prop_desc=current.prop_desc)
        elif current.is_element:
            raise PatchSyntaxError(
                f"Invalid record pointer {pointer!r}: {token!r} descends into a scalar"
                " collection element."
            )
        else:
            raise PatchSyntaxError(
                f"Invalid record pointer {pointer!r}: {token!r} descends into scalar"
                f" property {current.prop_desc.name}."
            )
        segments.append(current)

    return RecordPointer(record_type_name=record_type.record_type_name, segments=tuple(segments))


def _descends_into_object(segment: PointerSegment) -> bool:
    prop_desc = segment.prop_desc
    return is_object_valued(prop_desc) and (prop_desc.is_scalar() or segment.is_element)


def _property_segment(container: PropertiesContainer, token: str, pointer: str) -> PointerSegment:
    return PointerSegment(
        token=token,
        kind=SegmentKind.PROPERTY,
        prop_desc=_lookup_property(container, token, pointer),
    )


def _lookup_property(
    container: PropertiesContainer, token: str, pointer: str
) -> PropertyDescriptor:
    if container.has_property(token):
        return container.get_property(token)
    if container.is_polymorphic() and _SUBTYPE_SEPARATOR in token:
        subtype_name, prop_name = token.split(_SUBTYPE_SEPARATOR, 1)
        if subtype_name in container.subtype_names:
            subtype = container.get_subtype(subtype_name)
            if subtype.has_property(prop_name):
                return subtype.get_property(prop_name)
    raise PatchSyntaxError(
        f"Invalid record pointer {pointer!r}: {container.record_type_name} has no property"
        f" {container.nested_path}{token}."
    )


def _array_element_segment(
    prop_desc: PropertyDescriptor, token: str, pointer: str, *, is_last: bool, no_dash: bool
) -> PointerSegment:
    if token == _APPEND_TOKEN:
        if not is_last:
            raise PatchSyntaxError(
                f"Invalid record pointer {pointer!r}: '-' may only be the last token."
            )
        if no_dash:
            raise PatchSyntaxError(
                f"Invalid record pointer {pointer!r}: trailing '-' is not allowed here."
            )
        return PointerSegment(token=token, kind=SegmentKind.APPEND, prop_desc=prop_desc)
    if not _ARRAY_INDEX_PATTERN.fullmatch(token):
        raise PatchSyntaxError(
            f"Invalid record pointer {pointer!r}: {token!r} is not a valid array index."
        )
    return PointerSegment(token=token, kind=SegmentKind.INDEX, prop_desc=prop_desc)


def _unescape(raw_token: str, pointer: str) -> str:
    if _INVALID_ESCAPE_PATTERN.search(raw_token):
        raise PatchSyntaxError(f"Invalid record pointer {pointer!r}: bad '~' escape sequence.")
    return raw_token.replace("~1", "/").replace("~0", "~")
