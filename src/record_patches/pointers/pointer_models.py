"""Resolved record pointer entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from record_patches.schema_management.schema_models import PropertyDescriptor


class _Missing:
    """Marker for a collection element that does not exist."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


class SegmentKind(str, Enum):
    """What a single pointer token addresses."""

    PROPERTY = "property"
    INDEX = "index"
    KEY = "key"
    APPEND = "append"


@dataclass(frozen=True)
class PointerSegment:
    """One resolved pointer token.

    For element segments ``prop_desc`` is the descriptor of the collection
    property the element belongs to.
    """

    token: str
    kind: SegmentKind
    prop_desc: PropertyDescriptor

    @property
    def is_element(self) -> bool:
        return self.kind != SegmentKind.PROPERTY

    @property
    def index(self) -> int:
        return int(self.token)


@dataclass(frozen=True, eq=False)
class RecordPointer:
    """Schema-validated location in a record of a given type.

    Pointers compare and hash by their RFC 6901 string form.
    """

    record_type_name: str
    segments: tuple[PointerSegment, ...]

    @property
    def tokens(self) -> tuple[str, ...]:
        return tuple(segment.token for segment in self.segments)

    @property
    def prop_desc(self) -> PropertyDescriptor | None:
        return self.segments[-1].prop_desc if self.segments else None

    @property
    def collection_element(self) -> bool:
        return bool(self.segments) and self.segments[-1].is_element

    @property
    def prop_path(self) -> str:
        """Dot path of the addressed property, without collection element tokens."""
        return ".".join(
            segment.prop_desc.name for segment in self.segments if not segment.is_element
        )

    @property
    def parent(self) -> RecordPointer | None:
        if not self.segments:
            return None
        return RecordPointer(record_type_name=self.record_type_name, segments=self.segments[:-1])

    def is_root(self) -> bool:
        return not self.segments

    def is_child_of(self, other: RecordPointer) -> bool:
        """Return True when this pointer addresses a location nested below ``other``."""
        other_tokens = other.tokens
        return (
            len(self.segments) > len(other_tokens)
            and self.tokens[: len(other_tokens)] == other_tokens
        )

    def __str__(self) -> str:
        return "".join(f"/{escape_token(token)}" for token in self.tokens)

    def __repr__(self) -> str:
        return f"RecordPointer({self.record_type_name}:{self!s})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordPointer):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))


def escape_token(token: str) -> str:
    """Escape a raw token for use in a pointer string."""
    return token.replace("~", "~0").replace("/", "~1")
