"""Change notification entities and observer contract."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from record_patches.pointers.pointer_models import RecordPointer


class ChangeKind(str, Enum):
    """Kinds of change notifications emitted while applying a patch."""

    INSERT = "insert"
    REMOVE = "remove"
    SET = "set"
    TEST = "test"


@dataclass(frozen=True)
class ChangeEvent:
    """One change notification passed to an observer."""

    kind: ChangeKind
    pointer: RecordPointer
    operation: str | None = None
    new_value: Any = None
    old_value: Any = None
    passed: bool | None = None


class PatchObserver(Protocol):
    """Observer notified of record changes.

    Every method is optional: the engine only calls the ones an observer
    defines.
    """

    def on_insert(
        self, operation: str, pointer: RecordPointer, new_value: Any, old_value: Any
    ) -> None: ...

    def on_remove(self, operation: str, pointer: RecordPointer, old_value: Any) -> None: ...

    def on_set(
        self, operation: str, pointer: RecordPointer, new_value: Any, old_value: Any
    ) -> None: ...

    def on_test(self, pointer: RecordPointer, value: Any, passed: bool) -> None: ...


@dataclass
class ChangeRecorder:
    """Observer collecting every notification as a :class:`ChangeEvent`."""

    events: list[ChangeEvent] = field(default_factory=list)

    def on_insert(
        self, operation: str, pointer: RecordPointer, new_value: Any, old_value: Any
    ) -> None:
        self.events.append(
            ChangeEvent(ChangeKind.INSERT, pointer, operation, new_value, old_value)
        )

    def on_remove(self, operation: str, pointer: RecordPointer, old_value: Any) -> None:
        self.events.append(ChangeEvent(ChangeKind.REMOVE, pointer, operation, None, old_value))

    def on_set(
        self, operation: str, pointer: RecordPointer, new_value: Any, old_value: Any
    ) -> None:
        self.events.append(ChangeEvent(ChangeKind.SET, pointer, operation, new_value, old_value))

    def on_test(self, pointer: RecordPointer, value: Any, passed: bool) -> None:
        self.events.append(ChangeEvent(ChangeKind.TEST, pointer, None, value, None, passed))

    @property
    def kinds(self) -> tuple[ChangeKind, ...]:
        return tuple(event.kind for event in self.events)


def notify(observer: object | None, event: ChangeEvent) -> None:
    """Deliver an event to the matching observer method, if the observer defines it."""
    if observer is None:
        return
    if event.kind == ChangeKind.TEST:
        on_test = getattr(observer, "on_test", None)
        if on_test is not None:
            on_test(event.pointer, event.new_value, bool(event.passed))
        return
    if event.kind == ChangeKind.REMOVE:
        on_remove = getattr(observer, "on_remove", None)
        if on_remove is not None:
            on_remove(event.operation, event.pointer, event.old_value)
        return
    handler_name = "on_insert" if event.kind == ChangeKind.INSERT else "on_set"
    handler = getattr(observer, handler_name, None)
    if handler is not None:
        handler(event.operation, event.pointer, event.new_value, event.old_value)

