"""Error kinds raised by the patch engine."""

from __future__ import annotations


class RecordPatchError(Exception):
    """Base class for all patch engine errors."""


class PatchUsageError(RecordPatchError):
    """Raised when the engine is called with invalid arguments."""


class PatchSyntaxError(RecordPatchError):
    """Raised when a patch, merge patch or diff input is invalid for the schema."""


class PatchDataError(RecordPatchError):
    """Raised when a record does not match what a validated pointer expects."""
