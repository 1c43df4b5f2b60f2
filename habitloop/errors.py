"""Error taxonomy for HabitLoop.

Unknown habit ids are not errors inside the engine: they are no-ops that
return the collection unchanged. Storage faults are reported as ``False``
results by the store. The exceptions below cover the remaining cases.
"""

from __future__ import annotations


class HabitLoopError(Exception):
    """Base class for HabitLoop errors."""


class ValidationError(HabitLoopError, ValueError):
    """A required field is missing or a field has an invalid value."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(HabitLoopError, LookupError):
    """Raised by outer layers that must report a stale or unknown habit id."""


class StorageFailure(HabitLoopError):
    """The storage collaborator could not persist a value."""


class AlreadyExists(HabitLoopError):
    """Registration with a username that is already taken."""


class InvalidCredentials(HabitLoopError):
    """Login with an unknown username or a wrong password."""
