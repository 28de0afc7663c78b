from __future__ import annotations


class TodoAppError(Exception):
    """Base class for errors raised by the todo store."""


# PUBLIC_INTERFACE
class InvalidArgument(TodoAppError, ValueError):
    """Raised when caller input cannot be stored (blank or over-long title, bad id)."""


# PUBLIC_INTERFACE
class StorageUnavailable(TodoAppError):
    """
    Raised when the database file cannot be created, opened or written.

    The driver or OS error is always chained as ``__cause__``.
    """
