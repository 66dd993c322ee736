"""
Error Taxonomy
==============

Typed failures raised by the password container.

Every error is raised synchronously to the immediate caller. Nothing is
retried or suppressed internally, and a failed operation leaves the
container exactly as it was before the call.

Hierarchy:
- PasswordError: base for everything below
- PasswordRangeError: index/position outside the valid range (IndexError)
- PasswordLengthError: maximum representable size exceeded (OverflowError)
- InvalidArgumentError: stale/foreign position, bad unit, bad count (ValueError)
- StreamBridgeError: malformed stream content (OSError)

Allocation failure is not wrapped: MemoryError propagates unchanged.
"""

from __future__ import annotations

from typing import Optional


class PasswordError(Exception):
    """Base class for password container errors."""
    pass


class PasswordRangeError(PasswordError, IndexError):
    """
    Raised when an index or position falls outside the valid range.

    Carries the offending index and the size it was checked against
    so callers can report precise diagnostics.
    """

    def __init__(self, operation: str, index: int, size: int) -> None:
        self.operation = operation
        self.index = index
        self.size = size
        super().__init__(
            f"{operation}(): out of range (index = {index}, size = {size})"
        )


class PasswordLengthError(PasswordError, OverflowError):
    """Raised when a target size would exceed the maximum size."""

    def __init__(self, operation: str, max_size: Optional[int] = None) -> None:
        self.operation = operation
        self.max_size = max_size
        message = f"{operation}(): length error, maximum size exceeded"
        if max_size is not None:
            message += f" (max_size = {max_size})"
        super().__init__(message)


class InvalidArgumentError(PasswordError, ValueError):
    """Raised for invalid positions, code units or counts."""
    pass


class StreamBridgeError(PasswordError, OSError):
    """Raised when stream content cannot be mapped onto code units."""
    pass
