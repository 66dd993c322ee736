"""
Bounds & Position Validation
============================

Pure predicates and checks applied before any mutation.

A position is valid for a password when:
- it was issued by that password
- its epoch matches the password's current storage epoch
- its byte offset lies within [0, size * width] (end is valid)
- its byte offset is a multiple of the code unit width

The epoch comparison rejects every position captured before a
reallocating mutation, even when its offset would still be in range.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from securepwd.core.errors import InvalidArgumentError, PasswordRangeError
from securepwd.password.units import NPOS

if TYPE_CHECKING:
    from securepwd.password.password import Password
    from securepwd.password.positions import BasePosition


def position_is_valid(password: "Password", position: "BasePosition") -> bool:
    """Return True if ``position`` currently points into ``password``."""
    if position.owner is not password:
        return False
    if position.epoch != password.epoch:
        return False

    width = password.width
    offset = position.offset
    if offset < 0 or offset > password.size * width:
        return False
    return offset % width == 0


def check_position(password: "Password", position: "BasePosition", operation: str) -> int:
    """
    Validate a position and return its unit index.

    Raises:
        InvalidArgumentError: If the position fails validation
    """
    if not position_is_valid(password, position):
        raise InvalidArgumentError(f"{operation}(): invalid argument, invalid position")
    return position.offset // password.width


def check_index(operation: str, index: int, size: int, inclusive: bool = True) -> int:
    """
    Validate an index against ``[0, size]`` (or ``[0, size)``).

    Raises:
        PasswordRangeError: If the index is outside the range
    """
    if not isinstance(index, int):
        raise TypeError(f"{operation}(): index must be an int, not {type(index).__name__}")
    limit = size if inclusive else size - 1
    if index < 0 or index > limit:
        raise PasswordRangeError(operation, index, size)
    return index


def clamp_count(operation: str, count: Optional[int], available: int) -> int:
    """
    Clamp a count to what is available.

    None and NPOS both mean "everything from here to the end".

    Raises:
        InvalidArgumentError: If the count is any other negative value
    """
    if count is None or count == NPOS:
        return available
    if count < 0:
        raise InvalidArgumentError(f"{operation}(): count cannot be negative ({count})")
    return min(count, available)


def check_count(operation: str, count: int) -> int:
    """Validate a non-negative count."""
    if count < 0:
        raise InvalidArgumentError(f"{operation}(): count cannot be negative ({count})")
    return count
