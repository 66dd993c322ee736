"""
Positions
=========

Non-owning forward and reverse positions into a password's storage.

A position is a small value: (owner, epoch, byte offset). It never
keeps its password alive, and it stops being valid as soon as the
password reallocates its storage or is collected.

Reverse positions share the same offset representation. Advancing a
reverse position moves the offset toward the beginning, and
dereferencing reads the unit one before the offset.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from securepwd.core.errors import InvalidArgumentError
from securepwd.password.validator import position_is_valid

if TYPE_CHECKING:
    from securepwd.password.password import Password


class BasePosition:
    """Shared state and arithmetic for forward and reverse positions."""

    __slots__ = ("_owner_ref", "_epoch", "_offset", "_width")

    # +1 for forward positions, -1 for reverse positions
    _direction: ClassVar[int] = 1
    # Units between the offset and the unit that get()/set() touches
    _deref_shift: ClassVar[int] = 0

    def __init__(self, owner: "Password", epoch: int, offset: int) -> None:
        self._owner_ref = weakref.ref(owner)
        self._epoch = epoch
        self._offset = offset
        self._width = owner.width

    def _moved(self, units: int) -> Any:
        other = object.__new__(type(self))
        other._owner_ref = self._owner_ref
        other._epoch = self._epoch
        other._offset = self._offset + self._direction * units * self._width
        other._width = self._width
        return other

    @property
    def owner(self) -> Optional["Password"]:
        """The issuing password, or None if it has been collected."""
        return self._owner_ref()

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def offset(self) -> int:
        """Byte offset from the start of the storage."""
        return self._offset

    @property
    def index(self) -> int:
        """Unit index of the underlying offset."""
        return self._offset // self._width

    def is_valid(self) -> bool:
        """Check the position against its password's current storage."""
        owner = self.owner
        return owner is not None and position_is_valid(owner, self)

    def _target(self) -> tuple["Password", int]:
        owner = self.owner
        if owner is None or not position_is_valid(owner, self):
            raise InvalidArgumentError("Dereferencing an invalid position")
        return owner, self.index - self._deref_shift

    def get(self) -> int:
        """Read the unit at this position."""
        owner, index = self._target()
        return owner.at(index)

    def set(self, unit: Any) -> None:
        """Overwrite the unit at this position in place."""
        owner, index = self._target()
        owner[index] = unit

    def _same_storage(self, other: "BasePosition") -> None:
        if self._owner_ref() is not other._owner_ref() or self._epoch != other._epoch:
            raise InvalidArgumentError("Positions refer to different storage")

    def __add__(self, units: int) -> Any:
        if not isinstance(units, int):
            return NotImplemented
        return self._moved(units)

    __radd__ = __add__

    def __sub__(self, other: Any) -> Any:
        if isinstance(other, int):
            return self._moved(-other)
        if type(other) is type(self):
            self._same_storage(other)
            return self._direction * (self._offset - other._offset) // self._width
        return NotImplemented

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return (
            self._owner_ref() is other._owner_ref()
            and self._epoch == other._epoch
            and self._offset == other._offset
        )

    def __hash__(self) -> int:
        return hash((id(self._owner_ref()), self._epoch, self._offset))

    def _key(self, other: Any) -> Optional[tuple[int, int]]:
        if type(other) is not type(self):
            return None
        self._same_storage(other)
        return self._direction * self._offset, self._direction * other._offset

    def __lt__(self, other: Any) -> bool:
        keys = self._key(other)
        if keys is None:
            return NotImplemented
        return keys[0] < keys[1]

    def __le__(self, other: Any) -> bool:
        keys = self._key(other)
        if keys is None:
            return NotImplemented
        return keys[0] <= keys[1]

    def __gt__(self, other: Any) -> bool:
        keys = self._key(other)
        if keys is None:
            return NotImplemented
        return keys[0] > keys[1]

    def __ge__(self, other: Any) -> bool:
        keys = self._key(other)
        if keys is None:
            return NotImplemented
        return keys[0] >= keys[1]

    def __repr__(self) -> str:
        state = "valid" if self.is_valid() else "invalid"
        return f"{type(self).__name__}(index={self.index}, epoch={self._epoch}, {state})"


class Position(BasePosition):
    """
    Forward position.

    Usage:
        it = password.begin()
        while it != password.end():
            process(it.get())
            it = it + 1
    """

    __slots__ = ()

    def reversed(self) -> "ReversePosition":
        """Reverse position sharing this offset (dereferences one before it)."""
        rev = object.__new__(ReversePosition)
        rev._owner_ref = self._owner_ref
        rev._epoch = self._epoch
        rev._offset = self._offset
        rev._width = self._width
        return rev


class ReversePosition(BasePosition):
    """
    Reverse position: advancing moves toward the beginning.

    ``rbegin()`` sits at the end offset and reads the last unit;
    ``rend()`` sits at offset zero.
    """

    __slots__ = ()

    _direction = -1
    _deref_shift = 1

    def base(self) -> Position:
        """Forward position sharing this offset."""
        fwd = object.__new__(Position)
        fwd._owner_ref = self._owner_ref
        fwd._epoch = self._epoch
        fwd._offset = self._offset
        fwd._width = self._width
        return fwd
