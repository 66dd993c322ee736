"""
Password Container
==================

A mutable, string-like container of fixed-width code units for
holding sensitive sequences such as passwords.

Security Properties:
- Storage is only created and wiped by the SecureAllocator
- Every reallocating mutation wipes the full extent of the old block
- clear(), context exit and finalisation wipe the current block
- Content is never shown by repr()/str() or written to logs
- Failed operations leave the container exactly as it was

Storage Model:
- One block of ``size + 1`` units; the last unit is a zero sentinel
- Size-changing edits build a new block (prefix, middle, suffix),
  swap it in, then retire the old block
- Equal-length replacements overwrite in place and keep positions valid

Limitations:
- Python may still copy data internally (str/bytes sources, I/O buffers)
- Comparison is not constant-time
- Memory is not locked against swapping
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from securepwd.core.config import SecureConfig
from securepwd.core.errors import (
    InvalidArgumentError,
    PasswordLengthError,
    PasswordRangeError,
)
from securepwd.core.memory.allocator import (
    SecureAllocator,
    SecureStorage,
    get_default_allocator,
)
from securepwd.password.positions import Position, ReversePosition
from securepwd.password.search import (
    ends_with_units,
    find_units,
    rfind_units,
    starts_with_units,
    three_way_compare,
)
from securepwd.password.units import (
    NPOS,
    Fill,
    Selection,
    UnitSequence,
    as_units,
    check_width,
    coerce_unit,
    copy_units,
    terminated_length,
)
from securepwd.password.validator import (
    check_count,
    check_index,
    check_position,
    clamp_count,
)


_log = logging.getLogger("securepwd.password")


class Password:
    """
    Secure, growable sequence of code units.

    Usage:
        with Password("hunter2") as pwd:
            pwd.insert(3, "XY")
            verify(pwd)
        # storage is now wiped and the container is empty

        pwd = Password()
        pwd += "secret"
        pwd.replace(0, 3, "SEC")
        if pwd.starts_with("SEC"):
            ...

    Security Notes:
        - Prefer Password or buffer sources over str (str copies persist)
        - Use borrow() for raw access; the view is released on exit
        - Positions are invalidated by any reallocating mutation
    """

    __slots__ = ("_storage", "_size", "_allocator", "_max_size", "__weakref__")

    NPOS = NPOS

    def __init__(
        self,
        source: Any = None,
        *,
        width: Optional[int] = None,
        allocator: Optional[SecureAllocator] = None,
    ) -> None:
        """
        Create a password from any unit source (or empty).

        Args:
            source: Password, bytes-like, str, int unit or iterable of units
            width: Code unit width in bytes (defaults to the source's
                width for Password sources, else to configuration)
            allocator: Allocator owning this container's storage
        """
        memory = SecureConfig.get_instance().memory
        if width is None:
            width = source.width if isinstance(source, Password) else memory.default_width

        self._allocator = allocator or get_default_allocator()
        self._max_size = memory.max_size
        self._size = 0
        self._storage = self._allocator.allocate(0, check_width(width))

        if source is not None:
            self.assign(source)

    # ── Alternate constructors ────────────────────────────────────────

    @classmethod
    def filled(
        cls,
        count: int,
        unit: Any,
        *,
        width: Optional[int] = None,
        allocator: Optional[SecureAllocator] = None,
    ) -> "Password":
        """Create a password holding ``count`` copies of ``unit``."""
        pwd = cls(width=width, allocator=allocator)
        pwd.assign_fill(count, unit)
        return pwd

    @classmethod
    def from_terminated(
        cls,
        buffer: Any,
        offset: int = 0,
        *,
        width: Optional[int] = None,
        allocator: Optional[SecureAllocator] = None,
    ) -> "Password":
        """
        Create a password from a zero-terminated unit buffer.

        Units are read from ``offset`` up to (excluding) the first zero
        unit, or to the end of the buffer if none is found.
        """
        pwd = cls(width=width, allocator=allocator)
        units = as_units(buffer, pwd.width)
        check_index("from_terminated", offset, len(units))
        length = terminated_length(units, offset)
        pwd.assign(units[offset:offset + length])
        return pwd

    @classmethod
    def from_buffer(
        cls,
        buffer: Any,
        count: int,
        offset: int = 0,
        *,
        width: Optional[int] = None,
        allocator: Optional[SecureAllocator] = None,
    ) -> "Password":
        """Create a password from exactly ``count`` units of ``buffer``."""
        pwd = cls(width=width, allocator=allocator)
        units = as_units(buffer, pwd.width)
        check_index("from_buffer", offset, len(units))
        check_count("from_buffer", count)
        if count > len(units) - offset:
            raise PasswordRangeError("from_buffer", offset + count, len(units))
        pwd.assign(units[offset:offset + count])
        return pwd

    @classmethod
    def take(cls, other: "Password") -> "Password":
        """
        Move-construct: steal ``other``'s storage.

        ``other`` is left empty with a fresh block and stays usable.
        The transferred units are not wiped; ownership moved.
        """
        fresh = other._allocator.allocate(0, other.width)
        pwd = cls.__new__(cls)
        pwd._allocator = other._allocator
        pwd._max_size = other._max_size
        pwd._storage, pwd._size = other._storage, other._size
        other._storage, other._size = fresh, 0
        _log.debug("moved block epoch=%d (size=%d)", pwd.epoch, pwd._size)
        return pwd

    # ── Internal storage helpers ──────────────────────────────────────

    def _live(self) -> memoryview:
        return self._storage.units[:self._size]

    def _units_of(self, source: Any) -> UnitSequence:
        if isinstance(source, Password):
            if source.width != self.width:
                raise InvalidArgumentError(
                    f"Width mismatch: {source.width} != {self.width}"
                )
            return source._live()
        return as_units(source, self.width)

    def _subrange(
        self,
        operation: str,
        units: UnitSequence,
        src_pos: int,
        src_count: Optional[int],
    ) -> UnitSequence:
        check_index(operation, src_pos, len(units))
        count = clamp_count(operation, src_count, len(units) - src_pos)
        if src_pos == 0 and count == len(units):
            return units
        return units[src_pos:src_pos + count]

    def _check_growth(self, operation: str, base: int, delta: int) -> None:
        if base > self._max_size - delta:
            raise PasswordLengthError(operation, self._max_size)

    def _populate(self, target_size: int, segments: tuple) -> SecureStorage:
        """Allocate a new block and copy ``segments`` into it in order."""
        storage = self._allocator.allocate(target_size, self.width)
        try:
            offset = 0
            for segment in segments:
                offset = copy_units(storage.units, offset, segment)
        except BaseException:
            self._allocator.retire(storage)
            raise
        return storage

    def _commit(self, storage: SecureStorage, size: int, operation: str) -> None:
        """Swap in ``storage`` and retire the previous block."""
        old = self._storage
        self._storage = storage
        self._size = size
        self._allocator.retire(old)
        _log.debug(
            "%s(): reallocated epoch %d -> %d (size=%d)",
            operation, old.epoch, storage.epoch, size,
        )

    def _rebuild(self, operation: str, target_size: int, *segments: Any) -> None:
        self._commit(self._populate(target_size, segments), target_size, operation)

    def _insert_units(self, operation: str, index: int, units: UnitSequence) -> "Password":
        count = len(units)
        self._check_growth(operation, self._size, count)
        if not count:
            return self

        live = self._live()
        self._rebuild(operation, self._size + count, live[:index], units, live[index:])
        return self

    def _replace_units(
        self,
        operation: str,
        index: int,
        count: Optional[int],
        units: UnitSequence,
    ) -> "Password":
        removed = clamp_count(operation, count, self._size - index)
        inserted = len(units)
        self._check_growth(operation, self._size - removed, inserted)

        if not removed:
            return self._insert_units(operation, index, units)
        if not inserted:
            return self.erase(index, removed)

        if removed == inserted:
            # Same size: overwrite in place, positions stay valid
            copy_units(self._storage.units, index, units)
            return self

        live = self._live()
        self._rebuild(
            operation,
            self._size - removed + inserted,
            live[:index], units, live[index + removed:],
        )
        return self

    # ── Capacity ──────────────────────────────────────────────────────

    @property
    def size(self) -> int:
        """Number of live code units."""
        return self._size

    @property
    def max_size(self) -> int:
        """Largest size this container may reach."""
        return self._max_size

    @property
    def width(self) -> int:
        """Code unit width in bytes."""
        return self._storage.width

    @property
    def epoch(self) -> int:
        """Epoch of the current storage block; changes on reallocation."""
        return self._storage.epoch

    @property
    def is_empty(self) -> bool:
        return not self._size

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return bool(self._size)

    # ── Element access ────────────────────────────────────────────────

    def at(self, index: int) -> int:
        """Return the unit at ``index``, raising PasswordRangeError if out of range."""
        check_index("at", index, self._size, inclusive=False)
        return self._storage.units[index]

    def __getitem__(self, index: int) -> int:
        return self.at(index)

    def __setitem__(self, index: int, unit: Any) -> None:
        check_index("__setitem__", index, self._size, inclusive=False)
        self._storage.units[index] = coerce_unit(unit, self.width)

    def front(self) -> int:
        check_index("front", 0, self._size, inclusive=False)
        return self._storage.units[0]

    def back(self) -> int:
        check_index("back", self._size - 1, self._size, inclusive=False)
        return self._storage.units[self._size - 1]

    @contextmanager
    def borrow(self, include_sentinel: bool = False) -> Iterator[memoryview]:
        """
        Borrow a read-only view of the live units.

        The view is released when the block exits; do not mutate the
        password while borrowing.

        Args:
            include_sentinel: Include the trailing zero unit
        """
        end = self._size + 1 if include_sentinel else self._size
        view = self._storage.units[:end].toreadonly()
        try:
            yield view
        finally:
            view.release()

    def copy_to(self, dest: Any, count: Optional[int] = None, pos: int = 0) -> int:
        """
        Copy up to ``count`` units starting at ``pos`` into ``dest``.

        ``dest`` must be a writable buffer with room for the copied
        units. The caller is responsible for wiping it.

        Returns:
            Number of units copied
        """
        check_index("copy_to", pos, self._size)
        count = clamp_count("copy_to", count, self._size - pos)

        target = memoryview(dest)
        if target.readonly:
            raise InvalidArgumentError("copy_to(): destination is read-only")
        target = as_units(target, self.width)
        if len(target) < count:
            raise InvalidArgumentError(
                f"copy_to(): destination holds {len(target)} units, {count} needed"
            )
        target[:count] = self._storage.units[pos:pos + count]
        return count

    # ── Positions ─────────────────────────────────────────────────────

    def position(self, index: int) -> Position:
        """Forward position at ``index`` (``size`` gives the end position)."""
        check_index("position", index, self._size)
        return Position(self, self.epoch, index * self.width)

    def begin(self) -> Position:
        return Position(self, self.epoch, 0)

    def end(self) -> Position:
        return Position(self, self.epoch, self._size * self.width)

    def rbegin(self) -> ReversePosition:
        return ReversePosition(self, self.epoch, self._size * self.width)

    def rend(self) -> ReversePosition:
        return ReversePosition(self, self.epoch, 0)

    def __iter__(self) -> Iterator[int]:
        epoch = self.epoch
        index = 0
        while True:
            if self.epoch != epoch:
                raise InvalidArgumentError("Password reallocated during iteration")
            if index >= self._size:
                return
            yield self._storage.units[index]
            index += 1

    def __reversed__(self) -> Iterator[int]:
        epoch = self.epoch
        index = self._size
        while index:
            if self.epoch != epoch:
                raise InvalidArgumentError("Password reallocated during iteration")
            index -= 1
            yield self._storage.units[index]

    # ── Whole-content assignment ──────────────────────────────────────

    def assign(self, source: Any) -> "Password":
        """Replace the whole content with a deep copy of ``source``."""
        if source is self:
            return self
        units = self._units_of(source)
        self._check_growth("assign", 0, len(units))
        self._rebuild("assign", len(units), units)
        return self

    def assign_fill(self, count: int, unit: Any) -> "Password":
        """Replace the whole content with ``count`` copies of ``unit``."""
        check_count("assign_fill", count)
        if count > self._max_size:
            raise PasswordLengthError("assign_fill", self._max_size)
        self._rebuild("assign_fill", count, Fill(count, coerce_unit(unit, self.width)))
        return self

    def move_from(self, other: "Password") -> "Password":
        """
        Move-assign: take ``other``'s storage, wiping only our old block.

        ``other`` is left empty with a fresh block. Moving from self
        does nothing.
        """
        if other is self:
            return self
        if other.width != self.width:
            raise InvalidArgumentError(f"Width mismatch: {other.width} != {self.width}")

        fresh = other._allocator.allocate(0, other.width)
        old = self._storage
        self._storage, self._size = other._storage, other._size
        other._storage, other._size = fresh, 0
        self._allocator.retire(old)
        _log.debug("move_from(): adopted block epoch=%d (size=%d)", self.epoch, self._size)
        return self

    def copy(self) -> "Password":
        """Deep copy into fresh storage from the same allocator."""
        return Password(self, allocator=self._allocator)

    def __copy__(self) -> "Password":
        return self.copy()

    def __deepcopy__(self, memo: dict) -> "Password":
        return self.copy()

    def swap(self, other: "Password") -> None:
        """Exchange content with ``other`` without copying or wiping."""
        if other.width != self.width:
            raise InvalidArgumentError(f"Width mismatch: {other.width} != {self.width}")
        self._storage, other._storage = other._storage, self._storage
        self._size, other._size = other._size, self._size

    def clear(self) -> None:
        """Wipe the current block and replace it with an empty one."""
        fresh = self._allocator.allocate(0, self.width)
        self._commit(fresh, 0, "clear")

    # ── Insertion ─────────────────────────────────────────────────────

    def insert(
        self,
        index: int,
        source: Any,
        src_pos: int = 0,
        src_count: Optional[int] = None,
    ) -> "Password":
        """
        Insert units of ``source`` before ``index``.

        ``index == size`` appends. ``src_pos``/``src_count`` select a
        window of the source (the count is clamped).
        """
        check_index("insert", index, self._size)
        units = self._subrange("insert", self._units_of(source), src_pos, src_count)
        return self._insert_units("insert", index, units)

    def insert_fill(self, index: int, count: int, unit: Any) -> "Password":
        """Insert ``count`` copies of ``unit`` before ``index``."""
        check_index("insert", index, self._size)
        check_count("insert", count)
        return self._insert_units("insert", index, Fill(count, coerce_unit(unit, self.width)))

    def insert_at(self, position: Position, source: Any) -> Position:
        """
        Insert ``source`` before ``position``.

        Returns:
            Position of the first inserted unit (in the new storage)
        """
        index = check_position(self, position, "insert")
        self.insert(index, source)
        return Position(self, self.epoch, index * self.width)

    def insert_fill_at(self, position: Position, count: int, unit: Any) -> Position:
        """
        Insert ``count`` copies of ``unit`` before ``position``.

        Returns:
            Position of the first inserted unit (in the new storage)
        """
        index = check_position(self, position, "insert")
        self.insert_fill(index, count, unit)
        return Position(self, self.epoch, index * self.width)

    def append(self, source: Any, src_pos: int = 0, src_count: Optional[int] = None) -> "Password":
        return self.insert(self._size, source, src_pos, src_count)

    def append_fill(self, count: int, unit: Any) -> "Password":
        return self.insert_fill(self._size, count, unit)

    def push_back(self, unit: Any) -> None:
        self.insert_fill(self._size, 1, unit)

    def __iadd__(self, other: Any) -> "Password":
        try:
            return self.append(other)
        except TypeError:
            return NotImplemented

    def __add__(self, other: Any) -> "Password":
        result = self.copy()
        try:
            result.append(other)
        except TypeError:
            result.clear()
            return NotImplemented
        return result

    def __radd__(self, other: Any) -> "Password":
        try:
            result = Password(other, width=self.width, allocator=self._allocator)
        except TypeError:
            return NotImplemented
        return result.append(self)

    # ── Removal ───────────────────────────────────────────────────────

    def erase(self, index: int = 0, count: Optional[int] = None) -> "Password":
        """
        Remove ``count`` units starting at ``index``.

        The count is clamped to ``size - index``; None removes to the
        end and zero is a no-op.
        """
        check_index("erase", index, self._size)
        count = clamp_count("erase", count, self._size - index)
        if not count:
            return self

        live = self._live()
        self._rebuild("erase", self._size - count, live[:index], live[index + count:])
        return self

    def erase_at(self, first: Position, last: Optional[Position] = None) -> Position:
        """
        Remove the unit at ``first``, or the range ``[first, last)``.

        Returns:
            Position of the unit that followed the removed range
        """
        index = check_position(self, first, "erase")
        if last is None:
            count = 1
        else:
            count = check_position(self, last, "erase") - index
            if count < 0:
                raise InvalidArgumentError("erase(): invalid argument, reversed range")
        self.erase(index, count)
        return Position(self, self.epoch, index * self.width)

    def pop_back(self) -> int:
        """Remove and return the last unit."""
        if not self._size:
            raise PasswordRangeError("pop_back", -1, 0)
        unit = self._storage.units[self._size - 1]
        self.erase(self._size - 1, 1)
        return unit

    def erase_value(self, unit: Any) -> int:
        """Remove every occurrence of ``unit``; return how many were removed."""
        value = coerce_unit(unit, self.width)
        return self.erase_if(lambda candidate: candidate == value)

    def erase_if(self, predicate: Callable[[int], bool]) -> int:
        """
        Remove every unit matching ``predicate``; return how many were removed.

        ``predicate`` is called once per unit. Surviving units are copied
        straight from the old block into the new one.
        """
        live = self._live()
        keep = [not predicate(unit) for unit in live]
        selection = Selection(live, keep)
        removed = self._size - len(selection)
        if removed:
            self._rebuild("erase_if", len(selection), selection)
        return removed

    # ── Replacement ───────────────────────────────────────────────────

    def replace(
        self,
        index: int,
        count: Optional[int],
        source: Any,
        src_pos: int = 0,
        src_count: Optional[int] = None,
    ) -> "Password":
        """
        Replace ``count`` units at ``index`` with units of ``source``.

        The removed count is clamped. Equal lengths are overwritten in
        place; an empty removal inserts; an empty source erases.
        """
        check_index("replace", index, self._size)
        if source is self:
            # Overlapping in-place copies would read already written units
            with Password(self, allocator=self._allocator) as snapshot:
                return self.replace(index, count, snapshot, src_pos, src_count)
        units = self._subrange("replace", self._units_of(source), src_pos, src_count)
        return self._replace_units("replace", index, count, units)

    def replace_fill(self, index: int, count: Optional[int], count2: int, unit: Any) -> "Password":
        """Replace ``count`` units at ``index`` with ``count2`` copies of ``unit``."""
        check_index("replace", index, self._size)
        check_count("replace", count2)
        return self._replace_units(
            "replace", index, count, Fill(count2, coerce_unit(unit, self.width))
        )

    def replace_range(self, first: Position, last: Position, source: Any) -> "Password":
        """Replace the units in ``[first, last)`` with ``source``."""
        index = check_position(self, first, "replace")
        count = check_position(self, last, "replace") - index
        if count < 0:
            raise InvalidArgumentError("replace(): invalid argument, reversed range")
        return self.replace(index, count, source)

    def replace_range_fill(self, first: Position, last: Position, count2: int, unit: Any) -> "Password":
        """Replace the units in ``[first, last)`` with ``count2`` copies of ``unit``."""
        index = check_position(self, first, "replace")
        count = check_position(self, last, "replace") - index
        if count < 0:
            raise InvalidArgumentError("replace(): invalid argument, reversed range")
        return self.replace_fill(index, count, count2, unit)

    def resize(self, count: int, fill: Any = 0) -> None:
        """
        Resize to ``count`` units.

        Growing appends copies of ``fill``; shrinking truncates. Both
        reallocate, so the discarded tail is wiped with the old block.
        """
        check_count("resize", count)
        if count > self._max_size:
            raise PasswordLengthError("resize", self._max_size)
        if count == self._size:
            return

        live = self._live()
        if count < self._size:
            self._rebuild("resize", count, live[:count])
        else:
            unit = coerce_unit(fill, self.width)
            self._rebuild("resize", count, live, Fill(count - self._size, unit))

    # ── Read-only operations ──────────────────────────────────────────

    def substr(self, pos: int = 0, count: Optional[int] = None) -> "Password":
        """New password holding up to ``count`` units starting at ``pos``."""
        check_index("substr", pos, self._size)
        count = clamp_count("substr", count, self._size - pos)
        return Password(
            self._storage.units[pos:pos + count],
            width=self.width,
            allocator=self._allocator,
        )

    def compare(self, other: Any) -> int:
        """Three-way lexicographic comparison with any unit source."""
        return three_way_compare(self._live(), self._units_of(other))

    def compare_sub(
        self,
        pos1: int,
        count1: Optional[int],
        other: Any,
        pos2: int = 0,
        count2: Optional[int] = None,
    ) -> int:
        """Compare ``self[pos1:pos1+count1]`` with ``other[pos2:pos2+count2]``."""
        check_index("compare", pos1, self._size)
        count1 = clamp_count("compare", count1, self._size - pos1)
        rhs = self._subrange("compare", self._units_of(other), pos2, count2)
        return three_way_compare(self._storage.units[pos1:pos1 + count1], rhs)

    def find(self, pattern: Any, pos: int = 0) -> int:
        """Index of the first match at or after ``pos``, else NPOS."""
        units = self._units_of(pattern)
        if pos == NPOS:
            return NPOS
        check_count("find", pos)
        return find_units(self._live(), units, pos)

    def rfind(self, pattern: Any, pos: Optional[int] = None) -> int:
        """
        Index of the last match lying within ``[0, pos]``, else NPOS.

        None or NPOS searches the whole password.
        """
        if pos == NPOS:
            pos = None
        elif pos is not None:
            check_count("rfind", pos)
        return rfind_units(self._live(), self._units_of(pattern), pos)

    def starts_with(self, pattern: Any) -> bool:
        return starts_with_units(self._live(), self._units_of(pattern))

    def ends_with(self, pattern: Any) -> bool:
        return ends_with_units(self._live(), self._units_of(pattern))

    def contains(self, pattern: Any) -> bool:
        units = self._units_of(pattern)
        if not len(units):
            return True
        return find_units(self._live(), units, 0) != NPOS

    def __contains__(self, pattern: Any) -> bool:
        return self.contains(pattern)

    def _compare_or_none(self, other: Any) -> Optional[int]:
        # A bare int is a single unit for edits, never an operand for operators
        if isinstance(other, int):
            return None
        try:
            return self.compare(other)
        except TypeError:
            return None

    def __eq__(self, other: object) -> bool:
        try:
            result = self._compare_or_none(other)
        except InvalidArgumentError:
            return False
        if result is None:
            return NotImplemented
        return result == 0

    def __lt__(self, other: Any) -> bool:
        result = self._compare_or_none(other)
        return NotImplemented if result is None else result < 0

    def __le__(self, other: Any) -> bool:
        result = self._compare_or_none(other)
        return NotImplemented if result is None else result <= 0

    def __gt__(self, other: Any) -> bool:
        result = self._compare_or_none(other)
        return NotImplemented if result is None else result > 0

    def __ge__(self, other: Any) -> bool:
        result = self._compare_or_none(other)
        return NotImplemented if result is None else result >= 0

    __hash__ = None  # type: ignore[assignment]

    # ── Lifecycle ─────────────────────────────────────────────────────

    def __enter__(self) -> "Password":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - always wipe."""
        self.clear()

    def __del__(self) -> None:
        """Destructor - wipe the current block."""
        try:
            storage = self._storage
        except AttributeError:
            return  # construction failed before storage existed
        try:
            self._allocator.retire(storage)
        except Exception:
            pass

    def __repr__(self) -> str:
        """Safe representation - never show content."""
        return f"Password(size={self._size}, width={self.width})"

    def __str__(self) -> str:
        """String conversion - returns masked value."""
        return "********"

    def __reduce__(self):
        raise TypeError("Password objects cannot be pickled")
