"""
Code Units
==========

Normalises the values a password container accepts as content into
length-known, sliceable sequences of fixed-width code units.

Accepted sources:
- bytes, bytearray, memoryview, array: raw native-endian units
- str: one unit per character ordinal (no encoding step)
- int: a single unit
- any other iterable of int units

Every normalised sequence is fully validated before it is returned,
so copying it into new storage can never fail halfway.
"""

from __future__ import annotations

from collections.abc import Iterable
from itertools import compress
from typing import Any, Final, Sequence, Union

from securepwd.core.errors import InvalidArgumentError
from securepwd.core.memory.allocator import UNIT_FORMATS


UNIT_WIDTHS: Final[frozenset[int]] = frozenset(UNIT_FORMATS)
NPOS: Final[int] = -1


def unit_limit(width: int) -> int:
    """Exclusive upper bound of a code unit of ``width`` bytes."""
    return 1 << (8 * width)


def check_width(width: int) -> int:
    """Validate a code unit width."""
    if width not in UNIT_WIDTHS:
        raise InvalidArgumentError(f"Unsupported code unit width: {width}")
    return width


def coerce_unit(value: Any, width: int) -> int:
    """
    Convert a single unit value to an int in range for ``width``.

    Accepts an int, a one-character str, or a bytes object holding
    exactly one unit.

    Raises:
        InvalidArgumentError: If the value is not a valid unit
    """
    if isinstance(value, int):
        unit = int(value)
    elif isinstance(value, str) and len(value) == 1:
        unit = ord(value)
    elif isinstance(value, (bytes, bytearray)) and len(value) == width:
        unit = memoryview(value).cast(UNIT_FORMATS[width])[0]
    else:
        raise InvalidArgumentError(f"Not a single code unit: {type(value).__name__}")

    if not 0 <= unit < unit_limit(width):
        raise InvalidArgumentError(
            f"Code unit {unit} does not fit in {width} byte(s)"
        )
    return unit


class StrUnits:
    """
    Window over a str exposing character ordinals as code units.

    Slicing narrows the window without copying the string.
    """

    __slots__ = ("_text", "_start", "_stop")

    def __init__(self, text: str, width: int) -> None:
        self._text = text
        self._start = 0
        self._stop = len(text)
        if width < 4 and text:
            highest = ord(max(text))
            if highest >= unit_limit(width):
                raise InvalidArgumentError(
                    f"Character U+{highest:04X} does not fit in {width} byte(s)"
                )

    def __len__(self) -> int:
        return self._stop - self._start

    def __getitem__(self, key: int | slice) -> Union[int, "StrUnits"]:
        if isinstance(key, slice):
            start, stop, step = key.indices(len(self))
            if step != 1:
                raise InvalidArgumentError("Only contiguous windows are supported")
            stop = max(start, stop)
            window = StrUnits.__new__(StrUnits)
            window._text = self._text
            window._start = self._start + start
            window._stop = self._start + stop
            return window
        if not 0 <= key < len(self):
            raise IndexError(key)
        return ord(self._text[self._start + key])

    def __iter__(self):
        for i in range(self._start, self._stop):
            yield ord(self._text[i])


UnitSequence = Union[memoryview, StrUnits, Sequence[int]]


def _typed_view(view: memoryview, width: int) -> memoryview:
    if not view.c_contiguous:
        raise InvalidArgumentError("Buffer sources must be contiguous")
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    if view.nbytes % width:
        raise InvalidArgumentError(
            f"Buffer of {view.nbytes} bytes is not a whole number of {width}-byte units"
        )
    if width == 1:
        return view
    return view.cast(UNIT_FORMATS[width])


def as_units(source: Any, width: int) -> UnitSequence:
    """
    Normalise ``source`` into a validated unit sequence.

    Buffers are viewed in place, strings are windowed, and generic
    iterables are materialised once.

    Raises:
        InvalidArgumentError: If any unit is out of range
        TypeError: If the source is not a supported type
    """
    if isinstance(source, str):
        return StrUnits(source, width)
    if isinstance(source, int):
        return (coerce_unit(source, width),)
    try:
        view = memoryview(source)
    except TypeError:
        view = None
    if view is not None:
        return _typed_view(view, width)
    if isinstance(source, Iterable):
        return [coerce_unit(unit, width) for unit in source]
    raise TypeError(f"Unsupported unit source: {type(source).__name__}")


def terminated_length(units: UnitSequence, offset: int = 0) -> int:
    """Count units from ``offset`` up to (excluding) the first zero unit."""
    length = 0
    for i in range(offset, len(units)):
        if units[i] == 0:
            break
        length += 1
    return length


def copy_units(dest: memoryview, offset: int, source: UnitSequence) -> int:
    """
    Copy ``source`` into ``dest`` starting at ``offset``.

    Returns:
        The offset just past the copied units
    """
    count = len(source)
    if isinstance(source, memoryview):
        dest[offset:offset + count] = source
    else:
        for i, unit in enumerate(source):
            dest[offset + i] = unit
    return offset + count


class Fill:
    """A run of ``count`` copies of one unit, used as a copy segment."""

    __slots__ = ("count", "unit")

    def __init__(self, count: int, unit: int) -> None:
        self.count = count
        self.unit = unit

    def __len__(self) -> int:
        return self.count

    def __iter__(self):
        for _ in range(self.count):
            yield self.unit


class Selection:
    """Units of ``source`` whose ``mask`` entry is true, used as a copy segment."""

    __slots__ = ("source", "mask", "count")

    def __init__(self, source: UnitSequence, mask: list[bool]) -> None:
        self.source = source
        self.mask = mask
        self.count = sum(mask)

    def __len__(self) -> int:
        return self.count

    def __iter__(self):
        return compress(self.source, self.mask)
