"""
Stream Bridge
=============

Moves password content to and from binary streams without building
intermediate immutable copies.

- read_into: append a whole stream in fixed-size chunks
- readline_into: read one delimited line (long lines continue in chunks)
- write_from: write exactly ``size`` units

Reads go through a scratch bytearray that is zeroized on exit, and
all content enters the password through its append path.

Streams must be binary and expose ``readinto``/``write``. A read of
zero bytes (or None from a non-blocking stream) ends the input.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from securepwd.core.config import SecureConfig
from securepwd.core.errors import InvalidArgumentError, StreamBridgeError
from securepwd.core.memory.allocator import UNIT_FORMATS
from securepwd.core.memory.zeroization import ZeroizeContext
from securepwd.password.password import Password
from securepwd.password.units import coerce_unit


_log = logging.getLogger("securepwd.streams")


def _chunk_units(chunk_size: Optional[int]) -> int:
    if chunk_size is None:
        return SecureConfig.get_instance().streams.chunk_size
    if chunk_size < 1:
        raise InvalidArgumentError(f"Chunk size must be at least 1 ({chunk_size})")
    return chunk_size


def _fill(stream: Any, view: memoryview) -> int:
    """Read into ``view`` until it is full or input ends; return bytes read."""
    total = 0
    while total < len(view):
        count = stream.readinto(view[total:])
        if not count:
            break
        total += count
    return total


def read_into(stream: Any, password: Password, chunk_size: Optional[int] = None) -> int:
    """
    Append everything remaining in ``stream`` to ``password``.

    Args:
        stream: Binary stream with ``readinto``
        password: Destination (content is appended)
        chunk_size: Units per scratch read (defaults to configuration)

    Returns:
        Number of units appended

    Raises:
        StreamBridgeError: If the input ends inside a code unit
    """
    width = password.width
    scratch = bytearray(_chunk_units(chunk_size) * width)
    total = 0

    with ZeroizeContext(scratch):
        view = memoryview(scratch)
        try:
            while True:
                nbytes = _fill(stream, view)
                if nbytes % width:
                    raise StreamBridgeError(
                        f"Input ended inside a {width}-byte code unit"
                    )
                if nbytes:
                    password.append(view[:nbytes])
                    total += nbytes // width
                if nbytes < len(view):
                    break
        finally:
            view.release()

    _log.debug("read %d units from stream", total)
    return total


def readline_into(
    stream: Any,
    password: Password,
    delimiter: Any = "\n",
    chunk_size: Optional[int] = None,
) -> bool:
    """
    Replace ``password`` with the next line of ``stream``.

    Units are accumulated up to (excluding) ``delimiter``, which is
    consumed. When the scratch buffer fills first, its content is
    appended and reading continues until the delimiter or the end
    of input.

    ``delimiter`` is a single unit (int, one-character str, or bytes
    of exactly one unit width); the default newline works at any width.

    Returns:
        True if anything (data or delimiter) was read, False at end of input
    """
    width = password.width
    delim = coerce_unit(delimiter, width)
    units = _chunk_units(chunk_size)

    password.clear()

    scratch = bytearray(units * width)
    got_any = False
    filled = 0

    with ZeroizeContext(scratch):
        raw = memoryview(scratch)
        typed = raw.cast(UNIT_FORMATS[width])
        try:
            while True:
                start = filled * width
                nbytes = _fill(stream, raw[start:start + width])
                if not nbytes:
                    break
                if nbytes < width:
                    raise StreamBridgeError(
                        f"Input ended inside a {width}-byte code unit"
                    )
                got_any = True
                if typed[filled] == delim:
                    break
                filled += 1
                if filled == units:
                    # Long line: flush the full scratch and keep going
                    password.append(raw[:filled * width])
                    filled = 0
            if filled:
                password.append(raw[:filled * width])
        finally:
            typed.release()
            raw.release()

    _log.debug("read line of %d units from stream", len(password))
    return got_any


def write_from(stream: Any, password: Password) -> int:
    """
    Write exactly ``len(password)`` units of content to ``stream``.

    The sentinel is never written and never used to find the end.

    Returns:
        Number of units written

    Raises:
        StreamBridgeError: If the stream stops accepting data
    """
    written = 0
    with password.borrow() as view:
        data = view.cast("B")
        try:
            while written < len(data):
                count = stream.write(data[written:])
                if not count:
                    raise StreamBridgeError("Stream accepted no data")
                written += count
        finally:
            data.release()

    _log.debug("wrote %d units to stream", written // password.width)
    return written // password.width
