"""
Memory Zeroization Utilities
============================

Provides explicit zeroization of mutable byte buffers.

Security Properties:
- Explicit zeroization (no GC reliance)
- Exception-safe cleanup
- Final pass always leaves every byte at zero

Key Concepts:
- Zeroization: Overwriting memory with zeros/patterns
- Guard: Automatic cleanup on scope exit
"""

from __future__ import annotations

import ctypes
from contextlib import contextmanager
from typing import Final, Iterator


# Zeroization constants
WIPE_PASSES: Final[int] = 3
_PASS_PATTERNS: Final[tuple[int, int]] = (0x00, 0xFF)


def _pattern_for_pass(pass_num: int, passes: int) -> int:
    """Alternate zeros and ones; the last pass is always zeros."""
    if pass_num == passes - 1:
        return 0x00
    return _PASS_PATTERNS[pass_num % 2]


def secure_zero(data: bytearray | memoryview, passes: int = WIPE_PASSES) -> None:
    """
    Securely zero a byte buffer.

    Uses ctypes for direct memory access where possible,
    with fallback to Python-level zeroing (single pass) for
    buffers ctypes cannot map (non-contiguous views).

    Args:
        data: Mutable byte buffer to zero
        passes: Number of overwrite passes (final pass is zeros)

    Raises:
        TypeError: If the buffer is read-only
        ValueError: If passes is less than 1

    Security Notes:
        - This is best-effort; Python may have copies
        - Call immediately after use, before GC
        - Buffer must be mutable (bytearray, not bytes)
    """
    if passes < 1:
        raise ValueError("At least one wipe pass is required")

    if isinstance(data, memoryview):
        if data.readonly:
            raise TypeError("Cannot zero a read-only buffer")
        if data.nbytes == 0:
            return
        if not data.c_contiguous:
            # Strided view: zero element by element
            for i in range(len(data)):
                data[i] = 0
            return
        view = data.cast("B")
        size = view.nbytes
    else:
        view = data
        size = len(data)
        if size == 0:
            return

    addr = ctypes.addressof((ctypes.c_char * size).from_buffer(view))
    for pass_num in range(passes):
        ctypes.memset(addr, _pattern_for_pass(pass_num, passes), size)


@contextmanager
def ZeroizeContext(*buffers: bytearray | memoryview) -> Iterator[None]:
    """
    Context manager that zeroizes buffers on exit.

    Always zeroizes, whether exit is normal or exceptional.

    Usage:
        scratch = bytearray(1024)

        with ZeroizeContext(scratch):
            stream.readinto(scratch)
            password.append(scratch)
        # scratch is now zeroed
    """
    try:
        yield
    finally:
        for buf in buffers:
            secure_zero(buf)
