"""
Secure Buffer Manager
=====================

Owns the creation and destruction of every backing block used by
password containers.

Security Properties:
- Blocks are zero-initialised on allocation
- The full extent of a block (sentinel included) is wiped before release
- Retirement is idempotent
- Every block carries an epoch used to reject stale positions

Limitations:
- Python's memory model copies data internally
- GC may leave copies in memory
- Best-effort security, not guaranteed
"""

from __future__ import annotations

import itertools
import logging
import struct
import threading
from typing import Final, Optional

from securepwd.core.config import SecureConfig
from securepwd.core.errors import InvalidArgumentError
from securepwd.core.memory.zeroization import WIPE_PASSES, secure_zero


# memoryview formats for each supported code unit width
UNIT_FORMATS: Final[dict[int, str]] = {
    1: "B",
    2: "H",
    4: "I" if struct.calcsize("I") == 4 else "L",
}

# Epochs are process-wide so storage can move between allocators
_EPOCHS = itertools.count(1)


class SecureStorage:
    """
    One contiguous block of fixed-width code units.

    The block holds ``capacity`` units where the last unit is the
    zero sentinel. Only SecureAllocator creates or retires storage.

    Security Notes:
        - ``units`` is a typed view; never hand it out beyond a borrow
        - After retirement every byte of ``raw`` is zero
    """

    __slots__ = ("_raw", "_units", "_width", "_epoch", "_retired", "__weakref__")

    def __init__(self, raw: bytearray, width: int, epoch: int) -> None:
        self._raw = raw
        self._width = width
        self._epoch = epoch
        self._retired = False
        self._units = memoryview(raw).cast(UNIT_FORMATS[width])

    @property
    def raw(self) -> bytearray:
        """The underlying byte extent (for inspection by allocators)."""
        return self._raw

    @property
    def units(self) -> memoryview:
        """Typed view over every unit, sentinel included."""
        if self._retired:
            raise InvalidArgumentError("Storage has been retired")
        return self._units

    @property
    def width(self) -> int:
        return self._width

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def capacity(self) -> int:
        """Number of code units in the block, sentinel included."""
        return len(self._raw) // self._width

    @property
    def nbytes(self) -> int:
        return len(self._raw)

    @property
    def is_retired(self) -> bool:
        return self._retired

    def __repr__(self) -> str:
        """Safe representation."""
        if self._retired:
            return f"SecureStorage(RETIRED, epoch={self._epoch})"
        return (
            f"SecureStorage(capacity={self.capacity}, width={self._width}, "
            f"epoch={self._epoch})"
        )


class SecureAllocator:
    """
    Allocates and securely retires code unit blocks.

    Usage:
        allocator = SecureAllocator()

        storage = allocator.allocate(16, width=1)
        try:
            storage.units[0:3] = b"abc"
        finally:
            allocator.retire(storage)  # extent is now zero

    Subclasses may override ``allocate``/``retire`` to instrument
    the lifecycle (tests record retired blocks this way), but must
    call the base implementation.
    """

    __slots__ = ("_wipe_passes", "_log")

    def __init__(self, wipe_passes: int = WIPE_PASSES) -> None:
        """
        Initialize the allocator.

        Args:
            wipe_passes: Overwrite passes per retirement (final pass is zeros)
        """
        if wipe_passes < 1:
            raise ValueError("wipe_passes must be at least 1")

        self._wipe_passes = wipe_passes
        self._log = logging.getLogger("securepwd.memory")

    @property
    def wipe_passes(self) -> int:
        return self._wipe_passes

    def allocate(self, units: int, width: int = 1) -> SecureStorage:
        """
        Allocate a zero-initialised block of ``units + 1`` code units.

        Args:
            units: Number of live units the block must hold
            width: Code unit width in bytes (1, 2 or 4)

        Returns:
            New storage whose sentinel (and content) is zero

        Raises:
            InvalidArgumentError: If units is negative or width unsupported
            MemoryError: If the allocation cannot be satisfied
        """
        if width not in UNIT_FORMATS:
            raise InvalidArgumentError(f"Unsupported code unit width: {width}")
        if units < 0:
            raise InvalidArgumentError(f"Cannot allocate a negative size: {units}")

        raw = bytearray((units + 1) * width)
        storage = SecureStorage(raw, width, next(_EPOCHS))

        self._log.debug(
            "allocated block epoch=%d units=%d width=%d",
            storage.epoch, units, width,
        )
        return storage

    def retire(self, storage: SecureStorage) -> None:
        """
        Wipe the full extent of ``storage`` and release it.

        Retiring an already retired block does nothing.
        """
        if storage.is_retired:
            return

        secure_zero(storage._raw, passes=self._wipe_passes)
        storage._units.release()
        storage._retired = True

        self._log.debug(
            "retired block epoch=%d bytes=%d", storage.epoch, storage.nbytes
        )


_default_allocator: Optional[SecureAllocator] = None
_default_lock = threading.Lock()


def get_default_allocator() -> SecureAllocator:
    """
    Get or create the process-wide allocator.

    Wipe passes come from the ``memory`` section of SecureConfig.
    """
    global _default_allocator

    with _default_lock:
        if _default_allocator is None:
            config = SecureConfig.get_instance()
            _default_allocator = SecureAllocator(
                wipe_passes=config.memory.wipe_passes
            )
        return _default_allocator


def reset_default_allocator() -> None:
    """Drop the process-wide allocator. Use only for testing."""
    global _default_allocator

    with _default_lock:
        _default_allocator = None
