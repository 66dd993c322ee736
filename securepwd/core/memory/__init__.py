"""
Memory Security Module
======================

Provides the secure buffer manager and zeroization primitives.

Components:
- allocator.py: SecureAllocator / SecureStorage (the only code that
  creates or wipes backing storage)
- zeroization.py: Memory wiping utilities

WARNING:
- Python's memory model doesn't guarantee secure erasure
- These are best-effort mitigations
- For maximum security, consider native extensions
"""

from securepwd.core.memory.allocator import (
    SecureAllocator,
    SecureStorage,
    get_default_allocator,
    reset_default_allocator,
)
from securepwd.core.memory.zeroization import (
    secure_zero,
    ZeroizeContext,
)

__all__ = [
    "SecureAllocator",
    "SecureStorage",
    "get_default_allocator",
    "reset_default_allocator",
    "secure_zero",
    "ZeroizeContext",
]
