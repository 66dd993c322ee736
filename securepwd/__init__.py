"""
securepwd - Secure Password Containers
======================================

This package provides a mutable, string-like container for sensitive
code unit sequences whose every discarded storage block is wiped
before release.

Security Notice:
- No container content is logged or shown by repr()/str()
- Failed operations leave containers unchanged
- Positions are rejected once their storage has been replaced
"""

from securepwd.core.config import SecureConfig
from securepwd.core.errors import (
    InvalidArgumentError,
    PasswordError,
    PasswordLengthError,
    PasswordRangeError,
    StreamBridgeError,
)
from securepwd.core.logging import configure_logging, get_secure_logger
from securepwd.password import (
    NPOS,
    Password,
    Position,
    ReversePosition,
    read_into,
    readline_into,
    write_from,
)

__version__ = "0.1.0"

__all__ = [
    "NPOS",
    "Password",
    "Position",
    "ReversePosition",
    "read_into",
    "readline_into",
    "write_from",
    "PasswordError",
    "PasswordRangeError",
    "PasswordLengthError",
    "InvalidArgumentError",
    "StreamBridgeError",
    "SecureConfig",
    "configure_logging",
    "get_secure_logger",
    "__version__",
]
