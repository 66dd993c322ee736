"""
Password module - The secure container, its positions and stream bridge.
"""

from securepwd.password.password import Password
from securepwd.password.positions import Position, ReversePosition
from securepwd.password.streams import read_into, readline_into, write_from
from securepwd.password.units import NPOS

__all__ = [
    "NPOS",
    "Password",
    "Position",
    "ReversePosition",
    "read_into",
    "readline_into",
    "write_from",
]
