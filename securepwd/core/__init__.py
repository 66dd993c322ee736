"""
Core module - Contains configuration, logging, errors and memory primitives.
"""

from securepwd.core.config import SecureConfig
from securepwd.core.logging import SecureLogFilter, configure_logging, get_secure_logger

__all__ = ["SecureConfig", "SecureLogFilter", "configure_logging", "get_secure_logger"]
