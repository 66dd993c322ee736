"""
Secure Configuration Module
===========================

Provides immutable, environment-aware configuration with security-first defaults.

Security Features:
- Immutable configuration after initialization
- Environment variable override support
- No secrets in default values
- Type-safe configuration access
"""

from __future__ import annotations

import hashlib
import os
import sys
from dataclasses import dataclass
from typing import Any, Final, Optional


# Security Constants
_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({
    "password", "secret", "key", "token", "api_key",
    "private", "credential", "auth", "salt"
})

_SUPPORTED_WIDTHS: Final[frozenset[int]] = frozenset({1, 2, 4})


def _is_sensitive_key(key: str) -> bool:
    """Check if a configuration key might contain sensitive data."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS)


@dataclass(frozen=True, slots=True)
class MemoryConfig:
    """Immutable memory configuration."""

    wipe_passes: int = 3
    max_size: int = sys.maxsize // 4 - 1
    default_width: int = 1

    def __post_init__(self) -> None:
        """Validate memory settings."""
        if self.wipe_passes < 1:
            raise ValueError("Wipe passes must be at least 1")
        if self.max_size < 1:
            raise ValueError("Maximum size must be positive")
        if self.default_width not in _SUPPORTED_WIDTHS:
            raise ValueError(f"Unsupported code unit width: {self.default_width}")


@dataclass(frozen=True, slots=True)
class StreamConfig:
    """Immutable stream bridge configuration."""

    chunk_size: int = 1024  # code units per scratch read

    def __post_init__(self) -> None:
        """Validate stream settings."""
        if self.chunk_size < 1:
            raise ValueError("Chunk size must be at least 1")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Immutable logging configuration."""

    level: str = "INFO"
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_console: bool = True
    enable_file: bool = False

    def __post_init__(self) -> None:
        """Validate logging settings."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.level}")


class SecureConfig:
    """
    Centralized, immutable configuration loader with environment override support.

    This class provides a secure way to manage library configuration with:
    - Immutable configuration after initialization
    - Environment variable overrides (prefixed with SECUREPWD_)
    - Type-safe access to configuration values

    Usage:
        config = SecureConfig.load()
        passes = config.memory.wipe_passes
        chunk = config.streams.chunk_size
    """

    __slots__ = ("_memory", "_streams", "_logging", "_frozen", "_config_hash")

    _instance: Optional[SecureConfig] = None

    def __init__(
        self,
        memory: Optional[MemoryConfig] = None,
        streams: Optional[StreamConfig] = None,
        logging: Optional[LoggingConfig] = None,
    ) -> None:
        """Initialize configuration. Use SecureConfig.load() for standard initialization."""
        # Use object.__setattr__ to bypass our immutability check during init
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_memory", memory or MemoryConfig())
        object.__setattr__(self, "_streams", streams or StreamConfig())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        object.__setattr__(self, "_config_hash", self._compute_hash())
        object.__setattr__(self, "_frozen", True)

    def _compute_hash(self) -> str:
        """Compute a hash of the configuration for integrity checking."""
        config_str = f"{self._memory}|{self._streams}|{self._logging}"
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @property
    def memory(self) -> MemoryConfig:
        """Get memory configuration."""
        return self._memory

    @property
    def streams(self) -> StreamConfig:
        """Get stream bridge configuration."""
        return self._streams

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return self._logging

    @property
    def config_hash(self) -> str:
        """Get configuration integrity hash."""
        return self._config_hash

    @classmethod
    def load(cls, env_prefix: str = "SECUREPWD") -> SecureConfig:
        """
        Load configuration with environment variable overrides.

        Environment variables should be prefixed with SECUREPWD_ and use
        double underscores for nested values.

        Examples:
            SECUREPWD_LOGGING__LEVEL=DEBUG
            SECUREPWD_MEMORY__WIPE_PASSES=1
            SECUREPWD_STREAMS__CHUNK_SIZE=4096

        Args:
            env_prefix: Prefix for environment variables (default: SECUREPWD)

        Returns:
            Configured SecureConfig instance
        """
        env_overrides = cls._parse_env_overrides(env_prefix)

        # Build memory configuration
        memory_kwargs: dict[str, Any] = {}
        if "memory.wipe_passes" in env_overrides:
            memory_kwargs["wipe_passes"] = int(env_overrides["memory.wipe_passes"])
        if "memory.max_size" in env_overrides:
            memory_kwargs["max_size"] = int(env_overrides["memory.max_size"])
        if "memory.default_width" in env_overrides:
            memory_kwargs["default_width"] = int(env_overrides["memory.default_width"])

        # Build stream configuration
        streams_kwargs: dict[str, Any] = {}
        if "streams.chunk_size" in env_overrides:
            streams_kwargs["chunk_size"] = int(env_overrides["streams.chunk_size"])

        # Build logging configuration
        logging_kwargs: dict[str, Any] = {}
        if "logging.level" in env_overrides:
            logging_kwargs["level"] = env_overrides["logging.level"]
        if "logging.enable_console" in env_overrides:
            logging_kwargs["enable_console"] = env_overrides["logging.enable_console"].lower() == "true"
        if "logging.enable_file" in env_overrides:
            logging_kwargs["enable_file"] = env_overrides["logging.enable_file"].lower() == "true"

        return cls(
            memory=MemoryConfig(**memory_kwargs) if memory_kwargs else None,
            streams=StreamConfig(**streams_kwargs) if streams_kwargs else None,
            logging=LoggingConfig(**logging_kwargs) if logging_kwargs else None,
        )

    @staticmethod
    def _parse_env_overrides(prefix: str) -> dict[str, str]:
        """Parse environment variables with the given prefix."""
        overrides: dict[str, str] = {}
        prefix_upper = f"{prefix.upper()}_"

        for key, value in os.environ.items():
            if key.startswith(prefix_upper):
                # Convert SECUREPWD_SECTION__KEY to section.key
                config_key = key[len(prefix_upper):].lower().replace("__", ".")

                # SECURITY: Skip sensitive keys from environment
                if _is_sensitive_key(config_key):
                    continue

                overrides[config_key] = value

        return overrides

    @classmethod
    def get_instance(cls) -> SecureConfig:
        """
        Get or create the singleton configuration instance.

        Returns:
            The global SecureConfig instance
        """
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance. Use only for testing."""
        cls._instance = None

    def __repr__(self) -> str:
        """Safe string representation without sensitive data."""
        return f"SecureConfig(hash={self._config_hash})"

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification after initialization."""
        if hasattr(self, "_frozen") and self._frozen:
            raise AttributeError("SecureConfig is immutable after initialization")
        super().__setattr__(name, value)
