# securepwd test configuration
# Fixtures shared by the unit and property tests

import os

import pytest

from securepwd.core.config import SecureConfig
from securepwd.core.memory.allocator import SecureAllocator, reset_default_allocator


class RecordingAllocator(SecureAllocator):
    """
    Allocator that records every block it hands out and retires.

    Retired blocks stay referenced, so tests can check that their
    full extent was wiped. Setting ``fail_next`` makes the next
    allocation raise MemoryError.
    """

    def __init__(self, wipe_passes: int = 1) -> None:
        super().__init__(wipe_passes=wipe_passes)
        self.allocated = []
        self.retired = []
        self.fail_next = False

    def allocate(self, units, width=1):
        if self.fail_next:
            self.fail_next = False
            raise MemoryError("injected allocation failure")
        storage = super().allocate(units, width)
        self.allocated.append(storage)
        return storage

    def retire(self, storage):
        already = storage.is_retired
        super().retire(storage)
        if not already:
            self.retired.append(storage)


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Isolate every test from environment overrides and cached singletons."""
    for key in list(os.environ):
        if key.startswith("SECUREPWD_"):
            monkeypatch.delenv(key)
    SecureConfig.reset_instance()
    reset_default_allocator()
    yield
    SecureConfig.reset_instance()
    reset_default_allocator()


@pytest.fixture
def allocator():
    """Provide a recording allocator."""
    return RecordingAllocator()


@pytest.fixture
def make_password(allocator):
    """Build passwords backed by the recording allocator."""
    from securepwd import Password

    def factory(source=None, width=None):
        return Password(source, width=width, allocator=allocator)

    return factory
