from __future__ import annotations


class StoreError(RuntimeError):
    """Base class for failures raised by the guild store layer."""


class CorruptStore(StoreError):
    """A store file exists but cannot be read or parsed as a store document."""

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class StorageUnavailable(StoreError):
    """The data directory or a store file could not be created or written."""


class InvalidKey(StoreError, ValueError):
    """A guild, channel or user identifier was empty."""
