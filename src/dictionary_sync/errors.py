"""Error taxonomy for dictionary_sync.

Store and persistence failures are never fatal inside a sync cycle: the
orchestrator catches them at each call site, logs them, and carries on.
``ErrorKind`` names the same taxonomy for result-style returns that do not
raise (see ``StoreResult``).
"""

from enum import Enum


class ErrorKind(str, Enum):
    STORE_UNAVAILABLE = "store_unavailable"
    STORE_OPERATION_FAILED = "store_operation_failed"
    PERSISTENCE_READ_FAILED = "persistence_read_failed"
    PERSISTENCE_WRITE_FAILED = "persistence_write_failed"


class DictionarySyncError(Exception):
    """Base class for all dictionary_sync errors."""

    kind: ErrorKind | None = None


class StoreUnavailableError(DictionarySyncError):
    """The native word-list store is missing or unsupported."""

    kind = ErrorKind.STORE_UNAVAILABLE


class StoreOperationError(DictionarySyncError):
    """A single add/remove/list call against the native store failed."""

    kind = ErrorKind.STORE_OPERATION_FAILED


class PersistenceReadError(DictionarySyncError):
    """The persisted settings could not be read or parsed."""

    kind = ErrorKind.PERSISTENCE_READ_FAILED


class PersistenceWriteError(DictionarySyncError):
    """The settings could not be written to durable storage."""

    kind = ErrorKind.PERSISTENCE_WRITE_FAILED


class ConfigError(ValueError):
    """Invalid configuration value."""
