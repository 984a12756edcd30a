"""Custom exception hierarchy for pocketcal.

Most engine operations degrade gracefully instead of raising. These types
exist so the layers that do raise (backends, id parsing, config loading) can
be caught precisely at the boundary that turns them into a no-op or an
empty result.
"""


class PocketCalError(Exception):
    """Base exception for all pocketcal errors."""


class EventStoreError(PocketCalError):
    """Persistence backend failed.

    The engine never lets these escape a mutation; they are logged and the
    in-memory state is kept.
    """


class StoreReadError(EventStoreError):
    """Reading the persisted document failed.

    Raised when:
    - The backing file exists but cannot be opened or decoded

    EventStore.load() treats this as "no events".
    """


class StoreWriteError(EventStoreError):
    """Writing the persisted document failed.

    Raised when:
    - The target directory cannot be created
    - The temporary file cannot be written or moved into place
    """


class InvalidEventIdError(PocketCalError, ValueError):
    """Event id is empty or cannot be decoded.

    Raised when:
    - A base id is empty or contains the occurrence delimiter
    - An occurrence id carries a non-integer sequence index
    """


class ConfigError(PocketCalError, ValueError):
    """Configuration file could not be interpreted.

    Raised when:
    - The file parses but its top level is not a mapping
    - The file is neither valid YAML nor valid JSON
    """
