"""Storage-layer exceptions surfaced to the API boundary."""

from __future__ import annotations


class StorageUnavailableError(RuntimeError):
    """The database is not configured or a query against it failed."""


class RecordNotFoundError(LookupError):
    """A referenced route, version or share does not exist."""

    def __init__(self, entity: str, key: object) -> None:
        super().__init__(f"{entity} '{key}' not found")
        self.entity = entity
        self.key = key
