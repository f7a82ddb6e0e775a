"""The authoritative field -> value mapping.

The field set is fixed when the store is created.  ``set()`` is the only
mutation entry point and refuses fields that were not part of the initial
snapshot.  Nothing here does I/O; the store lives as long as the process.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType


class UnknownFieldError(KeyError):
    """Raised when an edit names a field outside the initial snapshot."""

    def __init__(self, field: str) -> None:
        super().__init__(field)
        self.field = field

    def __str__(self) -> str:
        return f"Unknown field: '{self.field}'"


class SharedState:
    """In-memory store holding the single source of truth."""

    def __init__(self, initial: Mapping[str, str]) -> None:
        self._values: dict[str, str] = dict(initial)

    def get(self) -> Mapping[str, str]:
        """Return a read-only snapshot of every field."""
        return MappingProxyType(dict(self._values))

    def set(self, field: str, value: str) -> None:
        """Replace the value of an existing *field*.

        Raises:
            UnknownFieldError: If *field* was not in the initial snapshot.
        """
        if field not in self._values:
            raise UnknownFieldError(field)
        self._values[field] = value

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self._values)

    def __contains__(self, field: object) -> bool:
        return field in self._values

    def __len__(self) -> int:
        return len(self._values)
