"""Content store error types.

Ordinary CRUD misses are not errors: the store logs them and carries on.
Exceptions are reserved for input that is structurally unusable.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class ContentStoreError(Exception):
    """Base class for content store failures."""


@dataclass
class MalformedImportError(ContentStoreError):
    """Raised when a bundle cannot be rehydrated into a store.

    Attributes:
        section: Bundle section that was unusable (e.g. ``game``, ``rooms[2]``).
        reason: What was wrong with it.
        available: Sections that were present, for context.
    """

    section: str
    reason: str
    available: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Malformed import in '{self.section}': {self.reason}"
        if self.available:
            msg += f" (present: {', '.join(sorted(self.available))})"
        return msg
