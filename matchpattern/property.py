from __future__ import annotations

from typing import Any, Protocol


class Property(Protocol):
    """Interface shared by the pattern types."""

    def update(self, options: Any) -> None:
        """Re-assign the value from a string or mapping and rebuild derived state."""
        ...

    def to_json(self) -> Any:
        """Return a JSON-compatible representation."""
        ...

    def __str__(self) -> str:
        ...


def pattern_from_options(options: Any, default: str) -> str:
    """Pull a usable pattern string out of a raw string or ``{"pattern": ...}`` mapping."""
    if isinstance(options, str):
        options = {"pattern": options}
    if not isinstance(options, dict):
        return default
    pattern = options.get("pattern")
    if isinstance(pattern, str) and pattern:
        return pattern
    return default
