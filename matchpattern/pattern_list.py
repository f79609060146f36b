from __future__ import annotations

from collections.abc import Iterable as IterableABC
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from .patterns import UrlMatchPattern
from .property import Property

PatternLike = Union[str, Dict[str, Any], UrlMatchPattern]


def _to_pattern(item: PatternLike) -> UrlMatchPattern:
    if isinstance(item, UrlMatchPattern):
        return item
    return UrlMatchPattern(item)


class UrlMatchPatternList(Property):
    """Ordered set of match patterns. A URL matches the list if any member matches it."""

    def __init__(self, patterns: Optional[Iterable[PatternLike]] = None):
        self.members: List[UrlMatchPattern] = []
        self.update(patterns)

    def update(self, options: Any) -> None:
        """Replace all members. Accepts an iterable of patterns; other values leave the list empty."""
        self.members = []
        if isinstance(options, (str, dict)):
            options = [options] if options else []
        elif not isinstance(options, IterableABC):
            options = []
        for item in options:
            self.add(item)

    def add(self, item: PatternLike) -> UrlMatchPattern:
        pattern = _to_pattern(item)
        self.members.append(pattern)
        return pattern

    def remove(self, item: PatternLike) -> bool:
        """Remove the first member with the same raw pattern. Returns False if none was found."""
        target = str(_to_pattern(item))
        for i, member in enumerate(self.members):
            if str(member) == target:
                del self.members[i]
                return True
        return False

    def clear(self) -> None:
        self.members.clear()

    def find(self, url: str) -> Optional[UrlMatchPattern]:
        """Return the first member matching the URL, or None."""
        for member in self.members:
            if member.test(url):
                return member
        return None

    def test(self, url: str) -> bool:
        return self.find(url) is not None

    def to_json(self) -> List[Dict[str, str]]:
        return [member.to_json() for member in self.members]

    @classmethod
    def from_json(cls, data: Iterable[PatternLike]) -> "UrlMatchPatternList":
        return cls(data)

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[UrlMatchPattern]:
        return iter(self.members)

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, (str, dict, UrlMatchPattern)):
            return False
        target = str(_to_pattern(item))
        return any(str(member) == target for member in self.members)

    def __str__(self) -> str:
        return ", ".join(str(member) for member in self.members)

    def __repr__(self) -> str:
        return f"UrlMatchPatternList({[str(m) for m in self.members]!r})"
