from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .property import Property, pattern_from_options
from .url import Url, UrlParseError

logger = logging.getLogger(__name__)

MATCH_ALL = "*"
MATCH_ALL_URLS = "<all_urls>"
PROTOCOL_DELIMITER = "+"
ALLOWED_PROTOCOLS = ("http", "https", "file", "ftp")

_PROTOCOL_ALT = "(?:" + "|".join(ALLOWED_PROTOCOLS) + r"|\*)"

# protocol list, host token, path
_PATTERN_SPLIT = re.compile(
    "(" + _PROTOCOL_ALT + r"(?:\+" + _PROTOCOL_ALT + ")*)"
    r"://(\*|\*\.[^*/]+|[^*/]+|)(/.*)"
)
_ESCAPE = re.compile(r"[.+^${}()|[\]\\]")


@dataclass(frozen=True)
class MatchPatternRecord:
    """Compiled form of a valid match pattern."""

    protocols: Tuple[str, ...]
    host: str
    path: re.Pattern


def split_pattern(pattern: Any) -> Optional[Tuple[str, str, str]]:
    """
    Check a raw pattern against the grammar and split it.

    Returns:
        (protocol segment, host token, path segment), or None when the
        pattern does not follow the grammar
    """
    if not isinstance(pattern, str):
        return None
    match = _PATTERN_SPLIT.fullmatch(pattern)
    if not match:
        return None
    return match.group(1), match.group(2), match.group(3)


def glob_to_regex(glob: str) -> re.Pattern:
    """
    Convert a path glob into a compiled regex.

    Only two wildcards are supported:
    - * matches any sequence of characters
    - ? matches a single character

    Everything else is literal. The result is meant to be used with
    ``fullmatch``, so it is implicitly anchored at both ends.
    """
    # Escaping has to come first or the inserted dots would be escaped too
    regex = _ESCAPE.sub(r"\\\g<0>", glob)
    regex = regex.replace("?", ".")
    regex = regex.replace("*", ".*")
    return re.compile(regex)


def compile_pattern(pattern: Any) -> Optional[MatchPatternRecord]:
    """Compile a raw pattern, or return None if it is not a valid match pattern."""
    parts = split_pattern(pattern)
    if parts is None:
        return None

    protocols, host, path = parts
    return MatchPatternRecord(
        protocols=tuple(dict.fromkeys(protocols.split(PROTOCOL_DELIMITER))),
        host=host,
        path=glob_to_regex(path),
    )


class UrlMatchPattern(Property):
    """
    Rule describing a set of URLs, in the style of browser extension match patterns.

    Grammar: <protocols>://<host><path>
    - protocols: "+"-separated list of http, https, file, ftp or *
    - host: "*", "*.example.com", "example.com" or "example.com:8080"
    - path: glob starting with "/", supporting * and ?

    "<all_urls>" matches everything. Any other string that does not follow
    the grammar matches nothing. Neither construction nor testing raises on
    bad input.

    Example:
        >>> UrlMatchPattern("https+http://*.google.com/foo*bar").test("https://mail.google.com/foo123bar")
        True
    """

    PROTOCOL_DELIMITER = PROTOCOL_DELIMITER
    MATCH_ALL_URLS = MATCH_ALL_URLS

    def __init__(self, options: Any = None):
        self.pattern = MATCH_ALL_URLS
        self._compiled: Optional[MatchPatternRecord] = None
        self.update(options)

    def update(self, options: Any) -> None:
        """
        Assign a new pattern and recompile it.

        Args:
            options: Pattern string or {"pattern": str}. Anything else,
                including an empty string, keeps the current pattern.
        """
        self.pattern = pattern_from_options(options, self.pattern)
        self._compiled = compile_pattern(self.pattern)
        if self._compiled is None and self.pattern != MATCH_ALL_URLS:
            logger.debug(f"Invalid match pattern, it will match nothing: {self.pattern!r}")

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "UrlMatchPattern":
        return cls(data)

    def is_valid(self) -> bool:
        """True when the pattern compiled, i.e. it follows the grammar."""
        return self._compiled is not None

    def get_protocols(self) -> List[str]:
        if self._compiled is None:
            return []
        return list(self._compiled.protocols)

    def test_protocol(self, protocol: str) -> bool:
        """Check that the protocol is supported at all and allowed by this pattern."""
        compiled = self._compiled
        if compiled is None:
            return False
        return protocol in ALLOWED_PROTOCOLS and (
            MATCH_ALL in compiled.protocols or protocol in compiled.protocols
        )

    def test_host(self, remote: str) -> bool:
        """
        Check a remote (host with optional ":port") against the host token.

        The port is part of the comparison, so "example.com" does not match
        "example.com:8080". Three kinds of host token:
        1. "*" allows every host
        2. "foo.bar.com" must equal the remote exactly
        3. "*.foo.bar.com" allows foo.bar.com and any subdomain of it
        """
        compiled = self._compiled
        if compiled is None or not isinstance(remote, str):
            return False
        return (
            self._match_any_host(compiled)
            or self._match_absolute_host(compiled, remote)
            or self._match_suffix_host(compiled, remote)
        )

    @staticmethod
    def _match_any_host(compiled: MatchPatternRecord) -> bool:
        return compiled.host == MATCH_ALL

    @staticmethod
    def _match_absolute_host(compiled: MatchPatternRecord, remote: str) -> bool:
        return compiled.host == remote

    @staticmethod
    def _match_suffix_host(compiled: MatchPatternRecord, remote: str) -> bool:
        if not compiled.host.startswith(MATCH_ALL + "."):
            return False
        suffix = compiled.host[2:]
        return remote == suffix or remote.endswith("." + suffix)

    def test_path(self, path: str) -> bool:
        compiled = self._compiled
        if compiled is None or not isinstance(path, str):
            return False
        return compiled.path.fullmatch(path) is not None

    def test(self, url: Any) -> bool:
        """
        Test a URL string against the pattern.

        Checks run cheapest first and stop at the first failure:
        1. "<all_urls>" matches without even parsing the URL
        2. an invalid pattern matches nothing
        3. a URL that does not parse matches nothing
        4. protocol (set lookup)
        5. host (string comparisons)
        6. path (regex, the slowest)

        Args:
            url: URL string to test

        Returns:
            True if the URL is matched by the pattern
        """
        if self.pattern == MATCH_ALL_URLS:
            return True

        if self._compiled is None:
            return False

        try:
            parsed = Url.parse(url)
        except UrlParseError:
            return False

        return (
            self.test_protocol(parsed.protocol)
            and self.test_host(parsed.get_remote())
            and self.test_path(parsed.get_path())
        )

    def to_json(self) -> Dict[str, str]:
        return {"pattern": str(self)}

    def __str__(self) -> str:
        return self.pattern if isinstance(self.pattern, str) else ""

    def __repr__(self) -> str:
        return f"UrlMatchPattern({self.pattern!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UrlMatchPattern):
            return NotImplemented
        return self.pattern == other.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)
