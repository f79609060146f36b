from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import httpx

# scheme ":" ["//" authority] path, query and fragment left out
_URL_PARTS = re.compile(r"([^:/?#]+):(?://([^/?#]*))?([^?#]*)")


class UrlParseError(ValueError):
    """Raised when a string is not a usable absolute URL."""
    pass


@dataclass(frozen=True)
class Url:
    """
    Decomposed absolute URL.

    httpx decides whether the URL is valid, but remote and path are kept
    exactly as written so patterns compare against the original text:
    - protocol: scheme without the trailing colon ("https")
    - remote: host plus any explicit ":port", userinfo removed
    - path: path without query or fragment, not re-encoded or normalized
    """

    protocol: str
    remote: str
    path: str

    @classmethod
    def parse(cls, url: Any) -> "Url":
        """
        Parse an absolute URL string.

        Args:
            url: URL string, e.g. "https://example.com:8443/a/b?q=1"

        Returns:
            Parsed Url

        Raises:
            UrlParseError: If the value is not a string, is rejected by httpx,
                has no scheme, or has no host for a non-file URL
        """
        if not isinstance(url, str):
            raise UrlParseError(f"URL must be a string, got {type(url).__name__}")

        text = url.strip()
        try:
            parsed = httpx.URL(text)
        except httpx.InvalidURL as e:
            raise UrlParseError(f"Invalid URL {url!r}: {e}") from e

        if not parsed.scheme:
            raise UrlParseError(f"URL {url!r} has no scheme")
        if not parsed.host and parsed.scheme != "file":
            raise UrlParseError(f"URL {url!r} has no host")

        parts = _URL_PARTS.match(text)
        if parts is None:
            raise UrlParseError(f"URL {url!r} has no scheme")

        authority = parts.group(2) or ""
        remote = authority.rpartition("@")[2]
        return cls(protocol=parsed.scheme, remote=remote, path=parts.group(3) or "/")

    def get_remote(self) -> str:
        """Host plus ":port" when the URL spells out a port."""
        return self.remote

    def get_path(self) -> str:
        return self.path
