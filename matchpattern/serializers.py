from __future__ import annotations

import gzip
import logging
import time
from typing import Any, Dict, Iterable, List, Tuple

import msgpack

from .pattern_list import UrlMatchPatternList

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


COMPRESSORS = {
    "gzip": (gzip.compress, gzip.decompress),
    "none": (lambda x: x, lambda x: x),
}


def _raw_patterns(rules: Iterable[Any]) -> List[str]:
    return [str(rule) for rule in rules]


def pack_rules(
    include: Iterable[Any],
    exclude: Iterable[Any] = (),
    compression: str = "gzip",
) -> bytes:
    """Serialize include/exclude rule sets into a compact binary blob.

    Only raw pattern strings are stored, invalid ones included, so a
    round trip reproduces the rule sets exactly. Compiled state is rebuilt
    on load.
    """
    if compression not in COMPRESSORS:
        valid = ", ".join(COMPRESSORS.keys())
        raise ValueError(f"Invalid compression '{compression}'. Valid options: {valid}")

    compress_fn = COMPRESSORS[compression][0]
    body = msgpack.packb(
        {"include": _raw_patterns(include), "exclude": _raw_patterns(exclude)},
        use_bin_type=True,
    )

    payload: Dict[str, Any] = {
        "version": FORMAT_VERSION,
        "packed_at": time.time(),
        "compression": compression,
        "rules_compressed": compress_fn(body),
    }
    return msgpack.packb(payload, use_bin_type=True)


def unpack_rules(data: bytes) -> Tuple[UrlMatchPatternList, UrlMatchPatternList]:
    """Rebuild the rule sets from a blob produced by pack_rules.

    Returns:
        Tuple of (include, exclude)

    Raises:
        ValueError: If the blob has an unknown version or compression
    """
    payload: Dict[str, Any] = msgpack.unpackb(data, raw=False)

    version = payload.get("version")
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported rule format version: {version!r}")

    compression = payload.get("compression", "gzip")
    if compression not in COMPRESSORS:
        raise ValueError(f"Unsupported rule compression: {compression!r}")

    decompress_fn = COMPRESSORS[compression][1]
    rules: Dict[str, List[str]] = msgpack.unpackb(
        decompress_fn(payload["rules_compressed"]), raw=False
    )
    logger.debug(
        f"Unpacked {len(rules.get('include', []))} include and "
        f"{len(rules.get('exclude', []))} exclude rules"
    )
    return (
        UrlMatchPatternList(rules.get("include", [])),
        UrlMatchPatternList(rules.get("exclude", [])),
    )
