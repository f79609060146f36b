from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field


@dataclass
class MatchStats:
    """Thread-safe scope evaluation statistics."""

    in_scope: int = 0
    out_of_scope: int = 0
    excluded: int = 0
    total_evaluations: int = 0
    start_time: float = field(default_factory=time.time)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def increment_in_scope(self) -> None:
        """Count a URL that matched an include rule (thread-safe)."""
        with self._lock:
            self.in_scope += 1
            self.total_evaluations += 1

    def increment_out_of_scope(self) -> None:
        """Count a URL that matched no include rule (thread-safe)."""
        with self._lock:
            self.out_of_scope += 1
            self.total_evaluations += 1

    def increment_excluded(self) -> None:
        """Count a URL rejected by an exclude rule (thread-safe)."""
        with self._lock:
            self.excluded += 1
            self.total_evaluations += 1

    @property
    def match_rate(self) -> float:
        """Share of evaluations that ended in scope (0.0 to 1.0)."""
        with self._lock:
            return self.in_scope / self.total_evaluations if self.total_evaluations > 0 else 0.0

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self.start_time

    def reset(self) -> None:
        """Reset all statistics."""
        with self._lock:
            self.in_scope = 0
            self.out_of_scope = 0
            self.excluded = 0
            self.total_evaluations = 0
            self.start_time = time.time()

    def to_dict(self) -> dict:
        """Export statistics as dictionary."""
        with self._lock:
            in_scope = self.in_scope
            out_of_scope = self.out_of_scope
            excluded = self.excluded
            total = self.total_evaluations
        return {
            "in_scope": in_scope,
            "out_of_scope": out_of_scope,
            "excluded": excluded,
            "total_evaluations": total,
            "match_rate": in_scope / total if total > 0 else 0.0,
            "uptime_seconds": self.uptime_seconds
        }
