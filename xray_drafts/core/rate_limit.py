from __future__ import annotations

import math
from time import time
from typing import Dict, List, Optional
import threading


class SlidingWindowRateLimiter:
    """In-memory per-key attempt limiter.

    - Allows at most ``max_attempts`` recorded attempts per key in any
    window of ``window_seconds``.
    - Thread-safe using a simple lock.
    - Keys whose attempts have all expired are purged on every record, so
    clients that never come back do not accumulate.
    """

    def __init__(self, max_attempts: int = 5, window_seconds: float = 60.0) -> None:
        self._attempts: Dict[str, List[float]] = {}
        self._max = max_attempts
        self._window = window_seconds
        self._lock = threading.Lock()

    def _recent(self, key: str, now: float) -> List[float]:
        recent = [t for t in self._attempts.get(key, []) if now - t < self._window]
        if recent:
            self._attempts[key] = recent
        else:
            self._attempts.pop(key, None)
        return recent

    def _purge(self, now: float) -> None:
        expired = [k for k, stamps in self._attempts.items() if now - max(stamps) >= self._window]
        for k in expired:
            self._attempts.pop(k, None)

    def retry_after(self, key: str, now: Optional[float] = None) -> Optional[int]:
        """Seconds to wait before ``key`` may try again, or None if allowed now."""
        now = time() if now is None else now
        with self._lock:
            recent = self._recent(key, now)
            if len(recent) < self._max:
                return None
            return max(1, math.ceil(min(recent) + self._window - now))

    def record(self, key: str, now: Optional[float] = None) -> None:
        now = time() if now is None else now
        with self._lock:
            # opportunistic purge
            self._purge(now)
            self._attempts.setdefault(key, []).append(now)

    def clear_all(self) -> None:
        with self._lock:
            self._attempts.clear()
