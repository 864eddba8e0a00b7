"""Simple in-memory rate limiting utilities."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict


@dataclass
class _Bucket:
    timestamps: Deque[float]


class InMemoryRateLimiter:
    """Sliding-window rate limiter suitable for single-node deployments."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._buckets: Dict[str, _Bucket] = {}

    def _prune(self, key: str, now: float, window_seconds: int) -> _Bucket:
        cutoff = now - window_seconds
        bucket = self._buckets.setdefault(key, _Bucket(timestamps=deque()))
        while bucket.timestamps and bucket.timestamps[0] <= cutoff:
            bucket.timestamps.popleft()
        return bucket

    def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        now = time.monotonic()
        with self._lock:
            bucket = self._prune(key, now, window_seconds)
            if len(bucket.timestamps) >= limit:
                return False
            bucket.timestamps.append(now)
            return True

    def remaining(self, key: str, limit: int, window_seconds: int) -> int:
        with self._lock:
            bucket = self._prune(key, time.monotonic(), window_seconds)
            return max(0, limit - len(bucket.timestamps))

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


rate_limiter = InMemoryRateLimiter()
