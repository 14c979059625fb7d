"""
Process-wide result cache with per-entry expiry.
Entries are keyed by a namespace and the serialized call input.
"""

import json
import threading
import time
from functools import wraps
from typing import Any, Callable, Optional, Tuple

from pydantic import BaseModel


class ResultCache:
    """Keeps computed results in memory for a short time"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ResultCache, cls).__new__(cls)
            cls._instance._entries = {}
            cls._instance._lock = threading.Lock()
        return cls._instance

    @staticmethod
    def make_key(namespace: str, payload: Any = None) -> str:
        """Build a cache key from a namespace and a JSON-serializable payload"""
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json")
        return f"{namespace}:{json.dumps(payload, sort_keys=True, default=str)}"

    def get(self, key: str) -> Tuple[bool, Any]:
        """Return (hit, value); expired entries count as a miss"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None
            expires_at, value = entry
            if expires_at <= time.monotonic():
                del self._entries[key]
                return False, None
            return True, value

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store a value; expired entries are dropped on every write"""
        now = time.monotonic()
        with self._lock:
            expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
            for k in expired:
                del self._entries[k]
            self._entries[key] = (now + ttl, value)

    def invalidate(self, namespace: Optional[str] = None) -> int:
        """Drop all entries, or only those of one namespace. Returns how many were removed."""
        with self._lock:
            if namespace is None:
                removed = len(self._entries)
                self._entries.clear()
                return removed

            prefix = f"{namespace}:"
            stale = [key for key in self._entries if key.startswith(prefix)]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def __len__(self) -> int:
        return len(self._entries)


def cached(namespace: str, ttl: Callable[[], float]):
    """
    Cache the result of a function taking at most one (Pydantic or JSON) argument.

    ttl is a callable so the expiry follows the current settings at call time.
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(payload: Any = None):
            key = ResultCache.make_key(namespace, payload)
            hit, value = result_cache.get(key)
            if hit:
                return value
            value = func(payload) if payload is not None else func()
            result_cache.set(key, value, ttl())
            return value

        wrapper.cache_namespace = namespace
        return wrapper

    return decorator


# Singleton instance
result_cache = ResultCache()

