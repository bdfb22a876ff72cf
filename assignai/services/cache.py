"""
TTL caches for parsed assignments and AI responses.

The cache is a performance layer only: a miss just means another model
call. Keys are opaque digests, so raw student text never becomes part of
a key directly.
"""
import json
import time
import hashlib
import logging
import threading

from cachetools import TTLCache

from assignai.config import CACHE_MAX_ENTRIES

logger = logging.getLogger(__name__)


def make_cache_key(namespace, *parts):
    """Build a deterministic key: "<namespace>:<sha256 of the parts>"."""
    payload = json.dumps(parts, sort_keys=True, default=str, ensure_ascii=False)
    digest = hashlib.sha256(payload.encode('utf-8')).hexdigest()
    return f"{namespace}:{digest}"


class ResponseCache:
    """Thread-safe key/value cache whose entries expire after `ttl` seconds.

    Usage:
        cache = ResponseCache(ttl=7200)
        cache.set(key, "text")
        cache.get(key)  # -> "text" until the entry expires
    """

    def __init__(self, ttl, maxsize=None, timer=time.monotonic):
        self.ttl = ttl
        self._cache = TTLCache(maxsize=maxsize or CACHE_MAX_ENTRIES, ttl=ttl, timer=timer)
        self._lock = threading.Lock()

    def get(self, key, default=None):
        with self._lock:
            return self._cache.get(key, default)

    def set(self, key, value):
        with self._lock:
            self._cache[key] = value

    def delete(self, key):
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self):
        with self._lock:
            self._cache.clear()

    def __contains__(self, key):
        with self._lock:
            return key in self._cache

    def __len__(self):
        with self._lock:
            self._cache.expire()
            return len(self._cache)
