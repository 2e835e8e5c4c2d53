"""Named TTL cache regions.

One ``CacheRegistry`` is built per app in ``create_app`` and stored under
``app.extensions['scramble_cache']``. Only plain serialisable values are
cached (dicts, lists, strings, bools), never ORM instances, so entries stay
valid across database sessions.
"""
import threading

from cachetools import TTLCache
from flask import current_app

REGIONS = ('leaderboards', 'feature_flags', 'configurations', 'player_stats')

_MISSING = object()


class CacheRegistry:

    def __init__(self, ttl=600, maxsize=1000, regions=REGIONS):
        self._lock = threading.RLock()
        self._regions = {name: TTLCache(maxsize=maxsize, ttl=ttl) for name in regions}

    def region(self, name):
        try:
            return self._regions[name]
        except KeyError:
            raise KeyError(f"unknown cache region '{name}'")

    def get(self, region, key, default=None):
        with self._lock:
            return self.region(region).get(key, default)

    def set(self, region, key, value):
        with self._lock:
            self.region(region)[key] = value

    def get_or_load(self, region, key, loader):
        """Return the cached value or call ``loader()`` and cache its result."""
        with self._lock:
            value = self.region(region).get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = loader()
        self.set(region, key, value)
        return value

    def evict(self, region, key):
        with self._lock:
            self.region(region).pop(key, None)

    def clear(self, region=None):
        with self._lock:
            targets = [region] if region else list(self._regions)
            for name in targets:
                self.region(name).clear()


def get_cache():
    return current_app.extensions['scramble_cache']
