"""
Resource Cache Module

In-memory cache for viewer content (PDF bytes, signed video URLs) keyed
by resource id. Entries expire after a TTL and are invalidated
explicitly when a resource is deleted.

Expired entries are purged on every write, and the oldest entries are
evicted once the cache holds max_entries.

Author: CourseHub Development Team
"""

import logging
import time
from typing import Any, Dict, Optional, Tuple

from coursehub.shared.config import RESOURCE_CACHE_MAX_ENTRIES, RESOURCE_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

class ResourceCache:
    """
    TTL cache keyed by (resource_id, kind).

    Attributes:
        ttl: Entry lifetime in seconds
        max_entries: Upper bound on cached entries
    """

    def __init__(self, ttl: Optional[int] = None, max_entries: Optional[int] = None):
        self.ttl = RESOURCE_CACHE_TTL_SECONDS if ttl is None else ttl
        self.max_entries = max(1, RESOURCE_CACHE_MAX_ENTRIES if max_entries is None else max_entries)
        # Insertion order is expiry order: every entry gets the same ttl
        self._entries: Dict[Tuple[str, str], Tuple[float, Any]] = {}

    def get(self, resource_id: str, kind: str) -> Optional[Any]:
        entry = self._entries.get((resource_id, kind))
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._entries[(resource_id, kind)]
            return None
        return value

    def set(self, resource_id: str, kind: str, value: Any) -> None:
        key = (resource_id, kind)
        self._entries.pop(key, None)
        self.purge_expired()
        while len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug(f"Evicted cached {oldest[1]} for resource {oldest[0]}")
        self._entries[key] = (time.monotonic() + self.ttl, value)

    def purge_expired(self) -> int:
        """
        Drop every expired entry.

        Returns:
            int: Number of entries removed
        """
        now = time.monotonic()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def invalidate(self, resource_id: str) -> int:
        """
        Drop every cached entry for a resource.

        Args:
            resource_id: Resource identifier

        Returns:
            int: Number of entries removed
        """
        keys = [key for key in self._entries if key[0] == resource_id]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.info(f"Invalidated {len(keys)} cached entries for resource {resource_id}")
        return len(keys)

    def __contains__(self, resource_id: str) -> bool:
        return any(key[0] == resource_id for key in self._entries)

    def __len__(self) -> int:
        return len(self._entries)
