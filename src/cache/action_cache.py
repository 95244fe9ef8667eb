"""
In-process cache of the last time a user was awarded XP for an action.

Sits in front of the store-backed cooldown check so rapid repeat taps are
denied without a query. The store stays authoritative: a miss here always
falls through to the store, and a cache entry only ever shortens the path to
a denial.
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class ActionCache:
    """
    Last-awarded timestamps keyed by (user_id, action_type).

    Features:
    - Entry count cap with oldest-first eviction
    - Hit/miss statistics
    """

    def __init__(self, max_entries: int = 10_000):
        self.max_entries = max_entries
        self._entries: Dict[Tuple[str, str], datetime] = {}
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "evictions": 0,
        }

    def get(self, user_id: str, action_type: str) -> Optional[datetime]:
        """Return the last award time for this user and action, if cached"""
        value = self._entries.get((user_id, action_type))
        if value is None:
            self._stats["misses"] += 1
        else:
            self._stats["hits"] += 1
        return value

    def set(self, user_id: str, action_type: str, awarded_at: datetime) -> None:
        """Record an award time, keeping the newest value for the key"""
        key = (user_id, action_type)
        current = self._entries.get(key)
        if current is not None and current >= awarded_at:
            return

        # Re-insert so dict order tracks recency
        self._entries.pop(key, None)
        self._entries[key] = awarded_at
        self._stats["sets"] += 1

        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            self._stats["evictions"] += 1

    def clear(self, user_id: Optional[str] = None) -> None:
        """Drop every entry, or only the entries of one user"""
        if user_id is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k[0] == user_id]:
            del self._entries[key]

    def get_stats(self) -> Dict[str, int]:
        stats = dict(self._stats)
        stats["size"] = len(self._entries)
        return stats

    def __len__(self) -> int:
        return len(self._entries)
