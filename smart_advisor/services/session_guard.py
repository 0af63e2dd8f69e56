"""
Duplicate-session guard.

Remembers the most recent questionnaire sessions per user so the API can
ask for confirmation before generating again for identical answers. The
guard is advisory: the pipeline never consults it, only the HTTP layer
deciding whether to run the pipeline.

Eviction policy: fixed capacity (10 by default), least recently recorded
key evicted first. Recording a key that is already present refreshes it.
Collisions and evictions are acceptable; this is not a durable record.
"""

import hashlib
import json
import threading
from collections import OrderedDict
from typing import Sequence

from smart_advisor.config import settings
from smart_advisor.schemas.recommendations import Answer
from smart_advisor.utils.logging import get_logger

logger = get_logger(__name__)


def derive_session_key(
    answers: Sequence[Answer],
    content_type: str,
    user_id: str,
) -> str:
    """
    Derive an opaque session identity from answers, content type and user.

    Only the answer texts (trimmed) and their order take part, so resubmitting
    the same answers yields the same key.
    """
    canonical = json.dumps(
        {
            "answers": [a.answer_text.strip() for a in answers],
            "contentType": content_type,
            "userId": user_id,
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class SessionGuard:
    """Fixed-capacity LRU set of recently generated session keys."""

    def __init__(self, capacity: int = 10):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._keys: "OrderedDict[str, None]" = OrderedDict()

    def __contains__(self, key: str) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def record(self, key: str) -> None:
        """Record a key, evicting the oldest one past capacity."""
        if key in self._keys:
            self._keys.move_to_end(key)
            return
        self._keys[key] = None
        while len(self._keys) > self.capacity:
            evicted, _ = self._keys.popitem(last=False)
            logger.debug(f"Session guard evicted key {evicted[:8]}...")

    def forget(self, key: str) -> None:
        self._keys.pop(key, None)

    def check_and_record(self, key: str) -> bool:
        """
        Return True if the key was already generated, else record it.

        A duplicate is not re-recorded: the caller decides whether to run
        the pipeline again.
        """
        if key in self._keys:
            return True
        self.record(key)
        return False


class SessionGuardRegistry:
    """
    One SessionGuard per user, created on first use.

    At most max_users guards are kept; the least recently used user's guard
    is dropped first.
    """

    def __init__(
        self,
        capacity: int = settings.SESSION_GUARD_CAPACITY,
        max_users: int = settings.SESSION_GUARD_MAX_USERS,
    ):
        if max_users < 1:
            raise ValueError("max_users must be at least 1")
        self.capacity = capacity
        self.max_users = max_users
        self._guards: "OrderedDict[str, SessionGuard]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._guards)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._guards

    def for_user(self, user_id: str) -> SessionGuard:
        with self._lock:
            guard = self._guards.get(user_id)
            if guard is None:
                guard = SessionGuard(self.capacity)
                self._guards[user_id] = guard
                while len(self._guards) > self.max_users:
                    evicted, _ = self._guards.popitem(last=False)
                    logger.debug(f"Session guard registry evicted user {evicted}")
            else:
                self._guards.move_to_end(user_id)
            return guard
