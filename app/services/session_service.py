"""
app/services/session_service.py

Purpose: Per-user message serialization

- One asyncio.Lock per user id, created on demand
- Locks are dropped once no message for that user is pending
- Messages of different users never wait on each other
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from app.core.logging import get_logger

logger = get_logger(__name__)


class UserLocks:
    """
    Registry of per-user locks.

    Usage:
        async with user_locks.hold(user_id):
            reply = await machine.advance(user_id, text)
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        self._waiters[user_id] = self._waiters.get(user_id, 0) + 1

        if lock.locked():
            logger.debug(f"Message for {user_id} queued behind a running one")

        try:
            async with lock:
                yield
        finally:
            self._waiters[user_id] -= 1
            if self._waiters[user_id] == 0:
                del self._waiters[user_id]
                del self._locks[user_id]

    def __len__(self) -> int:
        return len(self._locks)


# Global registry instance
_user_locks: Optional[UserLocks] = None


def get_user_locks() -> UserLocks:
    """Get or create the per-user lock registry."""
    global _user_locks
    if _user_locks is None:
        _user_locks = UserLocks()
    return _user_locks
