"""Per-document advisory locks.

Pipeline operations (summarize, generate embeddings, delete) on the same
document id are serialised through one ``asyncio.Lock`` per id.  Locks are
created on first use and dropped from the registry once no task holds or
waits for them, so the map does not grow with every document ever touched.

Usage::

    locks = DocumentLockRegistry()
    async with locks.hold(document_id):
        ...  # exclusive for this document within the process
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class DocumentLockRegistry:
    """In-process map of document id to ``asyncio.Lock``."""

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, document_id: int) -> AsyncIterator[None]:
        """Acquire the lock for *document_id* for the duration of the block."""
        lock = self._locks.get(document_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[document_id] = lock
        self._users[document_id] = self._users.get(document_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._users[document_id] - 1
            if remaining:
                self._users[document_id] = remaining
            else:
                del self._users[document_id]
                del self._locks[document_id]

    def is_locked(self, document_id: int) -> bool:
        """Return ``True`` while some task holds the lock for *document_id*."""
        lock = self._locks.get(document_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
