"""
Ephemeral storage for in-flight OAuth transactions.

A transaction is written when a chained flow starts and must be read back by
exactly one callback. Every backend honours the same contract:

* ``put`` stores a record with a TTL and raises ``StorageUnavailableError`` when
  the backend cannot be reached.
* ``consume`` atomically reads and deletes; the loser of a race, a replay, or a
  lookup of an unknown identifier raises :class:`TransactionNotFoundError`.
* ``sweep`` deletes records past their TTL for backends without native expiry.

Callers still re-check the record age after ``consume``: backend expiry can lag.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Dict, Protocol, Tuple, runtime_checkable

from app.models.oauth import OAuthTransactionState


class TransactionNotFoundError(LookupError):
    """Raised when a transaction is absent, consumed or evicted."""


@runtime_checkable
class StateStore(Protocol):
    async def put(
        self, transaction_id: str, state: OAuthTransactionState, ttl_seconds: int
    ) -> None: ...

    async def consume(self, transaction_id: str) -> OAuthTransactionState: ...

    async def sweep(self) -> int: ...


class InMemoryStateStore:
    """Process-local store for single-node deployments and tests.

    A transaction started on one node cannot be completed on another; use the
    DynamoDB backend when more than one node serves callbacks.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._records: Dict[str, Tuple[OAuthTransactionState, float]] = {}
        self._lock = asyncio.Lock()

    async def put(
        self, transaction_id: str, state: OAuthTransactionState, ttl_seconds: int
    ) -> None:
        async with self._lock:
            self._records[transaction_id] = (state, self._clock() + ttl_seconds)

    async def consume(self, transaction_id: str) -> OAuthTransactionState:
        async with self._lock:
            entry = self._records.pop(transaction_id, None)
        if entry is None:
            raise TransactionNotFoundError(transaction_id)
        state, expires_at = entry
        if expires_at <= self._clock():
            raise TransactionNotFoundError(transaction_id)
        return state

    async def sweep(self) -> int:
        now = self._clock()
        async with self._lock:
            stale = [key for key, (_, expires_at) in self._records.items() if expires_at <= now]
            for key in stale:
                del self._records[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._records)


__all__ = ["InMemoryStateStore", "StateStore", "TransactionNotFoundError"]
