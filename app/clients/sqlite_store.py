"""SQLite-backed OAuth transaction store for single-node deployments."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import time
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

from app.clients.state_store import TransactionNotFoundError
from app.core.errors import StorageUnavailableError
from app.models.oauth import OAuthTransactionState


class SQLiteStateStore:
    """Transaction records keyed by id with an explicit expiry column."""

    def __init__(
        self, db_path: str, *, clock: Callable[[], float] = time.time
    ) -> None:
        self._db_path = Path(db_path)
        self._clock = clock
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False, timeout=5.0)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            with closing(self._connect()) as conn, conn:
                yield conn
        except sqlite3.Error as exc:
            raise StorageUnavailableError(
                "OAuth state storage is unavailable."
            ) from exc

    def _ensure_schema(self) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS oauth_states (
                    transaction_id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    expires_at REAL NOT NULL
                )
                """
            )

    def _put(self, transaction_id: str, data_json: str, expires_at: float) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO oauth_states (transaction_id, data, expires_at)
                VALUES (?, ?, ?)
                ON CONFLICT(transaction_id) DO UPDATE SET
                    data = excluded.data, expires_at = excluded.expires_at
                """,
                (transaction_id, data_json, expires_at),
            )

    def _consume(self, transaction_id: str) -> Optional[sqlite3.Row]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT data, expires_at FROM oauth_states WHERE transaction_id = ?",
                (transaction_id,),
            ).fetchone()
            if row is None:
                return None
            deleted = conn.execute(
                "DELETE FROM oauth_states WHERE transaction_id = ?",
                (transaction_id,),
            ).rowcount
        # A concurrent consumer deleted the row between our SELECT and DELETE.
        return row if deleted == 1 else None

    def _sweep(self, now: float) -> int:
        with self._transaction() as conn:
            return conn.execute(
                "DELETE FROM oauth_states WHERE expires_at <= ?", (now,)
            ).rowcount

    async def put(
        self, transaction_id: str, state: OAuthTransactionState, ttl_seconds: int
    ) -> None:
        data_json = json.dumps(state.to_record())
        expires_at = self._clock() + ttl_seconds
        await asyncio.to_thread(self._put, transaction_id, data_json, expires_at)

    async def consume(self, transaction_id: str) -> OAuthTransactionState:
        row = await asyncio.to_thread(self._consume, transaction_id)
        if row is None or row["expires_at"] <= self._clock():
            raise TransactionNotFoundError(transaction_id)
        return OAuthTransactionState.from_record(json.loads(row["data"]))

    async def sweep(self) -> int:
        return await asyncio.to_thread(self._sweep, self._clock())


__all__ = ["SQLiteStateStore"]
