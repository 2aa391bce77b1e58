"""
DynamoDB-backed OAuth transaction store.

This is the backend to use once more than one node serves callbacks: every node
sees the same table, ``DeleteItem`` with ``ReturnValues=ALL_OLD`` gives an
atomic read-and-delete, and the ``expires_at`` attribute is meant to be the
table's TTL attribute so abandoned transactions expire natively.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Callable, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.clients.state_store import TransactionNotFoundError
from app.core.config import StateStoreSettings
from app.core.errors import StorageUnavailableError
from app.models.oauth import OAuthTransactionState

_SORT_KEY = "oauth#transaction"


class DynamoDBStateStore:
    """Transaction records stored under ``pk = state#<id>``."""

    def __init__(
        self,
        settings: StateStoreSettings,
        *,
        table: Any = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        if table is None:
            if not settings.dynamodb_table_name:
                raise ValueError("STATE_STORE_DYNAMODB_TABLE must be set for the dynamodb backend.")
            resource = boto3.resource("dynamodb", region_name=settings.region_name)
            table = resource.Table(settings.dynamodb_table_name)
        self._table = table

    @staticmethod
    def _key(transaction_id: str) -> Dict[str, str]:
        return {"pk": f"state#{transaction_id}", "sk": _SORT_KEY}

    def _put(self, item: Dict[str, Any]) -> None:
        try:
            self._table.put_item(Item=item)
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailableError("OAuth state storage is unavailable.") from exc

    def _delete(self, transaction_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = self._table.delete_item(
                Key=self._key(transaction_id), ReturnValues="ALL_OLD"
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailableError("OAuth state storage is unavailable.") from exc
        return response.get("Attributes")

    async def put(
        self, transaction_id: str, state: OAuthTransactionState, ttl_seconds: int
    ) -> None:
        item = {
            **self._key(transaction_id),
            "data": json.dumps(state.to_record()),
            "expires_at": int(self._clock() + ttl_seconds),
        }
        await asyncio.to_thread(self._put, item)

    async def consume(self, transaction_id: str) -> OAuthTransactionState:
        item = await asyncio.to_thread(self._delete, transaction_id)
        if not item:
            raise TransactionNotFoundError(transaction_id)
        # DynamoDB TTL deletion can lag by hours; expired items are still served.
        if int(item["expires_at"]) <= self._clock():
            raise TransactionNotFoundError(transaction_id)
        return OAuthTransactionState.from_record(json.loads(item["data"]))

    async def sweep(self) -> int:
        """Native TTL handles eviction."""
        return 0


__all__ = ["DynamoDBStateStore"]
