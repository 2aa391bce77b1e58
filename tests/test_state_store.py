try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio
import json
import sqlite3

import pytest
from botocore.exceptions import ClientError

from app.clients.dynamodb import DynamoDBStateStore
from app.clients.sqlite_store import SQLiteStateStore
from app.clients.state_store import InMemoryStateStore, TransactionNotFoundError
from app.core.config import StateStoreSettings
from app.core.errors import StorageUnavailableError
from app.models.oauth import OAuthTransactionState

pytestmark = pytest.mark.anyio

TTL = 600


def _record(clock, domain: str = "shop-a.com") -> OAuthTransactionState:
    return OAuthTransactionState(
        domain=domain,
        session_token="sealed-session-token",
        code_verifier="v" * 43,
        timestamp=int(clock() * 1000),
    )


class FakeDynamoTable:
    def __init__(self) -> None:
        self.items: dict[tuple[str, str], dict] = {}
        self.fail_with: Exception | None = None

    def put_item(self, Item: dict) -> None:
        if self.fail_with:
            raise self.fail_with
        self.items[(Item["pk"], Item["sk"])] = Item

    def delete_item(self, Key: dict, ReturnValues: str) -> dict:
        if self.fail_with:
            raise self.fail_with
        assert ReturnValues == "ALL_OLD"
        item = self.items.pop((Key["pk"], Key["sk"]), None)
        return {"Attributes": item} if item else {}


@pytest.fixture(params=["memory", "sqlite", "dynamodb"])
def store(request, tmp_path, clock):
    if request.param == "memory":
        return InMemoryStateStore(clock=clock)
    if request.param == "sqlite":
        return SQLiteStateStore(str(tmp_path / "states.db"), clock=clock)
    return DynamoDBStateStore(StateStoreSettings(), table=FakeDynamoTable(), clock=clock)


async def test_consume_returns_stored_record(store, clock) -> None:
    record = _record(clock)
    await store.put("txn-1", record, TTL)

    assert await store.consume("txn-1") == record


async def test_consume_is_single_use(store, clock) -> None:
    await store.put("txn-1", _record(clock), TTL)
    await store.consume("txn-1")

    with pytest.raises(TransactionNotFoundError):
        await store.consume("txn-1")


async def test_unknown_transaction_is_not_found(store) -> None:
    with pytest.raises(TransactionNotFoundError):
        await store.consume("never-issued")


async def test_expired_record_is_not_returned(store, clock) -> None:
    await store.put("txn-1", _record(clock), TTL)
    clock.advance(TTL + 1)

    with pytest.raises(TransactionNotFoundError):
        await store.consume("txn-1")


async def test_racing_consumers_yield_exactly_one_success(store, clock) -> None:
    await store.put("txn-1", _record(clock), TTL)

    results = await asyncio.gather(
        *(store.consume("txn-1") for _ in range(5)), return_exceptions=True
    )

    successes = [r for r in results if isinstance(r, OAuthTransactionState)]
    failures = [r for r in results if isinstance(r, TransactionNotFoundError)]
    assert len(successes) == 1
    assert len(failures) == 4


async def test_memory_sweep_removes_only_expired(clock) -> None:
    store = InMemoryStateStore(clock=clock)
    await store.put("old", _record(clock), TTL)
    clock.advance(TTL - 10)
    await store.put("fresh", _record(clock), TTL)
    clock.advance(20)

    assert await store.sweep() == 1
    assert len(store) == 1
    assert (await store.consume("fresh")).domain == "shop-a.com"


async def test_sqlite_sweep_and_wire_format(tmp_path, clock) -> None:
    db_path = tmp_path / "states.db"
    store = SQLiteStateStore(str(db_path), clock=clock)
    await store.put("old", _record(clock), TTL)
    clock.advance(TTL + 1)
    await store.put("fresh", _record(clock, domain="shop-b.com"), TTL)

    assert await store.sweep() == 1

    with sqlite3.connect(db_path) as conn:
        rows = conn.execute("SELECT transaction_id, data FROM oauth_states").fetchall()
    assert [row[0] for row in rows] == ["fresh"]
    assert set(json.loads(rows[0][1])) == {"token", "domain", "codeVerifier", "timestamp"}


async def test_sqlite_records_survive_a_new_store_instance(tmp_path, clock) -> None:
    db_path = str(tmp_path / "nested" / "states.db")
    await SQLiteStateStore(db_path, clock=clock).put("txn-1", _record(clock), TTL)

    record = await SQLiteStateStore(db_path, clock=clock).consume("txn-1")

    assert record.code_verifier == "v" * 43


async def test_dynamodb_item_layout_and_native_ttl(clock) -> None:
    table = FakeDynamoTable()
    store = DynamoDBStateStore(StateStoreSettings(), table=table, clock=clock)

    await store.put("abc123", _record(clock), TTL)

    item = table.items[("state#abc123", "oauth#transaction")]
    assert item["expires_at"] == int(clock.now) + TTL
    assert json.loads(item["data"])["codeVerifier"] == "v" * 43
    assert await store.sweep() == 0


async def test_dynamodb_errors_surface_as_storage_unavailable(clock) -> None:
    table = FakeDynamoTable()
    table.fail_with = ClientError(
        {"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}}, "PutItem"
    )
    store = DynamoDBStateStore(StateStoreSettings(), table=table, clock=clock)

    with pytest.raises(StorageUnavailableError):
        await store.put("abc123", _record(clock), TTL)
    with pytest.raises(StorageUnavailableError):
        await store.consume("abc123")


def test_dynamodb_store_requires_table_name() -> None:
    with pytest.raises(ValueError):
        DynamoDBStateStore(StateStoreSettings(dynamodb_table_name=None))
