"""
Integration Tests for the Storage Backends
==========================================

Testing Strategy
----------------
- SQLStorage runs against a real sqlite database file under tmp_path
- FileStorage writes real files under tmp_path
- RedisStorage runs against a mocked redis client (no server needed)
- Each backend is also driven through StateStore to check the full
  record round trip
"""

import os
import random

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from manifest_garden.core.exceptions import ConfigurationError
from manifest_garden.core.persistence.file_storage import FileStorage
from manifest_garden.core.persistence.gateway import PersistenceGateway
from manifest_garden.core.persistence.redis_storage import RedisStorage
from manifest_garden.core.persistence.sql_storage import SQLStorage
from manifest_garden.core.persistence.store import StateStore
from manifest_garden.engine import GardenEngine
from tests.conftest import LEGENDARY, make_item


# ============================================================================
# SQL
# ============================================================================


@pytest.fixture
def sql_storage(tmp_path):
    storage = SQLStorage.from_url(f"sqlite:///{tmp_path / 'garden.db'}")
    yield storage
    storage.dispose()


@pytest.mark.integration
class TestSQLStorage:
    """Test the SQLAlchemy backend on sqlite."""

    def test_is_a_gateway(self, sql_storage):
        assert isinstance(sql_storage, PersistenceGateway)

    def test_set_and_get(self, sql_storage):
        sql_storage.set("ledger", b'{"gems":1}')

        assert sql_storage.get("ledger") == b'{"gems":1}'
        assert sql_storage.get("quests") is None

    def test_set_many_overwrites(self, sql_storage):
        sql_storage.set("ledger", b"old")

        sql_storage.set_many({"ledger": b"new", "inventory": b"[]"})

        assert sql_storage.get("ledger") == b"new"
        assert sql_storage.get("inventory") == b"[]"

    def test_clear(self, sql_storage):
        sql_storage.set_many({"a": b"1", "b": b"2"})

        sql_storage.clear()

        assert sql_storage.get("a") is None

    def test_records_survive_new_engine(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'garden.db'}"
        first = SQLStorage.from_url(url)
        store = StateStore(first)
        store.save("progression", {"level": 4})
        store.flush()
        first.dispose()

        second = SQLStorage.from_url(url)

        assert StateStore(second).load("progression") == {"level": 4}
        second.dispose()

    def test_empty_url_rejected(self):
        with pytest.raises(ConfigurationError):
            SQLStorage.from_url("")


# ============================================================================
# FILES
# ============================================================================


@pytest.mark.integration
class TestFileStorage:
    """Test the one-file-per-key backend."""

    def test_writes_one_file_per_key(self, tmp_path):
        storage = FileStorage(tmp_path / "data")

        storage.set_many({"ledger": b"{}", "garden": b"[]"})

        assert sorted(p.name for p in (tmp_path / "data").iterdir()) == [
            "garden.json",
            "ledger.json",
        ]
        assert storage.get("garden") == b"[]"

    def test_missing_key(self, tmp_path):
        assert FileStorage(tmp_path).get("quests") is None

    def test_unsafe_key_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            FileStorage(tmp_path).set("../escape", b"x")

    def test_failed_staging_leaves_previous_records(self, tmp_path, mocker):
        storage = FileStorage(tmp_path)
        storage.set("ledger", b"old")
        mocker.patch.object(storage, "_stage", side_effect=OSError("disk full"))

        with pytest.raises(OSError):
            storage.set_many({"ledger": b"new", "garden": b"[]"})

        assert storage.get("ledger") == b"old"
        assert storage.get("garden") is None

    def test_failed_rename_restores_whole_group(self, tmp_path, mocker):
        # Arrange
        storage = FileStorage(tmp_path)
        storage.set("ledger", b"old")
        real_replace = os.replace
        calls = []

        def replace_failing_second(src, dst):
            calls.append(dst)
            if len(calls) == 2:
                raise OSError("rename failed")
            real_replace(src, dst)

        mocker.patch(
            "manifest_garden.core.persistence.file_storage.os.replace",
            side_effect=replace_failing_second,
        )

        # Act
        with pytest.raises(OSError):
            storage.set_many({"ledger": b"new", "inventory": b"[]", "garden": b"[]"})

        # Assert
        assert storage.get("ledger") == b"old"
        assert storage.get("inventory") is None
        assert storage.get("garden") is None
        assert list(tmp_path.glob(".*.tmp")) == []

    def test_failed_group_removes_new_records(self, tmp_path):
        storage = FileStorage(tmp_path)
        (tmp_path / "inventory.json").mkdir()

        with pytest.raises(OSError):
            storage.set_many({"ledger": b"{}", "inventory": b"[]"})

        assert storage.get("ledger") is None
        assert list(tmp_path.glob(".*.tmp")) == []

    def test_stale_staged_files_swept_on_start(self, tmp_path):
        (tmp_path / ".ledger.abc123.tmp").write_bytes(b"partial")

        FileStorage(tmp_path)

        assert list(tmp_path.glob(".*.tmp")) == []

    def test_blocked_craft_leaves_durable_records(self, tmp_path, clock):
        # Arrange
        storage = FileStorage(tmp_path)
        engine = GardenEngine(
            gateway=storage,
            clock=clock,
            rng=random.Random(7),
            configure_logging=False,
        )
        ids = [engine.inventory.add(make_item(color=LEGENDARY)).id for _ in range(5)]
        engine.store.flush()
        durable = {key: storage.get(key) for key in ("ledger", "progression", "milestones")}
        (tmp_path / "inventory.json").unlink()
        (tmp_path / "inventory.json").mkdir()

        # Act
        result = engine.craft(ids, roll=10)

        # Assert
        assert result.success
        assert "inventory" in engine.store.queue.failed_keys
        assert {key: storage.get(key) for key in durable} == durable
        assert list(tmp_path.glob(".*.tmp")) == []

    def test_clear_leaves_directory(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.set("ledger", b"{}")

        storage.clear()

        assert storage.get("ledger") is None
        assert tmp_path.exists()


# ============================================================================
# REDIS
# ============================================================================


@pytest.fixture
def redis_client(mocker):
    client = mocker.MagicMock()
    client.pipeline.return_value = mocker.MagicMock()
    return client


@pytest.mark.integration
class TestRedisStorage:
    """Test the Redis backend against a mocked client."""

    def test_keys_are_prefixed(self, redis_client):
        redis_client.get.return_value = b"{}"
        storage = RedisStorage(redis_client, prefix="test:")

        assert storage.get("ledger") == b"{}"
        redis_client.get.assert_called_once_with("test:ledger")

    def test_set_many_uses_transaction_pipeline(self, redis_client):
        storage = RedisStorage(redis_client)

        storage.set_many({"ledger": b"1", "garden": b"2"})

        redis_client.pipeline.assert_called_once_with(transaction=True)
        pipe = redis_client.pipeline.return_value
        pipe.set.assert_any_call("garden:ledger", b"1")
        pipe.set.assert_any_call("garden:garden", b"2")
        pipe.execute.assert_called_once()

    def test_clear_deletes_only_prefixed_keys(self, redis_client):
        redis_client.scan_iter.return_value = iter([b"garden:ledger", b"garden:quests"])
        storage = RedisStorage(redis_client)

        storage.clear()

        redis_client.scan_iter.assert_called_once_with(match="garden:*")
        redis_client.delete.assert_called_once_with(b"garden:ledger", b"garden:quests")

    def test_unreachable_server_is_a_configuration_error(self, mocker):
        client = mocker.MagicMock()
        client.ping.side_effect = RedisConnectionError("refused")
        mocker.patch(
            "manifest_garden.core.persistence.redis_storage.Redis.from_url",
            return_value=client,
        )

        with pytest.raises(ConfigurationError):
            RedisStorage.from_url("redis://localhost:6379/0")

    def test_store_round_trip(self, redis_client):
        saved = {}
        pipe = redis_client.pipeline.return_value
        pipe.set.side_effect = lambda key, value: saved.__setitem__(key, value)
        redis_client.get.side_effect = saved.get
        store = StateStore(RedisStorage(redis_client))

        store.save("ledger", {"gems": 3})
        store.flush()

        assert StateStore(RedisStorage(redis_client)).load("ledger") == {"gems": 3}
