"""
Unit tests for the persistence core: record codec, write queue, state store
and the gateway factory.
"""

from datetime import date
from decimal import Decimal

import pytest

from manifest_garden.core.exceptions import ConfigurationError
from manifest_garden.core.persistence.codec import RecordDecodeError, decode_record, encode_record
from manifest_garden.core.persistence.factory import create_gateway
from manifest_garden.core.persistence.file_storage import FileStorage
from manifest_garden.core.persistence.gateway import MemoryStorage, PersistenceGateway
from manifest_garden.core.persistence.store import StateStore
from manifest_garden.core.persistence.write_queue import WriteQueue


class FlakyStorage(MemoryStorage):
    """MemoryStorage whose set_many fails while ``failing`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = False
        self.calls = []

    def set_many(self, records):
        self.calls.append(sorted(records))
        if self.failing:
            raise OSError("disk full")
        super().set_many(records)


# ============================================================================
# CODEC
# ============================================================================


@pytest.mark.unit
class TestRecordCodec:
    """Test JSON record encoding."""

    def test_encoding_is_compact_and_sorted(self):
        assert encode_record({"b": 1, "a": [1, 2]}) == b'{"a":[1,2],"b":1}'

    def test_decimals_and_dates_become_strings(self):
        raw = encode_record({"spent": Decimal("4.99"), "day": date(2025, 3, 12)})

        assert decode_record("ledger", raw) == {"day": "2025-03-12", "spent": "4.99"}

    def test_corrupt_record_raises_decode_error(self):
        with pytest.raises(RecordDecodeError) as exc_info:
            decode_record("ledger", b"{not json")

        assert exc_info.value.error_code == "RECORD_DECODE_ERROR"


# ============================================================================
# WRITE QUEUE
# ============================================================================


@pytest.mark.unit
class TestWriteQueue:
    """Test last-write-wins grouping and failure parking."""

    def test_last_write_wins_per_key(self):
        # Arrange
        storage = MemoryStorage()
        queue = WriteQueue(storage)

        # Act
        queue.enqueue({"ledger": b"1"})
        queue.enqueue({"ledger": b"2"})
        failures = queue.flush()

        # Assert
        assert failures == []
        assert storage.get("ledger") == b"2"
        assert queue.get_metrics()["flushed_groups"] == 1

    def test_overlapping_groups_merge(self):
        queue = WriteQueue(MemoryStorage())

        queue.enqueue({"inventory": b"a"})
        queue.enqueue({"ledger": b"b"})
        queue.enqueue({"inventory": b"c", "ledger": b"d"})

        assert queue.get_metrics()["pending_groups"] == 1
        assert queue.peek("inventory") == b"c"
        assert queue.peek("ledger") == b"d"

    def test_failed_group_is_parked_not_retried(self):
        # Arrange
        storage = FlakyStorage()
        storage.failing = True
        queue = WriteQueue(storage)
        queue.enqueue({"ledger": b"1"})

        # Act
        failures = queue.flush()
        queue.flush()

        # Assert
        assert len(failures) == 1
        assert failures[0].keys == ["ledger"]
        assert storage.calls == [["ledger"]]
        assert queue.failed_keys == ["ledger"]
        assert queue.peek("ledger") == b"1"

    def test_failed_group_retries_on_next_mutation_of_its_key(self):
        # Arrange
        storage = FlakyStorage()
        storage.failing = True
        queue = WriteQueue(storage)
        queue.enqueue({"ledger": b"1", "inventory": b"x"})
        queue.flush()
        storage.failing = False

        # Act
        queue.enqueue({"ledger": b"2"})
        failures = queue.flush()

        # Assert
        assert failures == []
        assert storage.get("ledger") == b"2"
        assert storage.get("inventory") == b"x"
        assert queue.failed_keys == []

    def test_unrelated_write_does_not_revive_failed_group(self):
        storage = FlakyStorage()
        storage.failing = True
        queue = WriteQueue(storage)
        queue.enqueue({"ledger": b"1"})
        queue.flush()
        storage.failing = False

        queue.enqueue({"garden": b"g"})
        queue.flush()

        assert storage.get("ledger") is None
        assert queue.failed_keys == ["ledger"]


# ============================================================================
# STATE STORE
# ============================================================================


@pytest.mark.unit
class TestStateStore:
    """Test record-level load/save on top of the queue."""

    def test_load_sees_unflushed_writes(self, memory_storage):
        store = StateStore(memory_storage)

        store.save("progression", {"level": 3})

        assert store.load("progression") == {"level": 3}
        assert memory_storage.get("progression") is None

    def test_flush_writes_through(self, memory_storage):
        store = StateStore(memory_storage)
        store.save("progression", {"level": 3})

        store.flush()

        assert memory_storage.get("progression") == b'{"level":3}'

    def test_missing_key_returns_default(self, store):
        assert store.load("quests", default={"entries": []}) == {"entries": []}

    def test_save_many_is_one_group(self, memory_storage):
        store = StateStore(memory_storage)
        store.save("inventory", [])

        store.save_many({"inventory": [{"id": "a"}], "ledger": {"balances": {}}})

        assert store.get_metrics()["pending_groups"] == 1

    def test_reset_clears_queue_and_storage(self, memory_storage):
        memory_storage.set("ledger", b"{}")
        store = StateStore(memory_storage)
        store.save("garden", [])

        store.reset()

        assert len(memory_storage) == 0
        assert store.queue.pending_keys == []


# ============================================================================
# GATEWAYS
# ============================================================================


@pytest.mark.unit
class TestGatewayFactory:
    """Test backend selection."""

    def test_memory_backend(self):
        gateway = create_gateway("memory")

        assert isinstance(gateway, MemoryStorage)
        assert isinstance(gateway, PersistenceGateway)

    def test_file_backend_uses_data_dir(self, mocker, tmp_path):
        mocker.patch("manifest_garden.core.persistence.factory.Config.DATA_DIR", tmp_path)

        gateway = create_gateway("file")

        assert isinstance(gateway, FileStorage)
        assert gateway.data_dir == tmp_path

    def test_unknown_backend_raises(self):
        with pytest.raises(ConfigurationError):
            create_gateway("floppy")


@pytest.mark.unit
class TestMemoryStorage:
    """Test the in-memory gateway."""

    def test_set_many_applies_all_records(self):
        storage = MemoryStorage()

        storage.set_many({"a": b"1", "b": b"2"})

        assert sorted(storage.keys()) == ["a", "b"]
        assert "a" in storage

    def test_clear_removes_everything(self):
        storage = MemoryStorage({"a": b"1"})

        storage.clear()

        assert storage.get("a") is None
