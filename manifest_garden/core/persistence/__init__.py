"""
Persistence layer.

Byte-level gateways (memory, file, Redis, SQL), the JSON record codec, the
per-key write queue and the ``StateStore`` services use to load and save
their records.
"""

from manifest_garden.core.persistence.codec import RecordDecodeError, decode_record, encode_record
from manifest_garden.core.persistence.factory import create_gateway
from manifest_garden.core.persistence.file_storage import FileStorage
from manifest_garden.core.persistence.gateway import MemoryStorage, PersistenceGateway
from manifest_garden.core.persistence.store import StateStore
from manifest_garden.core.persistence.write_queue import WriteQueue

__all__ = [
    "RecordDecodeError",
    "decode_record",
    "encode_record",
    "create_gateway",
    "FileStorage",
    "MemoryStorage",
    "PersistenceGateway",
    "StateStore",
    "WriteQueue",
]
