import logging
import redis
from typing import Optional
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import Settings
from app.database import SessionLocal
from app.models.storage_entry import StorageEntry

logger = logging.getLogger(__name__)


class KeyValueStorage:
    """
    Synchronous key-value storage used to persist the product list.

    Backends never raise on I/O failure: ``get`` returns None and ``set``
    returns False, and the error is logged.
    """

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> bool:
        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    """Process-local storage backed by a dict. Nothing survives a restart."""

    def __init__(self, initial: dict = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    def ping(self) -> bool:
        return True


class DatabaseStorage(KeyValueStorage):
    """
    Durable storage in the ``storage_entries`` table.

    Each call opens its own session from the factory and closes it
    afterwards, so the storage can be shared across request threads.
    """

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Storage key

        Returns:
            Stored string or None if missing or unreadable
        """
        db = self.session_factory()
        try:
            entry = db.get(StorageEntry, key)
            return entry.value if entry else None
        except SQLAlchemyError as e:
            logger.error(f"Error reading storage key '{key}': {e}")
            return None
        finally:
            db.close()

    def set(self, key: str, value: str) -> bool:
        """
        Insert or replace the value stored under a key.

        Args:
            key: Storage key
            value: Serialized payload

        Returns:
            True if committed, False otherwise
        """
        db = self.session_factory()
        try:
            entry = db.get(StorageEntry, key)
            if entry:
                entry.value = value
            else:
                db.add(StorageEntry(key=key, value=value))
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error writing storage key '{key}': {e}")
            return False
        finally:
            db.close()

    def ping(self) -> bool:
        db = self.session_factory()
        try:
            db.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
        finally:
            db.close()


class RedisStorage(KeyValueStorage):
    """
    Durable storage in Redis. Keys are namespaced and never expire.
    """

    def __init__(self, client: redis.Redis, prefix: str = "inventory"):
        self.client = client
        self.prefix = prefix

    def _make_key(self, key: str) -> str:
        """Create a namespaced storage key."""
        return f"{self.prefix}:{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(self._make_key(key))
        except redis.RedisError as e:
            logger.error(f"Error reading storage key '{key}' from Redis: {e}")
            return None

    def set(self, key: str, value: str) -> bool:
        try:
            self.client.set(self._make_key(key), value)
            return True
        except redis.RedisError as e:
            logger.error(f"Error writing storage key '{key}' to Redis: {e}")
            return False

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False


def build_storage(settings: Settings) -> KeyValueStorage:
    """
    Create the storage backend named by ``STORAGE_BACKEND``.

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "database":
        return DatabaseStorage()
    if backend == "redis":
        return RedisStorage(redis.from_url(settings.REDIS_URL, decode_responses=True))
    if backend == "memory":
        return MemoryStorage()
    raise ValueError(f"Unknown storage backend: {settings.STORAGE_BACKEND}")
