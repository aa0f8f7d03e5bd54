# data/storage/kv_store.py

import copy
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import orjson
import redis
from redis.exceptions import RedisError

from utils.errors import ConfigurationError, StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """
    Opaque key-value store for the analyzer's two records: the API credential
    and the full ledger snapshot. Values must be JSON-serializable.
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or `default` if the key is absent"""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous one"""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key; missing keys are ignored"""


class MemoryStore(KeyValueStore):
    """In-process store; values are deep-copied so callers never share state"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """
    Single JSON document on disk. Writes go to a temp file in the same
    directory and are swapped in with os.replace, so readers never observe a
    half-written file.
    """

    def __init__(self, path: str):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = orjson.loads(self.path.read_bytes())
        except orjson.JSONDecodeError as e:
            raise StorageError(f"Store file {self.path} is not valid JSON: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read store file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Store file {self.path} does not contain a JSON object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = orjson.dumps(data, option=orjson.OPT_INDENT_2)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, 'wb') as fh:
                    fh.write(payload)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError) as e:
            raise StorageError(f"Cannot write store file {self.path}: {e}") from e


class RedisStore(KeyValueStore):
    """
    Redis-backed store. Values are stored as orjson blobs under
    `<prefix><key>`.
    """

    def __init__(self, client: redis.Redis, prefix: str = 'rugplay:'):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = 'rugplay:') -> 'RedisStore':
        return cls(redis.Redis.from_url(url, decode_responses=False), prefix=prefix)

    def get(self, key: str, default: Any = None) -> Any:
        try:
            value = self.client.get(self.prefix + key)
        except RedisError as e:
            raise StorageError(f"Redis get failed for {key}: {e}") from e

        if value is None:
            return default
        try:
            return orjson.loads(value)
        except orjson.JSONDecodeError as e:
            raise StorageError(f"Redis value for {key} is not valid JSON: {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            self.client.set(self.prefix + key, orjson.dumps(value))
        except RedisError as e:
            raise StorageError(f"Redis set failed for {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self.prefix + key)
        except RedisError as e:
            raise StorageError(f"Redis delete failed for {key}: {e}") from e


def create_store(backend: str, path: Optional[str] = None, redis_url: Optional[str] = None) -> KeyValueStore:
    """
    Build a store from configuration.

    Args:
        backend: 'memory', 'file' or 'redis'
        path: JSON file path for the 'file' backend
        redis_url: Connection URL for the 'redis' backend
    """
    backend = (backend or '').lower()
    if backend == 'memory':
        return MemoryStore()
    if backend == 'file':
        if not path:
            raise ConfigurationError("File storage backend requires a path")
        return JsonFileStore(path)
    if backend == 'redis':
        if not redis_url:
            raise ConfigurationError("Redis storage backend requires a URL")
        logger.info("Using Redis storage backend")
        return RedisStore.from_url(redis_url)
    raise ConfigurationError(f"Unknown storage backend: {backend!r}")
