"""
Storage Backends

Key-value JSON storage for job records and reports.
The backend is constructed once at startup and passed to its users.
"""

import copy
import gzip
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod
    async def save_json(self, key: str, data: Dict) -> str:
        """Save JSON data. Returns the storage key/path."""
        pass

    @abstractmethod
    async def load_json(self, key: str) -> Optional[Dict]:
        """Load JSON data by key."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete data by key."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if key exists."""
        pass

    @abstractmethod
    async def list_keys(self, prefix: str = "") -> List[str]:
        """List keys with given prefix."""
        pass


class MemoryStorage(StorageBackend):
    """
    In-process storage backend.

    Data does not survive a restart; used for development and tests.
    """

    def __init__(self):
        self._data: Dict[str, Dict] = {}

    async def save_json(self, key: str, data: Dict) -> str:
        # Round-trip through JSON so stored data matches what FileStorage returns
        self._data[key] = json.loads(json.dumps(data, default=str))
        return key

    async def load_json(self, key: str) -> Optional[Dict]:
        data = self._data.get(key)
        return copy.deepcopy(data) if data is not None else None

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return key in self._data

    async def list_keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class FileStorage(StorageBackend):
    """
    File system storage backend.

    Stores data in local filesystem with optional compression.
    """

    def __init__(
        self,
        base_path: str,
        compress: bool = False
    ):
        """
        Initialize file storage.

        Args:
            base_path: Root directory for storage
            compress: Whether to gzip JSON data
        """
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.compress = compress

        logger.info(f"FileStorage initialized at {self.base_path}")

    def _get_path(self, key: str) -> Path:
        """Get full path for a key."""
        # Sanitize key and create path
        safe_key = key.replace("..", "").lstrip("/")
        return self.base_path / safe_key

    def _candidates(self, key: str) -> List[Path]:
        path = self._get_path(key)
        return [
            path.with_name(path.name + ".json.gz"),
            path.with_name(path.name + ".json"),
        ]

    async def save_json(self, key: str, data: Dict) -> str:
        """Save JSON data with optional compression."""
        path = self._get_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        json_str = json.dumps(data, indent=2, default=str)

        if self.compress:
            path = path.with_name(path.name + ".json.gz")
            with gzip.open(path, "wt", encoding="utf-8") as f:
                f.write(json_str)
        else:
            path = path.with_name(path.name + ".json")
            tmp_path = path.with_name(path.name + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(json_str)
            tmp_path.replace(path)

        logger.debug(f"Saved JSON to {path}")
        return key

    async def load_json(self, key: str) -> Optional[Dict]:
        """Load JSON data."""
        gz_path, json_path = self._candidates(key)

        if gz_path.exists():
            with gzip.open(gz_path, "rt", encoding="utf-8") as f:
                return json.load(f)

        if json_path.exists():
            with open(json_path, "r", encoding="utf-8") as f:
                return json.load(f)

        return None

    async def delete(self, key: str) -> bool:
        """Delete data by key."""
        for path in self._candidates(key):
            if path.exists():
                path.unlink()
                logger.debug(f"Deleted {path}")
                return True

        return False

    async def exists(self, key: str) -> bool:
        """Check if key exists."""
        return any(path.exists() for path in self._candidates(key))

    async def list_keys(self, prefix: str = "") -> List[str]:
        """List keys with given prefix."""
        keys = []
        for path in self.base_path.rglob("*"):
            if not path.is_file():
                continue
            rel_path = str(path.relative_to(self.base_path)).replace("\\", "/")
            for suffix in (".json.gz", ".json"):
                if rel_path.endswith(suffix):
                    key = rel_path[: -len(suffix)]
                    if key.startswith(prefix):
                        keys.append(key)
                    break

        return sorted(keys)


def create_storage_backend(
    storage_path: Optional[str] = None,
    compress: bool = False,
) -> StorageBackend:
    """
    Build the configured storage backend.

    Returns FileStorage when a path is given (gzipped when `compress`),
    MemoryStorage otherwise.
    """
    if storage_path:
        return FileStorage(storage_path, compress=compress)
    return MemoryStorage()
