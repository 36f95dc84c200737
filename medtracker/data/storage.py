"""Durable key-value storage for the medication tracker.

Two logical keys are used, one for the medications collection and one for
the dose-history collection. Each key holds a whole JSON array which is
always read and written in full.
"""

import asyncio
import json
import re
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Generic, Iterable, Optional, Protocol, TypeVar

import aiofiles
import aiosqlite

from medtracker.utils import PersistenceError, log_operation, logger

MEDICATIONS_KEY = "@medications"
DOSE_HISTORY_KEY = "@dose_history"

T = TypeVar("T")


class KeyValueStore(Protocol):
    """Durable key-value store consumed by the engine."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def remove_all(self, keys: Iterable[str]) -> None:
        ...


class JsonFileStore:
    """Key-value store keeping each key in its own JSON file.

    Files are stored in {data_dir}/{key}.json. Uses atomic write pattern
    (write to temp file, then rename) for data integrity.
    """

    def __init__(self, data_dir: str = "data"):
        """Initialize file store.

        Args:
            data_dir: Directory to store collection files
        """
        self.data_dir = Path(data_dir)
        self._ensure_data_dir()

    def _ensure_data_dir(self) -> None:
        """Ensure data directory exists."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Data directory ensured: {self.data_dir}")

    def _get_file_path(self, key: str) -> Path:
        """Get path to the file holding a key.

        Args:
            key: Store key (e.g. "@medications")

        Returns:
            Path to key's JSON file
        """
        name = re.sub(r"[^A-Za-z0-9_.-]", "", key) or "default"
        return self.data_dir / f"{name}.json"

    def _get_temp_file_path(self, key: str) -> Path:
        """Get path to a unique temporary file for atomic writes."""
        file_path = self._get_file_path(key)
        return file_path.with_name(f"{file_path.name}.{uuid.uuid4().hex}.tmp")

    async def get(self, key: str) -> Optional[str]:
        """Read raw value stored under key.

        Args:
            key: Store key

        Returns:
            Stored string or None if the key was never written

        Raises:
            PersistenceError: If the file exists but cannot be read
        """
        file_path = self._get_file_path(key)

        if not file_path.exists():
            logger.debug(f"Store file not found: {file_path.name}")
            return None

        try:
            async with aiofiles.open(file_path, mode="r", encoding="utf-8") as f:
                return await f.read()
        except OSError as e:
            logger.error(
                f"Error reading store key {key}: {type(e).__name__}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to read {key}: {e}", key=key) from e

    async def set(self, key: str, value: str) -> None:
        """Write value under key with atomic write.

        Args:
            key: Store key
            value: Serialized collection

        Raises:
            PersistenceError: If write operation fails
        """
        file_path = self._get_file_path(key)
        temp_path = self._get_temp_file_path(key)

        try:
            async with aiofiles.open(temp_path, mode="w", encoding="utf-8") as f:
                await f.write(value)

            # Atomic rename (replaces existing file)
            temp_path.replace(file_path)
            logger.debug(f"Saved store key: {key}")

        except OSError as e:
            logger.error(
                f"Error saving store key {key}: {type(e).__name__}: {e}",
                exc_info=True,
            )
            # Clean up temp file if it exists
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as unlink_error:
                    logger.error(
                        f"Failed to remove temp file for {key}: {unlink_error}",
                        exc_info=True,
                    )
            raise PersistenceError(f"Failed to write {key}: {e}", key=key) from e

    async def remove_all(self, keys: Iterable[str]) -> None:
        """Delete the files for all given keys.

        Args:
            keys: Store keys to remove

        Raises:
            PersistenceError: If a file exists but cannot be removed
        """
        for key in keys:
            file_path = self._get_file_path(key)
            try:
                file_path.unlink(missing_ok=True)
                logger.info(f"Removed store key: {key}")
            except OSError as e:
                logger.error(f"Error removing store key {key}: {e}", exc_info=True)
                raise PersistenceError(f"Failed to remove {key}: {e}", key=key) from e


class SqliteStore:
    """Key-value store backed by a single SQLite table."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    async def init(self) -> None:
        """Initialize database with schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute("PRAGMA journal_mode=WAL")
                await db.execute("""
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at INTEGER NOT NULL
                    )
                """)
                await db.commit()
        except aiosqlite.Error as e:
            logger.error(f"Failed to initialize store at {self.db_path}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to initialize store: {e}") from e

    async def get(self, key: str) -> Optional[str]:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute("SELECT value FROM kv WHERE key = ?", (key,))
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error(f"Error reading store key {key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to read {key}: {e}", key=key) from e
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        now = int(datetime.now(timezone.utc).timestamp())
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                    "updated_at = excluded.updated_at",
                    (key, value, now),
                )
                await db.commit()
        except aiosqlite.Error as e:
            logger.error(f"Error saving store key {key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to write {key}: {e}", key=key) from e
        logger.debug(f"Saved store key: {key}")

    async def remove_all(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.executemany("DELETE FROM kv WHERE key = ?", [(k,) for k in keys])
                await db.commit()
        except aiosqlite.Error as e:
            logger.error(f"Error removing store keys {keys}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to remove {keys}: {e}") from e
        logger.info(f"Removed store keys: {keys}")


class JsonCollection(Generic[T]):
    """A whole collection of records kept as one JSON array under one key.

    Every read-modify-write cycle on the collection must run inside
    ``locked()``, which serializes writers within the process so that two
    overlapping operations cannot lose each other's update.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        decode: Callable[[dict], T],
        encode: Callable[[T], dict],
    ):
        self.store = store
        self.key = key
        self._decode = decode
        self._encode = encode
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def locked(self):
        """Hold the collection's single-writer lock."""
        async with self._lock:
            yield self

    async def load(self) -> list[T]:
        """Load the full collection.

        Returns:
            List of records (empty if the key was never written)

        Raises:
            PersistenceError: If the store fails or holds invalid data
        """
        raw = await self.store.get(self.key)
        if raw is None:
            return []

        try:
            items = [self._decode(item) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(
                f"Corrupted collection {self.key}: {type(e).__name__}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Corrupted collection {self.key}: {e}", key=self.key) from e

        logger.debug(f"Loaded {len(items)} record(s) from {self.key}")
        return items

    async def save(self, items: list[T]) -> None:
        """Persist the full collection, replacing what was stored.

        Raises:
            PersistenceError: If the store fails
        """
        json_content = json.dumps(
            [self._encode(item) for item in items], ensure_ascii=False, indent=2
        )
        await self.store.set(self.key, json_content)
        log_operation("collection_saved", key=self.key, records_count=len(items))


__all__ = [
    "KeyValueStore",
    "JsonFileStore",
    "SqliteStore",
    "JsonCollection",
    "MEDICATIONS_KEY",
    "DOSE_HISTORY_KEY",
]
