"""Persistence for the single user profile.

The profile is kept as one JSON record under a fixed key of a small
key-value storage:

    {"age": "25", "gender": "male", "weight": "70"}

Numbers are stored as text, the way they were typed into the form.
A record that cannot be read back is treated as "no profile".
"""

import json
import sqlite3
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError

from doctor_food.models.models import UserProfile
from doctor_food.utils.config import config
from doctor_food.utils.logger import logger

PROFILE_STORAGE_KEY = "doctorFoodProfile"


class KeyValueStore(ABC):
    """String key-value storage port."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key; absent keys are ignored."""

    def close(self) -> None:
        """Release underlying resources."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed storage. Data is lost when the process exits."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class SqliteKeyValueStore(KeyValueStore):
    """SQLite-backed storage with a single ``kv`` table."""

    def __init__(self, db_file: str) -> None:
        self.db_file = db_file
        self._conn = sqlite3.connect(db_file)
        with self._conn:
            self._conn.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)")

    def get(self, key: str) -> Optional[str]:
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._conn:
            self._conn.execute("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value))

    def delete(self, key: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def close(self) -> None:
        self._conn.close()


class ProfileStore:
    """Loads, saves and clears the one persisted UserProfile."""

    def __init__(self, storage: KeyValueStore, key: str = PROFILE_STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key

    def load(self) -> Optional[UserProfile]:
        """Return the stored profile, or None if absent or unreadable.

        A malformed record fails open to None (logged as a warning) so start-up
        falls back to the profile form instead of crashing.
        """
        raw = self.storage.get(self.key)
        if raw is None:
            return None

        try:
            record = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Stored profile is not valid JSON, ignoring it: {e}")
            return None

        if not isinstance(record, dict):
            logger.warning(f"Stored profile is not a JSON object ({type(record).__name__}), ignoring it")
            return None

        try:
            return UserProfile.model_validate(record)
        except ValidationError as e:
            logger.warning(f"Stored profile failed validation, ignoring it: {e.error_count()} error(s)")
            return None

    def save(self, profile: UserProfile) -> None:
        """Overwrite the stored profile wholesale."""
        self.storage.set(self.key, json.dumps(profile.to_record(), ensure_ascii=False))
        logger.info("Profile saved")

    def clear(self) -> None:
        self.storage.delete(self.key)
        logger.info("Profile cleared")

    def close(self) -> None:
        self.storage.close()


def open_profile_store(db_file: Optional[str] = None) -> ProfileStore:
    """Create the SQLite-backed ProfileStore (default file: PROFILE_DB_FILE)."""
    db_file = db_file or config.PROFILE_DB_FILE
    logger.info(f"Using SQLite profile storage: {db_file}")
    return ProfileStore(SqliteKeyValueStore(db_file))
