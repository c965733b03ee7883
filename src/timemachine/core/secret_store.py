"""SQLite-backed key-value store for provider credentials.

Values are base64-encoded before they are written so the table only ever
holds plain text. This is an encoding, not encryption: the store offers no
access control and must be treated as preference-grade persistence.
"""

import base64
import binascii
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from .errors import StorageError

logger = logging.getLogger(__name__)


def _encode(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def _decode(encoded: str) -> str:
    return base64.b64decode(encoded.encode("ascii"), validate=True).decode("utf-8")


class SecretStore:
    """Persist one opaque credential string per credential type.

    Saving a value for a type overwrites whatever was stored for it before.
    Reads never mutate the database, so they are safe to run while a
    generation request is in flight.
    """

    def __init__(self, db_path: Path):
        """Initialize the secret store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_db()
        logger.info(f"Initialized secret store at {self.db_path}")

    def _initialize_db(self) -> None:
        """Create database schema if it doesn't exist."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS credentials (
                    credential_type TEXT PRIMARY KEY,
                    encoded_value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """)
            conn.commit()

    def save(self, credential_type: str, value: str) -> None:
        """Store a credential, replacing any previous value for the type.

        Args:
            credential_type: Credential category key (e.g. ``"gemini"``)
            value: Opaque credential string, stored without validation

        Raises:
            StorageError: If the write could not be committed
        """
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT OR REPLACE INTO credentials (credential_type, encoded_value, updated_at)
                    VALUES (?, ?, ?)
                    """,
                    (credential_type, _encode(value), datetime.now().isoformat()),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error saving credential '{credential_type}': {e}")
            raise StorageError(f"Failed to save credential '{credential_type}': {e}") from e

        logger.info(f"Saved credential: {credential_type}")

    def get(self, credential_type: str) -> str | None:
        """Return the stored credential, or None if absent or unreadable."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT encoded_value FROM credentials WHERE credential_type = ? LIMIT 1",
                    (credential_type,),
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Error reading credential '{credential_type}': {e}")
            return None

        if row is None:
            return None

        try:
            return _decode(row[0])
        except (binascii.Error, UnicodeDecodeError):
            logger.warning(f"Stored credential '{credential_type}' is not valid base64, ignoring")
            return None

    def remove(self, credential_type: str) -> None:
        """Delete the credential for a type. No-op if nothing is stored.

        Raises:
            StorageError: If the delete could not be committed
        """
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "DELETE FROM credentials WHERE credential_type = ?",
                    (credential_type,),
                )
                conn.commit()
                was_deleted = cursor.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Error removing credential '{credential_type}': {e}")
            raise StorageError(f"Failed to remove credential '{credential_type}': {e}") from e

        if was_deleted:
            logger.info(f"Removed credential: {credential_type}")
        else:
            logger.debug(f"No credential stored for: {credential_type}")

    def has(self, credential_type: str) -> bool:
        """Check whether a non-empty credential is stored for the type."""
        return bool(self.get(credential_type))


class InMemorySecretStore:
    """Non-durable secret store with the same contract as :class:`SecretStore`.

    Useful for tests and for running the orchestrator without a data
    directory. Values are still kept base64-encoded internally.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = {}
        for credential_type, value in (initial or {}).items():
            self.save(credential_type, value)

    def save(self, credential_type: str, value: str) -> None:
        self._values[credential_type] = _encode(value)

    def get(self, credential_type: str) -> str | None:
        encoded = self._values.get(credential_type)
        if encoded is None:
            return None
        return _decode(encoded)

    def remove(self, credential_type: str) -> None:
        self._values.pop(credential_type, None)

    def has(self, credential_type: str) -> bool:
        return bool(self.get(credential_type))
