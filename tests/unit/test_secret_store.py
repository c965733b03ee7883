"""Tests for timemachine.core.secret_store — credential persistence.

Tests cover:
- Save/get round trips, including overwrite semantics.
- Removal and presence checks.
- Durability across store instances (same database file).
- Base64 encoding of stored values.
- StorageError on failed writes.
- The in-memory store honouring the same contract.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from timemachine.core.errors import StorageError
from timemachine.core.secret_store import InMemorySecretStore, SecretStore


class TestSecretStoreRoundTrip:
    """Values come back exactly as they were saved."""

    def test_save_then_get(self, secret_store: SecretStore):
        secret_store.save("gemini", "AIza-test-key")
        assert secret_store.get("gemini") == "AIza-test-key"

    def test_unicode_value(self, secret_store: SecretStore):
        """Non-ASCII values survive the text-safe encoding."""
        secret_store.save("openai", "clé-秘密-🔑")
        assert secret_store.get("openai") == "clé-秘密-🔑"

    def test_overwrite_replaces_previous_value(self, secret_store: SecretStore):
        """At most one value is kept per credential type."""
        secret_store.save("gemini", "first")
        secret_store.save("gemini", "second")
        assert secret_store.get("gemini") == "second"

        with sqlite3.connect(secret_store.db_path) as conn:
            count = conn.execute(
                "SELECT COUNT(*) FROM credentials WHERE credential_type = ?", ("gemini",)
            ).fetchone()[0]
        assert count == 1

    def test_types_are_independent(self, secret_store: SecretStore):
        secret_store.save("gemini", "g")
        secret_store.save("openai", "o")
        assert secret_store.get("gemini") == "g"
        assert secret_store.get("openai") == "o"


class TestSecretStoreAbsence:
    """Missing keys never raise."""

    def test_get_missing_returns_none(self, secret_store: SecretStore):
        assert secret_store.get("gemini") is None

    def test_has_missing_is_false(self, secret_store: SecretStore):
        assert secret_store.has("gemini") is False

    def test_remove_then_has_is_false(self, secret_store: SecretStore):
        secret_store.save("gemini", "key")
        assert secret_store.has("gemini") is True

        secret_store.remove("gemini")
        assert secret_store.has("gemini") is False
        assert secret_store.get("gemini") is None

    def test_remove_missing_is_noop(self, secret_store: SecretStore):
        secret_store.remove("never-saved")
        assert secret_store.has("never-saved") is False

    def test_empty_value_does_not_count_as_stored(self, secret_store: SecretStore):
        secret_store.save("gemini", "")
        assert secret_store.get("gemini") == ""
        assert secret_store.has("gemini") is False


class TestSecretStoreEncoding:
    """Stored values are base64 text, not the raw credential."""

    def test_value_is_not_stored_verbatim(self, secret_store: SecretStore):
        secret_store.save("gemini", "plain-secret")

        with sqlite3.connect(secret_store.db_path) as conn:
            stored = conn.execute(
                "SELECT encoded_value FROM credentials WHERE credential_type = ?", ("gemini",)
            ).fetchone()[0]

        assert stored != "plain-secret"
        assert stored == "cGxhaW4tc2VjcmV0"

    def test_corrupt_value_is_treated_as_absent(self, secret_store: SecretStore):
        with sqlite3.connect(secret_store.db_path) as conn:
            conn.execute(
                "INSERT INTO credentials (credential_type, encoded_value) VALUES (?, ?)",
                ("gemini", "***not base64***"),
            )
            conn.commit()

        assert secret_store.get("gemini") is None
        assert secret_store.has("gemini") is False


class TestSecretStoreDurability:
    """Credentials persist across store instances."""

    def test_new_instance_sees_saved_value(self, temp_dir: Path):
        db_path = temp_dir / "credentials.db"
        SecretStore(db_path).save("openai", "sk-durable")

        assert SecretStore(db_path).get("openai") == "sk-durable"

    def test_parent_directory_created(self, temp_dir: Path):
        db_path = temp_dir / "nested" / "deeper" / "credentials.db"
        SecretStore(db_path)
        assert db_path.parent.is_dir()


class TestSecretStoreFailures:
    """Write failures surface as StorageError."""

    def test_save_raises_storage_error(self, secret_store: SecretStore):
        with sqlite3.connect(secret_store.db_path) as conn:
            conn.execute("DROP TABLE credentials")
            conn.commit()

        with pytest.raises(StorageError):
            secret_store.save("gemini", "key")

    def test_remove_raises_storage_error(self, secret_store: SecretStore):
        with sqlite3.connect(secret_store.db_path) as conn:
            conn.execute("DROP TABLE credentials")
            conn.commit()

        with pytest.raises(StorageError):
            secret_store.remove("gemini")

    def test_get_after_failure_returns_none(self, secret_store: SecretStore):
        """Reads stay tolerant even when the table is gone."""
        with sqlite3.connect(secret_store.db_path) as conn:
            conn.execute("DROP TABLE credentials")
            conn.commit()

        assert secret_store.get("gemini") is None


class TestInMemorySecretStore:
    """The in-memory store follows the same contract."""

    def test_round_trip(self):
        store = InMemorySecretStore()
        store.save("gemini", "value")
        assert store.get("gemini") == "value"

    def test_initial_values(self):
        store = InMemorySecretStore({"openai": "sk"})
        assert store.has("openai")
        assert store.get("openai") == "sk"

    def test_remove(self):
        store = InMemorySecretStore({"gemini": "g"})
        store.remove("gemini")
        store.remove("gemini")
        assert store.has("gemini") is False

    def test_empty_value_does_not_count_as_stored(self):
        store = InMemorySecretStore({"gemini": ""})
        assert store.has("gemini") is False
