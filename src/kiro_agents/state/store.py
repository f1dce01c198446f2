"""Agent State Store - JSON file storage with atomic writes.

This module provides the persistence backend of the activation manager:
- Atomic writes using the temp-file + fsync + rename pattern
- Schema version tagging and migration of older state files
- Timestamped backups, restored when the state file is corrupt

The state file holds the set of active agent ids and session metadata,
never full instance payloads.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
import fcntl
import json
import os
from pathlib import Path
import shutil
from typing import Any

from kiro_agents.core.errors import PersistenceError
from kiro_agents.core.types import Result
from kiro_agents.observability.logging import get_logger

log = get_logger(__name__)


def _migrate_0_9_0(data: dict[str, Any]) -> dict[str, Any]:
    # 0.9.0 stored active ids under "agents" and had no sessions block.
    migrated = {key: value for key, value in data.items() if key != "agents"}
    migrated["active_agents"] = list(data.get("active_agents", data.get("agents", [])))
    migrated.setdefault("sessions", [])
    migrated["version"] = "1.0.0"
    migrated["migration_timestamp"] = datetime.now(UTC).isoformat()
    return migrated


class SchemaMigration:
    """Schema migration handler for state files."""

    CURRENT_VERSION = "1.0.0"

    MIGRATIONS: dict[str, tuple[str, Callable[[dict[str, Any]], dict[str, Any]]]] = {
        "0.9.0": ("1.0.0", _migrate_0_9_0),
    }

    @classmethod
    def migrate(cls, data: dict[str, Any], from_version: str) -> dict[str, Any]:
        """Migrate state data to the current version.

        Unknown versions are tagged ``schema_compatible: False`` and stamped
        with the current version so callers can decide how much to trust them.
        """
        current_version = from_version

        while current_version != cls.CURRENT_VERSION:
            if current_version not in cls.MIGRATIONS:
                log.warning(
                    "state.store.migration.not_found",
                    from_version=current_version,
                    current_version=cls.CURRENT_VERSION,
                )
                data = {**data, "schema_compatible": False, "version": cls.CURRENT_VERSION}
                break

            target, migrate = cls.MIGRATIONS[current_version]
            data = migrate(data)
            current_version = target

            log.info(
                "state.store.migrated",
                from_version=from_version,
                to_version=current_version,
            )

        return data


class AgentStateStore:
    """JSON state file with atomic writes and rolling backups.

    Example:
        store = AgentStateStore(project_root / ".kiro/agent-state.json")
        await store.write_state({"active_agents": ["architect"], "sessions": [...]})
        result = await store.read_state()
    """

    BACKUP_DIR_NAME = "backups"
    MAX_BACKUPS = 5

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._backup_dir = self._path.parent / self.BACKUP_DIR_NAME
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir

    async def read_state(self) -> Result[dict[str, Any] | None, PersistenceError]:
        """Read and migrate the state file.

        Returns:
            Ok(None) if no state file exists, Ok(data) on success, or Err when
            the file is unreadable and no valid backup exists.
        """
        async with self._lock:
            return await asyncio.to_thread(self._read_sync)

    def _read_sync(self) -> Result[dict[str, Any] | None, PersistenceError]:
        if not self._path.exists():
            return Result.ok(None)

        try:
            data = self._load_json(self._path)
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError both land here
            log.error("state.store.read.corrupt", path=str(self._path), error=str(e))
            restored = self._restore_from_backup()
            if restored is None:
                return Result.err(
                    PersistenceError(
                        f"State file is corrupt and no backup is usable: {e}",
                        operation="read",
                        path=str(self._path),
                    )
                )
            data = restored
        except OSError as e:
            log.error("state.store.read.error", path=str(self._path), error=str(e))
            return Result.err(
                PersistenceError(
                    f"Failed to read state: {e}", operation="read", path=str(self._path)
                )
            )

        version = str(data.get("version", "0.9.0"))
        if version != SchemaMigration.CURRENT_VERSION:
            data = SchemaMigration.migrate(data, version)
            write_result = self._write_sync(data, create_backup=True)
            if write_result.is_err:
                log.warning("state.store.migration.not_persisted", error=str(write_result.error))

        log.debug("state.store.read", path=str(self._path))
        return Result.ok(data)

    @staticmethod
    def _load_json(path: Path) -> dict[str, Any]:
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            try:
                loaded = json.load(f)
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        if not isinstance(loaded, dict):
            msg = "state root is not an object"
            raise json.JSONDecodeError(msg, "", 0)
        return loaded

    async def write_state(
        self, data: dict[str, Any], create_backup: bool = True
    ) -> Result[Path, PersistenceError]:
        """Write state atomically.

        Args:
            data: State data to write; ``version`` is added when absent.
            create_backup: Whether to back up the previous file first.

        Returns:
            Result containing the written path or a PersistenceError.
        """
        async with self._lock:
            return await asyncio.to_thread(self._write_sync, data, create_backup)

    def _write_sync(
        self, data: dict[str, Any], create_backup: bool
    ) -> Result[Path, PersistenceError]:
        if "version" not in data:
            data = {**data, "version": SchemaMigration.CURRENT_VERSION}
        data = {**data, "last_modified": datetime.now(UTC).isoformat()}

        temp_path = self._path.with_suffix(".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if create_backup and self._path.exists():
                self._create_backup()

            with open(temp_path, "w", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                    f.flush()
                    os.fsync(f.fileno())
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)

            temp_path.replace(self._path)
        except (OSError, TypeError, ValueError) as e:
            log.error("state.store.write.error", path=str(self._path), error=str(e))
            return Result.err(
                PersistenceError(
                    f"Failed to write state: {e}", operation="write", path=str(self._path)
                )
            )

        log.debug("state.store.wrote", path=str(self._path))
        return Result.ok(self._path)

    async def delete_state(self) -> Result[bool, PersistenceError]:
        """Delete the state file, backing it up first."""
        async with self._lock:
            return await asyncio.to_thread(self._delete_sync)

    def _delete_sync(self) -> Result[bool, PersistenceError]:
        if not self._path.exists():
            return Result.ok(False)
        try:
            self._create_backup()
            self._path.unlink()
        except OSError as e:
            return Result.err(
                PersistenceError(
                    f"Failed to delete state: {e}", operation="delete", path=str(self._path)
                )
            )
        log.info("state.store.deleted", path=str(self._path))
        return Result.ok(True)

    def list_backups(self) -> list[Path]:
        """Backups of the state file, newest first."""
        if not self._backup_dir.is_dir():
            return []
        pattern = f"*-{self._path.name}.bak"
        return sorted(self._backup_dir.glob(pattern), reverse=True)

    def _create_backup(self) -> None:
        self._backup_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S_%f")
        backup_path = self._backup_dir / f"{timestamp}-{self._path.name}.bak"
        shutil.copy2(self._path, backup_path)
        log.debug("state.store.backup.created", path=str(backup_path))
        self._cleanup_old_backups()

    def _restore_from_backup(self) -> dict[str, Any] | None:
        for backup_path in self.list_backups():
            try:
                data = self._load_json(backup_path)
            except (OSError, ValueError) as e:
                log.debug("state.store.backup.unusable", backup=str(backup_path), error=str(e))
                continue

            log.info("state.store.backup.restored", backup=str(backup_path))
            self._write_sync(data, create_backup=False)
            return data

        log.warning("state.store.backup.none_valid", path=str(self._path))
        return None

    def _cleanup_old_backups(self) -> None:
        backups = self.list_backups()
        for old_backup in backups[self.MAX_BACKUPS :]:
            try:
                old_backup.unlink()
            except OSError as e:
                log.warning("state.store.backup.cleanup_failed", path=str(old_backup), error=str(e))


__all__ = ["AgentStateStore", "SchemaMigration"]
