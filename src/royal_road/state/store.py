"""
Save storage abstraction.

Separates persistence from engine logic for testability.
"""

import base64
import binascii
import logging
import shutil
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from ..errors import PersistenceError
from .schema import SaveSnapshot

logger = logging.getLogger(__name__)


@runtime_checkable
class SaveStore(Protocol):
    """
    Abstract storage interface for save snapshots.

    Implementations:
    - JsonSaveStore: File-based persistence (production)
    - MemorySaveStore: In-memory storage (testing)
    """

    def save(self, snapshot: SaveSnapshot) -> bool:
        """Persist a snapshot. Returns True on success."""
        ...

    def load(self) -> SaveSnapshot | None:
        """Load the latest usable snapshot, or None for a first run."""
        ...

    def exists(self) -> bool:
        """Check if a primary save exists."""
        ...

    def delete(self) -> bool:
        """Delete primary and backup. Returns True on success."""
        ...


def encode_snapshot(snapshot: SaveSnapshot) -> str:
    """Serialize to JSON and wrap in base64 (casual tamper resistance only)."""
    payload = snapshot.model_dump_json(by_alias=True, indent=2)
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_snapshot(text: str) -> SaveSnapshot:
    """
    Inverse of encode_snapshot.

    Text that isn't base64 is read as plain JSON (older saves).
    Raises PersistenceError if the payload isn't a valid snapshot.
    """
    text = text.strip()
    try:
        raw = base64.b64decode(text, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raw = text

    try:
        return SaveSnapshot.model_validate_json(raw)
    except ValidationError as e:
        raise PersistenceError(f"Invalid save data: {e.error_count()} error(s)") from e


class JsonSaveStore:
    """
    File-based save storage.

    Features:
    - Single-slot backup of the previous save
    - Atomic replace of the primary file
    - Backup restored if a failed write leaves the primary unreadable
    - Falls back to the backup when the primary is missing or corrupt
    """

    SAVE_FILE = "playerdata.sav"
    BACKUP_FILE = "playerdata.bak"

    def __init__(self, save_dir: Path | str = "saves"):
        self.save_dir = Path(save_dir)
        self.save_dir.mkdir(parents=True, exist_ok=True)
        self.save_path = self.save_dir / self.SAVE_FILE
        self.backup_path = self.save_dir / self.BACKUP_FILE

    def save(self, snapshot: SaveSnapshot) -> bool:
        """Write snapshot, keeping the previous save as backup."""
        tmp_path = self.save_path.with_suffix(".tmp")
        try:
            # Backup previous save
            if self.save_path.exists():
                shutil.copyfile(self.save_path, self.backup_path)

            tmp_path.write_text(encode_snapshot(snapshot), encoding="utf-8")
            tmp_path.replace(self.save_path)
        except OSError as e:
            logger.error(f"Failed to save game: {e}")
            tmp_path.unlink(missing_ok=True)
            # Only an unreadable primary is replaced by the backup
            if not self._is_readable(self.save_path):
                self._restore_backup()
            return False

        logger.info(f"Game saved at {snapshot.save_timestamp.isoformat()}")
        return True

    def _is_readable(self, path: Path) -> bool:
        try:
            self._read(path)
        except PersistenceError:
            return False
        return True

    def _restore_backup(self) -> None:
        if not self.backup_path.exists():
            return
        try:
            shutil.copyfile(self.backup_path, self.save_path)
        except OSError as e:
            logger.error(f"Backup restore failed: {e}")

    def _read(self, path: Path) -> SaveSnapshot:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Cannot read {path.name}: {e}") from e
        return decode_snapshot(text)

    def load(self) -> SaveSnapshot | None:
        """Load primary save, falling back to backup."""
        if not self.save_path.exists():
            logger.info("No save file found")
            return self._load_backup()

        try:
            snapshot = self._read(self.save_path)
        except PersistenceError as e:
            logger.warning(f"Save file is corrupted or invalid: {e}")
            return self._load_backup()

        logger.info(f"Game loaded. Last saved: {snapshot.save_timestamp.isoformat()}")
        return snapshot

    def _load_backup(self) -> SaveSnapshot | None:
        if not self.backup_path.exists():
            return None

        try:
            snapshot = self._read(self.backup_path)
        except PersistenceError as e:
            logger.warning(f"Backup file is unusable: {e}")
            return None

        logger.warning("Loaded from backup file")
        return snapshot

    def exists(self) -> bool:
        return self.save_path.exists()

    def delete(self) -> bool:
        """Remove primary and backup files."""
        try:
            self.save_path.unlink(missing_ok=True)
            self.backup_path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete save files: {e}")
            return False

        logger.info("Save files deleted")
        return True


class MemorySaveStore:
    """
    In-memory save storage for testing.

    Keeps encoded payloads so saves go through the same codec as files.
    """

    def __init__(self):
        self.primary: str | None = None
        self.backup: str | None = None
        self.save_count = 0

    def save(self, snapshot: SaveSnapshot) -> bool:
        if self.primary is not None:
            self.backup = self.primary
        self.primary = encode_snapshot(snapshot)
        self.save_count += 1
        return True

    def load(self) -> SaveSnapshot | None:
        for payload in (self.primary, self.backup):
            if payload is None:
                continue
            try:
                return decode_snapshot(payload)
            except PersistenceError:
                continue
        return None

    def exists(self) -> bool:
        return self.primary is not None

    def delete(self) -> bool:
        self.primary = None
        self.backup = None
        return True
