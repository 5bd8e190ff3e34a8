"""
Crash-safe file persistence: temp file write, backup, atomic rename
"""

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from .exceptions import StoreError

PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


class DurableStore:
    """Atomic-write primitive shared by the registry and dataset files.

    The rename is the commit point. A crash before it leaves the previous
    file untouched; a crash after it leaves the new file complete.
    """

    TEMP_SUFFIX = ".tmp"
    BACKUP_SUFFIX = ".backup"
    RESTORE_SUFFIX = ".restore"

    @classmethod
    def temp_path(cls, path: PathLike) -> Path:
        path = Path(path)
        return path.with_name(path.name + cls.TEMP_SUFFIX)

    @classmethod
    def backup_path(cls, path: PathLike) -> Path:
        path = Path(path)
        return path.with_name(path.name + cls.BACKUP_SUFFIX)

    def write_atomic(self, path: PathLike, data: bytes):
        """Write bytes to path so readers see either the old or the new file"""
        path = Path(path)
        temp_path = self.temp_path(path)
        backup_path = self.backup_path(path)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Cannot create directory {path.parent}: {e}") from e

        before = self._fingerprint(path)
        backup_ok = False
        if before is not None:
            try:
                shutil.copy2(path, backup_path)
                backup_ok = True
            except OSError as e:
                logger.warning(f"Could not create backup {backup_path.name}: {e}")

        try:
            self._write_temp(temp_path, data)
            os.replace(temp_path, path)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            self._discard(temp_path)
            # Only a backup taken in this call, and only if the target moved
            if backup_ok and self._fingerprint(path) != before:
                self._restore(path, backup_path)
            raise StoreError(f"Failed to write {path}: {e}") from e

        logger.debug(f"Saved {path} atomically ({len(data)} bytes)")

    @staticmethod
    def _fingerprint(path: Path) -> Optional[Tuple[int, int]]:
        """(size, mtime_ns) of the target, None when it does not exist"""
        try:
            stat = path.stat()
        except FileNotFoundError:
            return None
        return stat.st_size, stat.st_mtime_ns

    def _write_temp(self, temp_path: Path, data: bytes):
        with open(temp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

    def _discard(self, temp_path: Path):
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temp file {temp_path.name}: {e}")

    def _restore(self, path: Path, backup_path: Path):
        """Put the backup back through a temp file and rename"""
        restore_path = path.with_name(path.name + self.RESTORE_SUFFIX)
        try:
            shutil.copy2(backup_path, restore_path)
            os.replace(restore_path, path)
            logger.info(f"Restored {path.name} from backup")
        except OSError as e:
            logger.error(f"Failed to restore {path.name} from backup: {e}")
            self._discard(restore_path)

    def read_if_exists(self, path: PathLike) -> Optional[bytes]:
        """Return file bytes, or None when the file does not exist"""
        path = Path(path)
        try:
            with open(path, 'rb') as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreError(f"Failed to read {path}: {e}") from e

    def write_json(self, path: PathLike, obj: Any):
        data = json.dumps(obj, indent=2, ensure_ascii=False, sort_keys=True)
        self.write_atomic(path, (data + "\n").encode('utf-8'))

    def read_json(self, path: PathLike) -> Optional[Any]:
        raw = self.read_if_exists(path)
        if raw is None:
            return None
        try:
            return json.loads(raw.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StoreError(f"Corrupt JSON in {path}: {e}") from e
