"""
Key-Value Storage for Shift Calendar

Simple persistent media offering get/set/remove/keys over JSON values.
Only single-key writes are atomic; there are no transactions.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the storage medium cannot be read or written"""
    pass


class KeyValueStorage:
    """Interface of a key-value medium holding JSON-compatible values"""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError


class InMemoryStorage(KeyValueStorage):
    """Dict-backed medium; values are copied in and out like a real store would"""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        try:
            # Reject anything a file-backed medium could not persist
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for key '{key}' is not JSON serializable: {e}")
        self._data[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())


class JsonFileStorage(KeyValueStorage):
    """One JSON file per key inside a directory, with a backup of the previous value"""

    SUFFIX = ".json"

    def __init__(self, directory):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='-_.')}{self.SUFFIX}"

    def _read(self, path: Path) -> Any:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def get(self, key: str) -> Optional[Any]:
        """Read a value, recovering from the backup file when the main file is missing or corrupted"""
        path = self._path_for(key)
        backup_path = path.with_suffix('.bak')

        if path.exists():
            try:
                return self._read(path)
            except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
                logger.error(f"Error reading storage file {path}: {e}")
                if not backup_path.exists():
                    raise StorageError(f"Record '{key}' is corrupted and no backup is available: {e}")
        elif not backup_path.exists():
            return None
        else:
            logger.warning(f"Storage file {path} is missing but a backup exists")

        try:
            logger.info(f"Attempting recovery of '{key}' from backup file {backup_path}")
            value = self._read(backup_path)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as backup_e:
            raise StorageError(f"Record '{key}' and its backup are both corrupted: {backup_e}")

        backup_path.replace(path)
        logger.info(f"Recovered '{key}' from backup")
        return value

    def set(self, key: str, value: Any) -> None:
        """Write a value atomically through a temporary file"""
        path = self._path_for(key)
        temp_path = path.with_suffix('.tmp')

        try:
            serialized = json.dumps(value, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for key '{key}' is not JSON serializable: {e}")

        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                f.write(serialized)
            if path.exists():
                path.replace(path.with_suffix('.bak'))
            temp_path.replace(path)
        except OSError as e:
            logger.error(f"I/O error writing storage file {path}: {e}", exc_info=True)
            raise StorageError(f"Failed to write record '{key}': {e}")
        finally:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as cleanup_e:
                    logger.error(f"Failed to clean up temporary file {temp_path}: {cleanup_e}")

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        try:
            for candidate in (path, path.with_suffix('.bak')):
                if candidate.exists():
                    candidate.unlink()
        except OSError as e:
            raise StorageError(f"Failed to remove record '{key}': {e}")

    def keys(self) -> List[str]:
        stems = {path.stem for path in self.directory.glob(f"*{self.SUFFIX}")}
        # A record whose last write was interrupted survives only as its backup
        stems.update(path.stem for path in self.directory.glob("*.bak"))
        return sorted(unquote(stem) for stem in stems)
