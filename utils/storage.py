import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

from settings import SECRETS_FILE, STATE_FILE

logger = logging.getLogger(__name__)


class JsonFileStore:
    """Flat key/value store persisted as a single JSON document"""

    def __init__(self, path: str, secure: bool = False):
        self.path = Path(path)
        self.secure = secure
        self._ensure_directory()

    def _ensure_directory(self):
        """Create parent directory, owner-only when the store holds secrets"""
        parent_dir = self.path.parent
        if not parent_dir.exists():
            parent_dir.mkdir(parents=True, exist_ok=True)
            if self.secure and platform.system() != "Windows":
                os.chmod(parent_dir, 0o700)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, IOError) as e:
            logger.error(f"Failed to read {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring non-object content in {self.path}")
            return {}
        return data

    def _write(self, data: Dict[str, Any]):
        self._ensure_directory()
        self.path.write_text(json.dumps(data, indent=2))
        # Owner read/write only on Unix-like systems
        if self.secure and platform.system() != "Windows":
            os.chmod(self.path, 0o600)

    def keys(self) -> Iterable[str]:
        return list(self._read().keys())


class SecretStore(JsonFileStore):
    """Durable storage for sensitive strings (access/refresh tokens)"""

    def __init__(self, secrets_file: Optional[str] = None):
        super().__init__(secrets_file or SECRETS_FILE, secure=True)

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) and value else None

    def store(self, key: str, value: str):
        self.store_many({key: value})

    def store_many(self, values: Mapping[str, str], remove: Iterable[str] = ()):
        """Write several secrets (and drop others) in a single file update"""
        data = self._read()
        for key in remove:
            data.pop(key, None)
        data.update(values)
        self._write(data)

    def delete(self, key: str):
        self.delete_many([key])

    def delete_many(self, keys: Iterable[str]):
        data = self._read()
        removed = False
        for key in keys:
            if key in data:
                del data[key]
                removed = True
        if removed:
            self._write(data)

    @property
    def secrets_file(self) -> Path:
        return self.path


class StateStore(JsonFileStore):
    """Durable non-secret key/value state

    Holds the selected project id, the one-time OAuth state, the first-run
    flag and UI preferences. Setting a key to None removes it.
    """

    def __init__(self, state_file: Optional[str] = None):
        super().__init__(state_file or STATE_FILE)

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def update(self, key: str, value: Any):
        data = self._read()
        if value is None:
            if key not in data:
                return
            del data[key]
        else:
            data[key] = value
        self._write(data)

    @property
    def state_file(self) -> Path:
        return self.path
