"""
Local JSON File Storage

One `<key>.json` file per storage key inside a data directory. This is
the default backend and mirrors the browser localStorage the app was
first written against: a handful of small blobs, each replaced wholesale.

Writes go to a temporary file in the same directory and are moved into
place, so a crash mid-write never leaves a truncated blob behind.
"""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from finsmart.services.storage.interface import (
    CorruptRecordError,
    RecordStorageInterface,
    StorageError,
)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonFileRecordStorage(RecordStorageInterface):
    """Record storage backed by a directory of JSON files."""

    def __init__(self, data_dir: Union[str, Path]):
        self._dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}.json"

    def read(self, key: str) -> Optional[Any]:
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read '{key}': {e}")

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptRecordError(key, str(e))

    def write(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            payload = json.dumps(value, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON-serializable: {e}")

        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._dir, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write '{key}': {e}")

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete '{key}': {e}")
