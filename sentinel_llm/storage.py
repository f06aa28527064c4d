"""Key/blob storage backends for the evaluation history."""

import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol


HISTORY_KEY = 'sentinel_history'
BACKUP_SUFFIX = '.bak'


class HistoryStorage(Protocol):
    """Durable key -> text blob storage."""

    def read(self, key: str) -> Optional[str]:
        ...

    def write(self, key: str, blob: str) -> None:
        ...


class JsonFileStorage:
    """Stores each key as `<directory>/<key>.json`. Writes replace the file atomically."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f'{key}.json'

    def read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def write(self, key: str, blob: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        fd, tmp_name = tempfile.mkstemp(prefix=f'.{key}.', suffix='.tmp', dir=self.directory)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


class MemoryStorage:
    """In-process storage, mainly for tests."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.blobs: dict[str, str] = dict(initial or {})
        self.writes = 0

    def read(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    def write(self, key: str, blob: str) -> None:
        self.blobs[key] = blob
        self.writes += 1
