import logging
import re
from pathlib import Path
from typing import Protocol

from common.jsonio import atomic_write_text, read_text

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageSlot(Protocol):
    key: str

    def read(self) -> str | None: ...

    def write(self, payload: str) -> None: ...


def check_key(key: str) -> str:
    if not key or not _KEY_PATTERN.match(key) or key.startswith("."):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class FileSlot:
    def __init__(self, path: Path, key: str):
        self.path = path
        self.key = key

    def read(self) -> str | None:
        try:
            return read_text(self.path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read storage slot {self.key} at {self.path}: {e}")
            return None

    def write(self, payload: str) -> None:
        atomic_write_text(self.path, payload)
        logger.debug(f"Wrote {len(payload)} bytes to {self.path}")


class JsonFileStorage:
    """Named slots stored as ``<directory>/<key>.json``."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def slot(self, key: str) -> FileSlot:
        return FileSlot(self.directory / f"{check_key(key)}.json", key)


class MemorySlot:
    def __init__(self, data: dict[str, str], key: str):
        self._data = data
        self.key = key

    def read(self) -> str | None:
        return self._data.get(self.key)

    def write(self, payload: str) -> None:
        self._data[self.key] = payload


class MemoryStorage:
    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def slot(self, key: str) -> MemorySlot:
        return MemorySlot(self.data, check_key(key))
