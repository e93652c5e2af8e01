from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredObject:
    path: str
    url: str
    size: int


def safe_filename(filename: str | None) -> str:
    name = PurePosixPath((filename or "upload").replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("._")
    return cleaned or "upload"


class LocalObjectStorage:
    """Object storage on a local directory, addressed by POSIX-style keys."""

    def __init__(self, root: str | Path, public_url: str = "/files") -> None:
        self.root = Path(root).resolve()
        self.public_url = public_url.rstrip("/")

    def _resolve(self, key: str) -> Path:
        target = (self.root / key).resolve()
        if not target.is_relative_to(self.root):
            raise ValueError(f"Storage key escapes the storage root: {key}")
        return target

    def url_for(self, key: str) -> str:
        return f"{self.public_url}/{key}"

    def save(self, key: str, source: BinaryIO) -> StoredObject:
        target = self._resolve(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as buffer:
            shutil.copyfileobj(source, buffer)
        size = target.stat().st_size
        logger.info("Stored object %s (%d bytes)", key, size)
        return StoredObject(path=key, url=self.url_for(key), size=size)

    def save_bytes(self, key: str, payload: bytes) -> StoredObject:
        target = self._resolve(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
        return StoredObject(path=key, url=self.url_for(key), size=len(payload))

    def exists(self, key: str) -> bool:
        return self._resolve(key).is_file()

    def delete(self, key: str) -> bool:
        target = self._resolve(key)
        if not target.is_file():
            logger.warning("Could not delete storage object %s, it does not exist", key)
            return False
        target.unlink()
        return True
