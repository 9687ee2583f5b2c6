"""Object storage for user media (profile photos).

Files are written under MEDIA_ROOT and served by the /media static mount.
"""

import asyncio
import logging
from pathlib import Path, PurePosixPath
from typing import Protocol

from app.core.config import settings

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    async def put(self, path: str, data: bytes) -> str: ...


class LocalObjectStore:
    """Filesystem-backed object store returning public URLs."""

    def __init__(self, root: str | Path, base_url: str = "/media"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise ValueError(f"Invalid object path: {path!r}")
        return self.root.joinpath(*relative.parts)

    async def put(self, path: str, data: bytes) -> str:
        """Write ``data`` at ``path`` (overwriting) and return its URL."""
        target = self._resolve(path)
        await asyncio.to_thread(self._write, target, data)
        logger.info("Stored object %s (%d bytes)", path, len(data))
        return f"{self.base_url}/{PurePosixPath(path).as_posix()}"

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_suffix(target.suffix + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(target)


def get_object_store() -> ObjectStore:
    """FastAPI dependency."""
    return LocalObjectStore(settings.media_root, settings.media_url)
