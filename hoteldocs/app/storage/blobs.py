"""Blob storage for uploaded document files."""

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from hoteldocs.app.errors import StorageError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Protocol for blob storage backends."""

    async def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        """Store data at path; returns the stored path."""
        ...

    async def get(self, path: str) -> bytes:
        """Read the blob at path."""
        ...

    async def delete(self, path: str) -> None:
        """Remove the blob at path if present."""
        ...

    async def exists(self, path: str) -> bool:
        """Check whether a blob exists."""
        ...


class LocalBlobStore:
    """Filesystem blob store rooted at a directory.

    Blob paths are relative, '/'-separated and must resolve inside the root.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        if not path or path.startswith("/") or "\\" in path:
            raise StorageError(f"Invalid blob path '{path}'")
        target = (self._root / path).resolve()
        if target != self._root and self._root not in target.parents:
            raise StorageError(f"Blob path escapes storage root: '{path}'")
        return target

    async def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        target = self._resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(f"Failed to store blob '{path}': {e}") from e

        logger.info(f"[blobs] stored {path} ({len(data)} bytes, {content_type or 'unknown'})")
        return path

    async def get(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except FileNotFoundError as e:
            raise StorageError(f"Blob not found: '{path}'", summary="File not found") from e
        except OSError as e:
            raise StorageError(f"Failed to read blob '{path}': {e}") from e

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink, True)
        except OSError as e:
            raise StorageError(f"Failed to delete blob '{path}': {e}") from e

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self._resolve(path).is_file)
