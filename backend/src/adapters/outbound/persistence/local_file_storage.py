"""Local filesystem implementation of FileStoragePort."""

from __future__ import annotations

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import AsyncIterator

from backend.src.core.exceptions import InputValidationError

logger = logging.getLogger(__name__)


def sanitize_filename(filename: str) -> str:
    """Strip directory parts and unsafe characters from an uploaded name."""
    filename = os.path.basename(filename).replace("\x00", "")
    filename = re.sub(r"[^\w\s\-.]", "_", filename)
    filename = re.sub(r"\.{2,}", ".", filename)
    filename = re.sub(r"_{2,}", "_", filename)
    if not filename or filename.startswith("."):
        filename = "upload" + filename
    return filename


class LocalFileStorage:
    """Implements :class:`FileStoragePort` using the local filesystem.

    All paths are resolved relative to a configurable *base_dir*.
    """

    def __init__(self, base_dir: str | Path) -> None:
        self._base = Path(base_dir).resolve()
        self._base.mkdir(parents=True, exist_ok=True)
        logger.info("LocalFileStorage initialised at %s", self._base)

    def _resolve(self, filename: str, directory: str = "") -> Path:
        safe = sanitize_filename(filename)
        target = (self._base / directory / safe) if directory else (self._base / safe)
        target = target.resolve()
        if self._base not in target.parents:
            raise InputValidationError(f"Path escapes storage root: {directory}/{filename}")
        return target

    # -- FileStoragePort implementation ----------------------------------------

    async def save_file(
        self, content: bytes, filename: str, directory: str = ""
    ) -> str:
        """Write *content* to disk and return the absolute path as a string."""
        target = self._resolve(filename, directory)
        target.parent.mkdir(parents=True, exist_ok=True)

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, target.write_bytes, content)
        logger.debug("Saved file %s (%d bytes)", target, len(content))
        return str(target)

    async def save_stream(
        self,
        chunks: AsyncIterator[bytes],
        filename: str,
        directory: str = "",
        max_bytes: int = 0,
    ) -> str:
        """Stream *chunks* to disk; a partial file is removed if the limit trips."""
        target = self._resolve(filename, directory)
        target.parent.mkdir(parents=True, exist_ok=True)

        written = 0
        try:
            with open(target, "wb") as fh:
                async for chunk in chunks:
                    written += len(chunk)
                    if max_bytes and written > max_bytes:
                        raise InputValidationError(
                            f"File too large. Maximum size: {max_bytes // (1024 * 1024)}MB"
                        )
                    fh.write(chunk)
        except InputValidationError:
            target.unlink(missing_ok=True)
            raise
        logger.debug("Streamed file %s (%d bytes)", target, written)
        return str(target)

    def get_file_path(self, filename: str, directory: str = "") -> Path:
        return self._resolve(filename, directory)

    async def delete_file(self, filepath: str) -> None:
        """Delete a file by its absolute or relative path."""
        target = Path(filepath)
        if not target.is_absolute():
            target = self._base / target

        if not target.exists():
            logger.warning("File to delete does not exist: %s", target)
            return

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, target.unlink)
        logger.debug("Deleted file %s", target)
