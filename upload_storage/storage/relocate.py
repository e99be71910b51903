"""Relocation of memory-buffered uploads to the storage root."""

import asyncio
from collections.abc import Iterable
from pathlib import Path

import aiofiles

from upload_storage.core.logger import LogIcon, logger
from upload_storage.core.settings import settings as st
from upload_storage.models.core import StoredFile, StoredFiles, UploadedFile
from upload_storage.storage.paths import (
    as_public_path,
    build_filename,
    ensure_directory,
    generate_name,
    normalize_destination,
    resolve_target,
)


class RelocateBufferedFiles:
    """Request step writing buffered uploads to ``<storage_root>/<destination>``.

    Each file gets a fresh UUID name plus its already resolved extension. Files
    are written concurrently; the step returns once every write has settled and
    raises the first failure in upload order. Files written before a failure
    stay on disk.
    """

    def __init__(self, destination: str = "/", storage_root: Path | str | None = None) -> None:
        self.destination = normalize_destination(destination)
        self.storage_root = Path(storage_root) if storage_root is not None else st.STORAGE_PATH

    @property
    def target(self) -> Path:
        return resolve_target(self.storage_root, self.destination)

    async def __call__(self, files: UploadedFile | Iterable[UploadedFile]) -> StoredFiles:
        batch = [files] if isinstance(files, UploadedFile) else list(files)
        directory = await asyncio.to_thread(ensure_directory, self.target)

        results = await asyncio.gather(*(self._write(directory, file) for file in batch), return_exceptions=True)
        if error := next((result for result in results if isinstance(result, BaseException)), None):
            raise error

        logger.info("Relocation complete", icon=LogIcon.UPLOAD, files=len(results), target=str(directory))
        return StoredFiles((stored.file_id, stored) for stored in results)

    async def _write(self, directory: Path, file: UploadedFile) -> StoredFile:
        if file.buffer is None:
            raise ValueError(f"File '{file.filename}' has no buffered content to relocate")

        path = directory / build_filename(generate_name(), file.ext)
        async with aiofiles.open(path, "wb") as handle:
            await handle.write(file.buffer)

        logger.info("File relocated", icon=LogIcon.FILE, field=file.field_name, path=str(path), size=file.size)
        return StoredFile.from_upload(file, as_public_path(path))

    def __repr__(self) -> str:
        return f"RelocateBufferedFiles(destination={self.destination!r}, storage_root={str(self.storage_root)!r})"


def save_to_disk(destination: str = "/", storage_root: Path | str | None = None) -> RelocateBufferedFiles:
    """Relocation step for files buffered by ``MemoryBuffer``."""
    return RelocateBufferedFiles(destination, storage_root)
