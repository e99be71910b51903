"""Streaming of uploaded files straight to a directory on disk."""

from enum import StrEnum
from pathlib import Path
from typing import BinaryIO

from upload_storage.core.logger import LogIcon, logger
from upload_storage.core.multipart import PartInfo
from upload_storage.core.settings import settings as st
from upload_storage.models.core import UploadedFile
from upload_storage.storage.base import BaseUploadStorage
from upload_storage.storage.extensions import extension_for
from upload_storage.storage.paths import (
    as_public_path,
    build_filename,
    ensure_directory,
    generate_name,
    normalize_destination,
    resolve_target,
)


class FileCollisionError(FileExistsError):
    """Target file already exists and the collision policy rejects overwriting it."""


class CollisionPolicy(StrEnum):
    """What to do when the target filename already exists."""

    OVERWRITE = "overwrite"
    REJECT = "reject"
    AUTO_RENAME = "auto_rename"


class DiskSink:
    """Open file handle for one part, tracking the bytes written."""

    __slots__ = ("path", "ext", "size", "_handle")

    def __init__(self, path: Path, ext: str, handle: BinaryIO) -> None:
        self.path = path
        self.ext = ext
        self.size = 0
        self._handle = handle

    def write(self, data: bytes) -> int:
        written = self._handle.write(data)
        self.size += written
        return written

    def close(self) -> None:
        self._handle.close()


class DiskStorage(BaseUploadStorage[DiskSink]):
    """Writes each file part under ``<root>/<destination>`` while it is parsed.

    Every part is named ``filename`` when one is given (so parts of the same
    content type share one path) or a fresh UUID otherwise, plus the extension
    of its content type. ``collision`` decides what happens when that path
    already exists.
    """

    blocking = True

    def __init__(
        self,
        destination: str = "/",
        filename: str | None = None,
        collision: CollisionPolicy | str = CollisionPolicy.OVERWRITE,
        root: Path | str | None = None,
    ) -> None:
        self.destination = normalize_destination(destination)
        self.filename = filename
        self.collision = CollisionPolicy(collision)
        self.root = Path(root) if root is not None else st.LOCAL_STORAGE_DIR

    @property
    def target(self) -> Path:
        return resolve_target(self.root, self.destination)

    def open_sink(self, info: PartInfo) -> DiskSink:
        directory = ensure_directory(self.target)
        name = self.filename if self.filename is not None else generate_name()
        ext = extension_for(info.content_type)
        path, handle = self._open(directory, name, ext)
        return DiskSink(path, ext, handle)

    def build_file(self, info: PartInfo, sink: DiskSink) -> UploadedFile:
        logger.info("File stored", icon=LogIcon.FILE, field=info.field_name, path=str(sink.path), size=sink.size)
        return UploadedFile(
            field_name=info.field_name,
            filename=info.filename,
            content_type=info.content_type,
            ext=sink.ext,
            size=sink.size,
            path=as_public_path(sink.path),
        )

    def _open(self, directory: Path, name: str, ext: str) -> tuple[Path, BinaryIO]:
        path = directory / build_filename(name, ext)
        match self.collision:
            case CollisionPolicy.OVERWRITE:
                return path, path.open("wb")
            case CollisionPolicy.REJECT:
                try:
                    return path, path.open("xb")
                except FileExistsError as ex:
                    raise FileCollisionError(f"File already exists: {path}") from ex
            case _:
                # auto_rename: name-1.ext, name-2.ext, ...
                counter = 0
                while True:
                    try:
                        return path, path.open("xb")
                    except FileExistsError:
                        counter += 1
                        path = directory / build_filename(f"{name}-{counter}", ext)

    def __repr__(self) -> str:
        return f"DiskStorage(destination={self.destination!r}, filename={self.filename!r}, collision={self.collision!s})"


def disk_storage(
    destination: str = "/",
    filename: str | None = None,
    collision: CollisionPolicy | str = CollisionPolicy.OVERWRITE,
) -> DiskStorage:
    """Parser configuration that streams uploads to ``LOCAL_STORAGE_DIR/<destination>``."""
    return DiskStorage(destination, filename, collision)
