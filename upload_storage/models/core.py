"""Core models for request/response handling."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel

from upload_storage.storage.paths import generate_name


class BodyType(StrEnum):
    """Body content type classification for request parsing."""

    PYDANTIC = "pydantic"
    JSONABLE = "jsonable"
    RAW = "raw"


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """A single file part received from a multipart/form-data request.

    Memory buffering fills ``buffer``; disk storage fills ``path`` instead.
    """

    field_name: str
    filename: str
    content_type: str
    ext: str
    size: int = 0
    buffer: bytes | None = field(default=None, repr=False)
    path: str | None = None
    file_id: str = field(default_factory=generate_name)

    @property
    def is_buffered(self) -> bool:
        return self.buffer is not None


class UploadFile:
    """Container for uploaded files from multipart/form-data requests."""

    __slots__ = ("files",)

    def __init__(self, files: Iterable[UploadedFile] | None = None) -> None:
        self.files: list[UploadedFile] = list(files or ())

    def __bool__(self) -> bool:
        return bool(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[UploadedFile]:
        return iter(self.files)

    def __getitem__(self, index: int) -> UploadedFile:
        return self.files[index]

    def __repr__(self) -> str:
        return f"UploadFile({self.files!r})"

    def get(self, name: str) -> UploadedFile | None:
        """Get the first file sent under a field name."""
        return next((file for file in self.files if file.field_name == name), None)

    def getlist(self, name: str) -> list[UploadedFile]:
        """Get every file sent under a field name, in upload order."""
        return [file for file in self.files if file.field_name == name]

    def keys(self) -> list[str]:
        """Get all file field names."""
        return list(dict.fromkeys(file.field_name for file in self.files))

    @property
    def single(self) -> UploadedFile | None:
        """The only file of the request, or None when zero or several were sent."""
        return self.files[0] if len(self.files) == 1 else None


class StoredFile(BaseModel):
    """A file persisted to disk."""

    file_id: str
    field_name: str
    filename: str
    content_type: str
    ext: str
    size: int
    path: str

    @classmethod
    def from_upload(cls, upload: UploadedFile, path: str) -> "StoredFile":
        return cls(
            file_id=upload.file_id,
            field_name=upload.field_name,
            filename=upload.filename,
            content_type=upload.content_type,
            ext=upload.ext,
            size=upload.size,
            path=path,
        )


class StoredFiles(dict[str, StoredFile]):
    """Stored files keyed by the ``file_id`` of the upload they came from."""

    @classmethod
    def from_uploads(cls, uploads: Iterable[UploadedFile]) -> "StoredFiles":
        """Describe uploads that were already written to disk while parsing."""
        stored = cls()
        for upload in uploads:
            if upload.path is None:
                raise ValueError(f"File '{upload.filename}' has not been stored on disk")
            stored[upload.file_id] = StoredFile.from_upload(upload, upload.path)
        return stored

    def paths(self) -> list[str]:
        return [item.path for item in self.values()]


class UploadResponse(BaseModel):
    """Response body listing the files an upload endpoint stored."""

    files: list[StoredFile]
