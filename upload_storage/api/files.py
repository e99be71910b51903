"""Upload endpoints, one per storage mode."""

from pydantic import BaseModel

from upload_storage.core.logger import LogIcon, logger
from upload_storage.core.router import Router
from upload_storage.models.core import StoredFiles, UploadFile, UploadResponse
from upload_storage.storage.disk import DiskStorage
from upload_storage.storage.memory import MemoryBuffer
from upload_storage.storage.relocate import RelocateBufferedFiles

router = Router(__file__, prefix="/files")


class BufferedFile(BaseModel):
    field_name: str
    filename: str
    content_type: str
    size: int


class BufferedResponse(BaseModel):
    files: list[BufferedFile]


@router.post("/memory", upload=MemoryBuffer())
async def upload_to_memory(files: UploadFile) -> BufferedResponse:
    """Buffer files in memory and report what was received."""
    return BufferedResponse(
        files=[
            BufferedFile(field_name=f.field_name, filename=f.filename, content_type=f.content_type, size=f.size)
            for f in files
        ]
    )


@router.post("/disk", upload=DiskStorage("uploads"))
async def upload_to_disk(stored: StoredFiles) -> UploadResponse:
    """Stream files to disk under generated names."""
    logger.info("Files uploaded to disk", icon=LogIcon.UPLOAD, count=len(stored))
    return UploadResponse(files=list(stored.values()))


@router.post("/avatar", upload=DiskStorage("avatars", filename="avatar"))
async def upload_avatar(stored: StoredFiles) -> UploadResponse:
    """Stream files to disk under a fixed name, replacing the previous avatar."""
    return UploadResponse(files=list(stored.values()))


@router.post("/relocate", upload=MemoryBuffer(), relocate=RelocateBufferedFiles("relocated"))
async def upload_and_relocate(stored: StoredFiles) -> UploadResponse:
    """Buffer files in memory, then write them under the storage root."""
    logger.info("Files relocated", icon=LogIcon.UPLOAD, count=len(stored))
    return UploadResponse(files=list(stored.values()))
