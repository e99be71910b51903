"""In-memory buffering of uploaded files."""

from upload_storage.core.logger import LogIcon, logger
from upload_storage.core.multipart import PartInfo
from upload_storage.models.core import UploadedFile
from upload_storage.storage.base import BaseUploadStorage
from upload_storage.storage.extensions import extension_for


class BufferSink:
    """Collects the chunks of one part; the bytes stay readable after close."""

    __slots__ = ("_chunks", "closed")

    def __init__(self) -> None:
        self._chunks: list[bytes] = []
        self.closed = False

    def write(self, data: bytes) -> int:
        self._chunks.append(data)
        return len(data)

    def close(self) -> None:
        self.closed = True

    def getvalue(self) -> bytes:
        return b"".join(self._chunks)


class MemoryBuffer(BaseUploadStorage[BufferSink]):
    """Keeps every file part in process memory: files get a buffer and no path."""

    def open_sink(self, info: PartInfo) -> BufferSink:
        return BufferSink()

    def build_file(self, info: PartInfo, sink: BufferSink) -> UploadedFile:
        buffer = sink.getvalue()
        logger.info("File buffered", icon=LogIcon.MEMORY, field=info.field_name, size=len(buffer))
        return UploadedFile(
            field_name=info.field_name,
            filename=info.filename,
            content_type=info.content_type,
            ext=extension_for(info.content_type),
            size=len(buffer),
            buffer=buffer,
        )

    def __repr__(self) -> str:
        return "MemoryBuffer()"


def memory_storage() -> MemoryBuffer:
    """Parser configuration that buffers uploads in memory."""
    return MemoryBuffer()
