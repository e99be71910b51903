"""Base upload storage: drives multipart parsing into backend-specific sinks."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping

from upload_storage.core.multipart import PartInfo, PartSink, parse_multipart
from upload_storage.models.core import UploadedFile, UploadFile
from upload_storage.storage.extensions import content_type_for


class BaseUploadStorage[S: PartSink](ABC):
    """Reusable parser configuration deciding where file parts end up.

    Subclasses open one sink per file part and turn a finished sink into an
    ``UploadedFile``. Instances hold no per-request state and may be shared
    between routes and concurrent requests.
    """

    # Run parsing in a worker thread when sinks do blocking I/O
    blocking: bool = False

    @abstractmethod
    def open_sink(self, info: PartInfo) -> S:
        """Open the destination for one file part."""

    @abstractmethod
    def build_file(self, info: PartInfo, sink: S) -> UploadedFile:
        """Describe a fully received file part."""

    def store(self, content_type: str | None, body: bytes) -> UploadFile:
        """Parse a multipart body synchronously."""
        parts = parse_multipart(content_type, body, self.open_sink)
        return UploadFile(self.build_file(info, sink) for info, sink in parts)

    def store_files(self, files: Mapping[str, bytes], field_name: str = "file") -> UploadFile:
        """Store files already split out by the framework, keyed by client filename."""
        uploads: list[UploadedFile] = []
        for filename, data in files.items():
            info = PartInfo(field_name=field_name, filename=filename, content_type=content_type_for(filename))
            sink = self.open_sink(info)
            try:
                sink.write(data)
            finally:
                sink.close()
            uploads.append(self.build_file(info, sink))
        return UploadFile(uploads)

    async def receive(self, content_type: str | None, body: bytes) -> UploadFile:
        """Parse a multipart request body into an ``UploadFile``."""
        if self.blocking:
            return await asyncio.to_thread(self.store, content_type, body)
        return self.store(content_type, body)

    async def receive_files(self, files: Mapping[str, bytes]) -> UploadFile:
        """Accept Robyn's pre-parsed ``request.files`` mapping."""
        if self.blocking:
            return await asyncio.to_thread(self.store_files, files)
        return self.store_files(files)
