"""Test fixtures for upload-storage unit tests."""

import json
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from upload_storage.core.lifespan import State
from upload_storage.models.core import UploadedFile

BOUNDARY = "----upload-storage-test-boundary"
MULTIPART_CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"

# (field name, filename, content type, data)
type FilePart = tuple[str, str, str, bytes]


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key.lower(), default)

    def set(self, key: str, value: str) -> None:
        self._data[key.lower()] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key.lower()] = value


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    body: bytes | str = b""
    headers: MockHeaders = field(default_factory=MockHeaders)
    files: dict[str, bytes] = field(default_factory=dict)
    method: str = "POST"
    path: str = "/"

    def json(self) -> dict:
        return json.loads(self.body)


# -----------------------------------------------------------------------------
# Multipart helpers
# -----------------------------------------------------------------------------


def build_multipart(files: list[FilePart], fields: dict[str, str] | None = None) -> bytes:
    """Encode form fields and file parts as a multipart/form-data body."""
    chunks: list[bytes] = []
    for name, value in (fields or {}).items():
        chunks.append(
            f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode()
        )
    for name, filename, content_type, data in files:
        head = (
            f"--{BOUNDARY}\r\n"
            f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
            f"Content-Type: {content_type}\r\n\r\n"
        )
        chunks.append(head.encode() + data + b"\r\n")
    chunks.append(f"--{BOUNDARY}--\r\n".encode())
    return b"".join(chunks)


@pytest.fixture
def multipart_content_type() -> str:
    return MULTIPART_CONTENT_TYPE


@pytest.fixture
def multipart_payload() -> Callable[..., tuple[str, bytes]]:
    """Factory fixture returning ``(content_type, body)`` for a multipart upload."""

    def _make(files: list[FilePart], fields: dict[str, str] | None = None) -> tuple[str, bytes]:
        return MULTIPART_CONTENT_TYPE, build_multipart(files, fields)

    return _make


@pytest.fixture
def make_upload_request() -> Callable[..., MockRequest]:
    """Factory fixture to create multipart mock requests."""

    def _make(files: list[FilePart], fields: dict[str, str] | None = None) -> MockRequest:
        headers = MockHeaders()
        headers["content-type"] = MULTIPART_CONTENT_TYPE
        return MockRequest(body=build_multipart(files, fields), headers=headers)

    return _make


@pytest.fixture
def buffered_file() -> Callable[..., UploadedFile]:
    """Factory fixture to create memory-buffered uploads."""

    def _make(data: bytes = b"\x89PNG\r\n\x1a\npayload", ext: str = "png", field_name: str = "file") -> UploadedFile:
        return UploadedFile(
            field_name=field_name,
            filename=f"upload.{ext}",
            content_type="image/png",
            ext=ext,
            size=len(data),
            buffer=data,
        )

    return _make


# -----------------------------------------------------------------------------
# Storage fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    return tmp_path / "storage-root"


@pytest.fixture
def local_storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "local-storage"


# -----------------------------------------------------------------------------
# State fixture
# -----------------------------------------------------------------------------


@pytest.fixture
def test_state() -> Iterator[State]:
    """Create a test state container, emptied after the test."""
    state = State()
    yield state
    state.clear()
