"""Tests for content type to extension mapping."""

import pytest

from upload_storage.core.settings import settings
from upload_storage.storage.extensions import base_content_type, content_type_for, extension_for


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("image/png", "png"),
        ("IMAGE/PNG", "png"),
        ("application/pdf", "pdf"),
        ("text/plain; charset=utf-8", "txt"),
        ("application/octet-stream", "bin"),
    ],
)
def test_extension_for_known_types(content_type: str, expected: str) -> None:
    """Verify registered content types map to their extension."""
    assert extension_for(content_type) == expected


@pytest.mark.parametrize("content_type", ["application/x-made-up", "", None, "not a mime type"])
def test_extension_for_unknown_types_uses_setting(content_type: str | None) -> None:
    """Verify unknown types fall back to UNKNOWN_EXTENSION."""
    assert extension_for(content_type) == settings.UNKNOWN_EXTENSION


def test_extension_for_explicit_fallback() -> None:
    """Verify an explicit fallback wins, including the empty one."""
    assert extension_for("application/x-made-up", fallback="dat") == "dat"
    assert extension_for("application/x-made-up", fallback="") == ""


def test_extension_for_follows_setting(monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify the fallback is read from settings at call time."""
    monkeypatch.setattr(settings, "UNKNOWN_EXTENSION", "unknown")
    assert extension_for("application/x-made-up") == "unknown"


def test_base_content_type() -> None:
    """Verify parameters and case are dropped."""
    assert base_content_type(" Text/HTML ; charset=UTF-8") == "text/html"
    assert base_content_type(None) == ""


@pytest.mark.parametrize(
    ("filename", "expected"),
    [("photo.png", "image/png"), ("doc.pdf", "application/pdf"), ("noext", "application/octet-stream")],
)
def test_content_type_for(filename: str, expected: str) -> None:
    """Verify content types guessed from client filenames."""
    assert content_type_for(filename) == expected
