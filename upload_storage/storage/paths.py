"""Destination normalization and filesystem path helpers shared by storage backends."""

import posixpath
import uuid
from pathlib import Path

ROOT = "/"


def normalize_destination(raw: str | None) -> str:
    """Coerce a caller-supplied destination into a rooted, slash-delimited directory.

    The result always starts with ``/``, never ends with ``/`` unless it is the
    root itself, and has no ``.`` or ``..`` segments (``..`` above the root is
    clamped at the root). Input is never rejected.

    >>> normalize_destination("uploads/")
    '/uploads'
    >>> normalize_destination("a/./b/../c")
    '/a/c'
    """
    cleaned = (raw or "").replace("\\", "/").lstrip("/")
    # Rooting before normpath keeps ".." from escaping the destination;
    # normpath also drops the trailing slash of anything but the root.
    return posixpath.normpath(ROOT + cleaned)


def resolve_target(base: Path | str, destination: str) -> Path:
    """Join a destination under a base directory."""
    return Path(base) / normalize_destination(destination).lstrip("/")


def ensure_directory(path: Path | str) -> Path:
    """Create a directory and its missing ancestors. Already existing is fine."""
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def build_filename(name: str, ext: str) -> str:
    return f"{name}.{ext}" if ext else name


def as_public_path(path: Path | str) -> str:
    """Render a stored file path with forward slashes and a leading slash."""
    public = str(path).replace("\\", "/")
    return public if public.startswith("/") else f"/{public}"


def generate_name() -> str:
    return str(uuid.uuid4())
