"""Content type to file extension mapping."""

import mimetypes

from upload_storage.core.logger import LogIcon, logger
from upload_storage.core.settings import settings as st

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Built-in table only, so results do not depend on the host's mime.types files
_MIME_TYPES = mimetypes.MimeTypes()


def base_content_type(content_type: str | None) -> str:
    """Strip parameters and normalize case: ``Text/Plain; charset=utf-8`` -> ``text/plain``."""
    return (content_type or "").split(";", 1)[0].strip().lower()


def extension_for(content_type: str | None, fallback: str | None = None) -> str:
    """Return the extension (without dot) registered for a content type.

    Unknown or empty content types yield ``fallback``, defaulting to the
    ``UNKNOWN_EXTENSION`` setting. An empty fallback means no extension.
    """
    fallback = st.UNKNOWN_EXTENSION if fallback is None else fallback
    mime = base_content_type(content_type)
    guessed = _MIME_TYPES.guess_extension(mime) if mime else None
    if not guessed:
        logger.warning("Unknown content type, using fallback extension", icon=LogIcon.WARNING, content_type=mime, ext=fallback)
        return fallback
    return guessed.lstrip(".")


def content_type_for(filename: str) -> str:
    """Guess a content type from a client filename."""
    guessed, _ = _MIME_TYPES.guess_type(filename, strict=False)
    return guessed or DEFAULT_CONTENT_TYPE
