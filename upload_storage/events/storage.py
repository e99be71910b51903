"""Storage directories lifespan event."""

from dataclasses import dataclass
from pathlib import Path

from upload_storage.core.lifespan import BaseEvent
from upload_storage.core.logger import LogIcon, logger
from upload_storage.core.settings import settings as st
from upload_storage.storage.paths import ensure_directory


@dataclass(frozen=True, slots=True)
class StorageRoots:
    """Base directories uploads are written under."""

    storage_path: Path
    local_storage_dir: Path


def prepare_storage(storage_path: Path, local_storage_dir: Path) -> StorageRoots:
    """Create both storage base directories if absent."""
    roots = StorageRoots(
        storage_path=ensure_directory(storage_path).resolve(),
        local_storage_dir=ensure_directory(local_storage_dir).resolve(),
    )
    logger.info(
        "Storage ready",
        icon=LogIcon.FOLDER,
        storage_path=str(roots.storage_path),
        local_storage_dir=str(roots.local_storage_dir),
    )
    return roots


class StorageEvent(BaseEvent[StorageRoots]):
    """Ensures the storage directories exist before requests are served."""

    name = "storage"

    async def startup(self) -> StorageRoots:
        return prepare_storage(st.STORAGE_PATH, st.LOCAL_STORAGE_DIR)
