"""Health check endpoint."""

from pydantic import BaseModel

from upload_storage.core.logger import LogIcon, logger
from upload_storage.core.router import Router
from upload_storage.core.settings import settings as st

router = Router(__file__, prefix="/")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    service: str
    version: str
    storage_path: str


@router.get("/health")
async def health_check() -> HealthResponse:
    logger.info("Health check requested", icon=LogIcon.HEALTHCHECK)
    return HealthResponse(
        status="healthy",
        service=st.API_NAME,
        version=st.API_VERSION,
        storage_path=str(st.STORAGE_PATH),
    )
