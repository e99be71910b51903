"""upload-storage - multipart upload storage powered by Robyn."""

from robyn import Robyn

from upload_storage.api.files import router as files_router
from upload_storage.api.health import router as health_router
from upload_storage.core.lifespan import create_lifespan
from upload_storage.core.logger import logger
from upload_storage.core.settings import settings as st
from upload_storage.events.storage import StorageEvent
from upload_storage.middlewares.base import MiddlewareHandler
from upload_storage.middlewares.files import FileUploadOpenAPIMiddleware

app = Robyn(__file__)

# Lifespan events
lifespan = create_lifespan(app)
lifespan.register(StorageEvent)

app.startup_handler(lifespan.startup)
app.shutdown_handler(lifespan.shutdown)

# Routers
app.include_router(health_router)
app.include_router(files_router)

# Middlewares
middlewares = MiddlewareHandler(app)
middlewares.register(FileUploadOpenAPIMiddleware())


def main() -> None:
    logger.info("🚀 STARTING %s | HOST=%s | PORT=%s", st.API_NAME, st.API_HOST, st.API_PORT)
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
