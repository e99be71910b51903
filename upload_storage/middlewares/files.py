"""File upload middleware for OpenAPI multipart/form-data patching."""

from collections.abc import Iterable

import orjson
from robyn import Response

from upload_storage.core.logger import LogIcon, logger
from upload_storage.core.router import FILE_UPLOAD_ENDPOINTS
from upload_storage.middlewares.base import BaseMiddleware

MULTIPART_REQUEST_BODY = {
    "content": {
        "multipart/form-data": {
            "schema": {
                "type": "object",
                "properties": {
                    "files": {
                        "type": "array",
                        "items": {"type": "string", "format": "binary"},
                        "description": "Files to upload",
                    }
                },
                "required": ["files"],
            }
        }
    },
    "required": True,
}


def patch_openapi_spec(spec: dict, upload_endpoints: Iterable[str]) -> dict:
    """Declare a multipart/form-data request body on every upload endpoint of an OpenAPI spec."""
    paths = spec.get("paths", {})
    for endpoint in upload_endpoints:
        for operation in paths.get(endpoint, {}).values():
            if isinstance(operation, dict):
                operation["requestBody"] = MULTIPART_REQUEST_BODY
    return spec


class FileUploadOpenAPIMiddleware(BaseMiddleware):
    """Patches OpenAPI responses to use multipart/form-data for file upload endpoints."""

    endpoints = frozenset(["/openapi.json"])

    def __init__(self, upload_endpoints: Iterable[str] | None = None) -> None:
        super().__init__()
        self._upload_endpoints = upload_endpoints

    @property
    def upload_endpoints(self) -> frozenset[str]:
        # Read lazily: routes may be declared after the middleware is built
        return frozenset(FILE_UPLOAD_ENDPOINTS if self._upload_endpoints is None else self._upload_endpoints)

    def after(self, response: Response) -> Response:
        """Patch OpenAPI spec with multipart/form-data for file upload endpoints."""
        upload_endpoints = self.upload_endpoints
        if not upload_endpoints:
            return response

        try:
            spec = orjson.loads(response.description)
        except orjson.JSONDecodeError as ex:
            logger.warning("OpenAPI payload is not JSON, left untouched", icon=LogIcon.WARNING, error=str(ex))
            return response

        response.description = orjson.dumps(patch_openapi_spec(spec, upload_endpoints)).decode()
        return response
