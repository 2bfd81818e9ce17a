"""ServiceError -> HTTP response mapping."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from coursetrack.core.errors import ErrorKind, ServiceError

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: 422,
}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    code = _STATUS_BY_KIND[exc.kind]
    body: dict[str, object] = {"detail": exc.message, "error": exc.kind.value}
    if exc.fields:
        body["fields"] = exc.fields
    logger.info(
        "%s %s rejected: %s (%s)",
        request.method,
        request.url.path,
        exc.message,
        exc.kind.value,
    )
    return JSONResponse(status_code=code, content=body)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)  # type: ignore[arg-type]
