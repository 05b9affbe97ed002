import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    """A referenced customer, product or sale does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(ServiceError):
    """Input is well formed but breaks a calculation or state rule."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ServiceError):
    """A business rule blocks the operation against current stored state."""

    status_code = status.HTTP_409_CONFLICT


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)
