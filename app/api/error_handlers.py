import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.errors import GroupMembershipError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Map membership failures to HTTP responses; anything else is a 500."""

    @app.exception_handler(GroupMembershipError)
    async def membership_error_handler(request: Request, exc: GroupMembershipError):
        logger.info(
            "%s %s rejected: %s",
            request.method,
            request.url.path,
            exc.message,
            extra={"error_code": exc.code},
        )
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled error on %s %s", request.method, request.url.path,
            extra={"error_code": "INTERNAL_ERROR"},
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "code": "INTERNAL_ERROR"},
        )
