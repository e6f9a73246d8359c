"""
Error taxonomy for the search API and its HTTP mapping.

Every error response carries a ``{"message": ...}`` body.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SearchAssistantError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(SearchAssistantError):
    """A required request field is missing."""

    status_code = status.HTTP_400_BAD_REQUEST


class SessionNotFoundError(SearchAssistantError):
    """The session id is unknown; callers recover by starting a new search."""

    status_code = status.HTTP_404_NOT_FOUND


class UpstreamError(SearchAssistantError):
    """The model call failed or returned an unusable response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def _handle_search_error(request: Request, exc: SearchAssistantError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Malformed request body"},
    )


def register_exception_handlers(application: FastAPI) -> None:
    """Attach the ``{"message": ...}`` error handlers to the app."""
    application.add_exception_handler(SearchAssistantError, _handle_search_error)
    application.add_exception_handler(RequestValidationError, _handle_validation_error)
