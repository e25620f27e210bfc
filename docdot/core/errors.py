"""Error taxonomy shared by services and routes.

Services raise these instead of `HTTPException` so they stay usable from the
Telegram bot. `main.py` renders them with the same `{"detail": ...}` body
FastAPI uses for its own HTTP errors.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse


class DocdotError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(DocdotError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "User not authenticated"


class BadRequest(DocdotError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class NotFound(DocdotError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Conflict(DocdotError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class Internal(DocdotError):
    pass


async def docdot_error_handler(request: Request, exc: DocdotError) -> JSONResponse:
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )
