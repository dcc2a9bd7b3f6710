"""Error responses shared by the HTTP surface."""

from __future__ import annotations

from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class UnauthorizedError(Exception):
    """Raised when a caller fails signature or bearer-secret checks."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)
        self.message = message


def error_response(status_code: int, message: str) -> JSONResponse:
    """JSON body in the ``{"error": ...}`` shape callers of this relay expect."""
    return JSONResponse(status_code=status_code, content={"error": message})


async def _unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
    return error_response(HTTPStatus.UNAUTHORIZED, exc.message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UnauthorizedError, _unauthorized_handler)


__all__ = ["UnauthorizedError", "error_response", "register_exception_handlers"]
