# backend/core/errors.py

from typing import Optional
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException


def error_code(exc: Exception) -> str:
    """
    Vendor error code of a database failure (e.g. 1054 for MySQL),
    or the exception class name for anything else.
    """
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        args = getattr(exc.orig, "args", ())
        if args and isinstance(args[0], int):
            return str(args[0])
        return type(exc.orig).__name__
    return type(exc).__name__


def server_error(error: str, exc: Exception, debug: bool = False) -> JSONResponse:
    content = {
        "error": error,
        "message": str(getattr(exc, "orig", None) or exc) or "Unknown error",
        "code": error_code(exc),
    }
    if debug and isinstance(exc, DBAPIError):
        content["details"] = exc.statement
    return JSONResponse(status_code=500, content=content)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    first: Optional[dict] = exc.errors()[0] if exc.errors() else None
    message = first.get("msg") if first else "Invalid request"
    if first and first.get("loc"):
        message = "{}: {}".format(".".join(str(part) for part in first["loc"]), message)
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "message": message},
    )
