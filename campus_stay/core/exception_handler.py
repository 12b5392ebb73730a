import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import AppError, ErrorKind
from .response import error_response
from .settings import settings

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def _wire_name(part) -> str:
    # errors on defaulted fields carry the python name, not the alias
    if isinstance(part, str) and "_" in part:
        return to_camel(part)
    return str(part)


def _field_path(loc) -> str:
    parts = list(loc)
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(_wire_name(part) for part in parts) or "body"


def _clean_message(msg: str) -> str:
    for prefix in ("Value error, ", "Assertion failed, "):
        if msg.startswith(prefix):
            return msg[len(prefix):]
    return msg


class ValidationErrorHandler:
    async def __call__(self, request: Request, exc: RequestValidationError):
        errors: dict[str, list[str]] = {}

        for err in exc.errors():
            field = _field_path(err.get("loc", ()))
            errors.setdefault(field, []).append(_clean_message(str(err.get("msg"))))

        return error_response("Validation failed", 400, errors)


class AppErrorHandler:
    async def __call__(self, request: Request, exc: AppError):
        message = exc.message
        if exc.kind is ErrorKind.PERMISSION and settings.IS_PRODUCTION:
            message = "Insufficient permissions"
        if exc.kind is ErrorKind.SERVER:
            message = "An unexpected error occurred"

        return error_response(message, exc.status_code, exc.errors)


class HTTPErrorHandler:
    async def __call__(self, request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            logger.error(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
            return error_response("An unexpected error occurred", exc.status_code)

        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and message == "Not Found":
            message = "Resource not found"
        return error_response(message, exc.status_code)
