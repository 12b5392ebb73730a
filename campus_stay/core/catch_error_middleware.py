import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .response import error_response

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(f"Unhandled server error on {request.url.path}: {e}")
            return error_response("An unexpected error occurred", 500)
