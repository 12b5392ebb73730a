import logging
from functools import wraps

from fastapi import Request

from .errors import AppError, ServerError

logger = logging.getLogger(__name__)


def _describe(request: Request) -> tuple[str, str, str]:
    client_ip = request.client.host if request.client else "unknown"
    trace_id = request.headers.get("X-Request-ID", "none")
    return trace_id, request.url.path, client_ip


def safe_handler(func):
    @wraps(func)
    async def wrapper(*args, **kwargs):
        request: Request | None = None
        for arg in list(args) + list(kwargs.values()):
            if isinstance(arg, Request):
                request = arg
                break

        try:
            return await func(*args, **kwargs)
        except AppError as e:
            if request:
                trace_id, path, client_ip = _describe(request)
                logger.warning(
                    f"[{e.kind.value}] TraceID={trace_id} | {e.status_code} - {path} "
                    f"from {client_ip}: {e.message}"
                )
            else:
                logger.warning(f"[{e.kind.value}] in {func.__name__}: {e.message}")
            raise
        except Exception as e:
            if request:
                trace_id, path, client_ip = _describe(request)
                logger.error(
                    f"[Unhandled Error] TraceID={trace_id} | in {func.__name__} | Path: {path} | "
                    f"Client: {client_ip} | Error: {e}",
                    exc_info=True,
                )
            else:
                logger.error(
                    f"[Unhandled Error] in {func.__name__}: {e}", exc_info=True
                )
            raise ServerError() from e

    return wrapper
