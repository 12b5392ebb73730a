from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(data: Any = None, status_code: int = 200) -> JSONResponse:
    content: dict[str, Any] = {"success": True}
    if data is not None:
        content["data"] = jsonable_encoder(data, by_alias=True)
    return JSONResponse(content=content, status_code=status_code)


def error_response(
    message: str,
    status_code: int,
    errors: dict[str, list[str]] | None = None,
) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "error": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(content=content, status_code=status_code)
