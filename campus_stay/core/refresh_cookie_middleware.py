from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from campus_stay.security.cookies import set_access_cookie

from .get_current_user import RENEWED_ACCESS_TOKEN


class RenewedAccessCookieMiddleware(BaseHTTPMiddleware):
    """Writes an access cookie minted during session resolution.

    Handlers return their own ``JSONResponse`` objects, so a dependency cannot
    attach cookies to them; the resolver leaves the new token on the request
    state and this middleware copies it onto whatever response comes back.
    """

    def __init__(self, app, skip_paths: set[str] | None = None):
        super().__init__(app)
        self.skip_paths = skip_paths or set()

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if request.url.path in self.skip_paths:
            return response

        state = request.scope.get("state") or {}
        new_access = state.get(RENEWED_ACCESS_TOKEN)
        if new_access and "set-cookie" not in response.headers:
            set_access_cookie(response, new_access)
        return response
