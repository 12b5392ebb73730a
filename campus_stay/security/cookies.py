from fastapi import Request, Response

from campus_stay.core.settings import settings

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def _set(response: Response, key: str, value: str, max_age: int):
    response.set_cookie(
        key=key,
        value=value,
        httponly=True,
        secure=settings.SECURE_COOKIES,
        samesite="lax",
        max_age=max_age,
        path="/",
    )


def set_access_cookie(response: Response, access_token: str):
    _set(response, ACCESS_COOKIE, access_token, settings.ACCESS_EXPIRE_MINUTES * 60)


def set_auth_cookies(response: Response, access_token: str, refresh_token: str):
    set_access_cookie(response, access_token)
    _set(
        response,
        REFRESH_COOKIE,
        refresh_token,
        settings.REFRESH_EXPIRE_DAYS * 86400,
    )


def clear_auth_cookies(response: Response):
    for cookie in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key=cookie,
            path="/",
            secure=settings.SECURE_COOKIES,
            httponly=True,
            samesite="lax",
        )


def get_access_token_from_request(request: Request) -> str | None:
    return request.cookies.get(ACCESS_COOKIE) or None


def get_refresh_token_from_request(request: Request) -> str | None:
    return request.cookies.get(REFRESH_COOKIE) or None
