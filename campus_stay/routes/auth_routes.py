from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from campus_stay.core.get_current_user import AuthContext, with_auth
from campus_stay.core.get_db import get_db_async
from campus_stay.core.response import success_response
from campus_stay.core.safe_handler import safe_handler
from campus_stay.core.throttling import rate_limit
from campus_stay.notifications.outbox import NotificationOutbox, get_outbox
from campus_stay.schemas.schema import (
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
    VerifyEmailRequest,
)
from campus_stay.security.cookies import (
    clear_auth_cookies,
    get_refresh_token_from_request,
    set_auth_cookies,
)
from campus_stay.services.auth_service import AuthService

router = APIRouter(tags=["User Authentication"])


@cbv(router)
class AuthRoutes:
    @router.post("/register", status_code=201, dependencies=[rate_limit])
    @safe_handler
    async def register(
        self,
        request: Request,
        data: RegisterRequest,
        db: AsyncSession = Depends(get_db_async),
        outbox: NotificationOutbox = Depends(get_outbox),
    ):
        user, tokens = await AuthService(db, outbox).register(data)
        response = success_response(
            {
                "user": user,
                "message": "Registration successful. Please verify your email.",
            },
            status_code=201,
        )
        set_auth_cookies(response, tokens.access_token, tokens.refresh_token)
        return response

    @router.post("/login", dependencies=[rate_limit])
    @safe_handler
    async def login(
        self,
        request: Request,
        data: LoginRequest,
        db: AsyncSession = Depends(get_db_async),
    ):
        user, tokens = await AuthService(db).login(data)
        response = success_response({"user": user})
        set_auth_cookies(response, tokens.access_token, tokens.refresh_token)
        return response

    @router.post("/refresh", dependencies=[rate_limit])
    @safe_handler
    async def refresh(self, request: Request, db: AsyncSession = Depends(get_db_async)):
        user, tokens = await AuthService(db).refresh(
            get_refresh_token_from_request(request)
        )
        response = success_response({"user": user})
        set_auth_cookies(response, tokens.access_token, tokens.refresh_token)
        return response

    @router.post("/logout")
    @safe_handler
    async def logout(self, request: Request):
        response = success_response({"message": "Logged out successfully"})
        clear_auth_cookies(response)
        return response

    @router.get("/me")
    @safe_handler
    async def me(
        self,
        request: Request,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        user = await AuthService(db).session_user(context.user)
        return success_response({"user": user})

    @router.patch("/me", dependencies=[rate_limit])
    @safe_handler
    async def update_me(
        self,
        request: Request,
        data: UpdateProfileRequest,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        user = await AuthService(db).update_me(context.user, data)
        return success_response({"user": user})

    @router.post("/forgot-password", dependencies=[rate_limit])
    @safe_handler
    async def forgot_password(
        self,
        request: Request,
        data: EmailRequest,
        db: AsyncSession = Depends(get_db_async),
        outbox: NotificationOutbox = Depends(get_outbox),
    ):
        result = await AuthService(db, outbox).forgot_password(data.email)
        return success_response(result)

    @router.get("/reset-password", dependencies=[rate_limit])
    @safe_handler
    async def check_reset_token(
        self,
        request: Request,
        token: str | None = Query(None),
        db: AsyncSession = Depends(get_db_async),
    ):
        return success_response(await AuthService(db).check_reset_token(token))

    @router.post("/reset-password", dependencies=[rate_limit])
    @safe_handler
    async def reset_password(
        self,
        request: Request,
        data: ResetPasswordRequest,
        db: AsyncSession = Depends(get_db_async),
        outbox: NotificationOutbox = Depends(get_outbox),
    ):
        return success_response(await AuthService(db, outbox).reset_password(data))

    @router.post("/verify-email", dependencies=[rate_limit])
    @safe_handler
    async def verify_email(
        self,
        request: Request,
        data: VerifyEmailRequest,
        db: AsyncSession = Depends(get_db_async),
        outbox: NotificationOutbox = Depends(get_outbox),
    ):
        return success_response(await AuthService(db, outbox).verify_email(data.token))

    @router.get("/verify-email")
    @safe_handler
    async def verify_email_link(
        self,
        request: Request,
        token: str | None = Query(None),
        db: AsyncSession = Depends(get_db_async),
        outbox: NotificationOutbox = Depends(get_outbox),
    ):
        url = await AuthService(db, outbox).verify_email_redirect(token)
        return RedirectResponse(url=url, status_code=307)

    @router.post("/resend-verification", dependencies=[rate_limit])
    @safe_handler
    async def resend_verification(
        self,
        request: Request,
        data: EmailRequest,
        db: AsyncSession = Depends(get_db_async),
        outbox: NotificationOutbox = Depends(get_outbox),
    ):
        result = await AuthService(db, outbox).resend_verification(data.email)
        return success_response(result)
