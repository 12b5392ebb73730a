import uuid

from fastapi import APIRouter, Depends, Query, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from campus_stay.core.get_current_user import AuthContext, with_admin
from campus_stay.core.get_db import get_db_async
from campus_stay.core.response import success_response
from campus_stay.core.safe_handler import safe_handler
from campus_stay.core.throttling import rate_limit
from campus_stay.models.enums import UserRole
from campus_stay.notifications.outbox import NotificationOutbox, get_outbox
from campus_stay.schemas.schema import AdminUserUpdate
from campus_stay.services.admin_service import AdminService

router = APIRouter(tags=["Admin"])


@cbv(router)
class AdminRoutes:
    context: AuthContext = Depends(with_admin)

    @router.get("/stats", dependencies=[rate_limit])
    @safe_handler
    async def stats(self, request: Request, db: AsyncSession = Depends(get_db_async)):
        return success_response(await AdminService(db).platform_stats())

    @router.get("/users", dependencies=[rate_limit])
    @safe_handler
    async def list_users(
        self,
        request: Request,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        role: UserRole | None = Query(None),
        search: str | None = Query(None, max_length=100),
        verified: bool | None = Query(None),
        db: AsyncSession = Depends(get_db_async),
    ):
        result = await AdminService(db).list_users(page, limit, role, search, verified)
        return success_response(result)

    @router.get("/users/{user_id}", dependencies=[rate_limit])
    @safe_handler
    async def get_user(
        self,
        request: Request,
        user_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
    ):
        return success_response(await AdminService(db).get_user(user_id))

    @router.patch("/users/{user_id}", dependencies=[rate_limit])
    @safe_handler
    async def update_user(
        self,
        request: Request,
        user_id: uuid.UUID,
        data: AdminUserUpdate,
        db: AsyncSession = Depends(get_db_async),
        outbox: NotificationOutbox = Depends(get_outbox),
    ):
        result = await AdminService(db, outbox).update_user(user_id, data)
        return success_response(result)

    @router.delete("/users/{user_id}", dependencies=[rate_limit])
    @safe_handler
    async def delete_user(
        self,
        request: Request,
        user_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
    ):
        result = await AdminService(db).delete_user(user_id, self.context.user_id)
        return success_response(result)

    @router.get("/activity", dependencies=[rate_limit])
    @safe_handler
    async def activity(
        self,
        request: Request,
        limit: int = Query(10, ge=1, le=50),
        db: AsyncSession = Depends(get_db_async),
    ):
        return success_response(await AdminService(db).recent_activity(limit))
