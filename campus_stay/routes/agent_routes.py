from fastapi import APIRouter, Depends, Query, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from campus_stay.core.get_current_user import AuthContext, with_agent
from campus_stay.core.get_db import get_db_async
from campus_stay.core.response import success_response
from campus_stay.core.safe_handler import safe_handler
from campus_stay.core.throttling import rate_limit
from campus_stay.models.enums import ListingStatus
from campus_stay.services.agent_service import AgentService

router = APIRouter(tags=["Agent Dashboard"])


@cbv(router)
class AgentRoutes:
    context: AuthContext = Depends(with_agent)

    @router.get("/me/stats", dependencies=[rate_limit])
    @safe_handler
    async def stats(self, request: Request, db: AsyncSession = Depends(get_db_async)):
        return success_response(await AgentService(db).stats(self.context.user_id))

    @router.get("/me/earnings", dependencies=[rate_limit])
    @safe_handler
    async def earnings(
        self,
        request: Request,
        months: int = Query(6, ge=1, le=24),
        db: AsyncSession = Depends(get_db_async),
    ):
        result = await AgentService(db).earnings(self.context.user_id, months)
        return success_response(result)

    @router.get("/me/listings", dependencies=[rate_limit])
    @safe_handler
    async def listings(
        self,
        request: Request,
        page: int = Query(1, ge=1),
        limit: int = Query(12, ge=1, le=50),
        status: ListingStatus | None = Query(None),
        db: AsyncSession = Depends(get_db_async),
    ):
        result = await AgentService(db).listings_with_stats(
            self.context.user_id, page, limit, status
        )
        return success_response(result)
