import uuid

from fastapi import APIRouter, Depends, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from campus_stay.core.get_current_user import AuthContext, with_auth
from campus_stay.core.get_db import get_db_async
from campus_stay.core.response import success_response
from campus_stay.core.safe_handler import safe_handler
from campus_stay.core.throttling import rate_limit
from campus_stay.schemas.schema import SaveListingRequest, SaveRoommateRequest
from campus_stay.services.saved_service import SavedService

router = APIRouter(tags=["Saved Items"])


@cbv(router)
class SavedRoutes:
    @router.get("/saved", dependencies=[rate_limit])
    @safe_handler
    async def saved_listings(
        self,
        request: Request,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        return success_response(await SavedService(db).saved_listings(context.user_id))

    @router.post("/saved", dependencies=[rate_limit])
    @safe_handler
    async def save_listing(
        self,
        request: Request,
        data: SaveListingRequest,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        result = await SavedService(db).save_listing(context.user, data.listing_id)
        return success_response(result)

    @router.delete("/saved/{listing_id}", dependencies=[rate_limit])
    @safe_handler
    async def unsave_listing(
        self,
        request: Request,
        listing_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        result = await SavedService(db).unsave_listing(context.user, listing_id)
        return success_response(result)

    @router.get("/saved-roommates", dependencies=[rate_limit])
    @safe_handler
    async def saved_roommates(
        self,
        request: Request,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        return success_response(await SavedService(db).saved_roommates(context.user_id))

    @router.post("/saved-roommates", dependencies=[rate_limit])
    @safe_handler
    async def save_roommate(
        self,
        request: Request,
        data: SaveRoommateRequest,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        result = await SavedService(db).save_roommate(context.user, data.roommate_id)
        return success_response(result)

    @router.delete("/saved-roommates/{roommate_id}", dependencies=[rate_limit])
    @safe_handler
    async def unsave_roommate(
        self,
        request: Request,
        roommate_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        result = await SavedService(db).unsave_roommate(context.user, roommate_id)
        return success_response(result)
