import uuid

from fastapi import APIRouter, Depends, Query, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from campus_stay.core.get_current_user import AuthContext, with_auth, with_optional_auth
from campus_stay.core.get_db import get_db_async
from campus_stay.core.response import success_response
from campus_stay.core.safe_handler import safe_handler
from campus_stay.core.throttling import rate_limit
from campus_stay.models.enums import (
    Cleanliness,
    GenderPreference,
    PetsPreference,
    RoommateSort,
    SmokingPreference,
    StudyHours,
)
from campus_stay.repos.roommate_repo import RoommateFilters
from campus_stay.schemas.schema import RoommateCreate, RoommateUpdate
from campus_stay.services.roommate_service import RoommateService

router = APIRouter(tags=["Roommates"])


@cbv(router)
class RoommateRoutes:
    @router.get("/roommates", dependencies=[rate_limit, Depends(with_optional_auth)])
    @safe_handler
    async def list_roommates(
        self,
        request: Request,
        page: int = Query(1, ge=1),
        limit: int = Query(12, ge=1, le=50),
        search: str | None = Query(None, max_length=100),
        min_budget: int | None = Query(None, ge=0, alias="minBudget"),
        max_budget: int | None = Query(None, ge=0, alias="maxBudget"),
        gender: GenderPreference | None = Query(None),
        cleanliness: Cleanliness | None = Query(None),
        study_hours: StudyHours | None = Query(None, alias="studyHours"),
        smoking: SmokingPreference | None = Query(None),
        pets: PetsPreference | None = Query(None),
        sort_by: RoommateSort = Query(RoommateSort.NEWEST, alias="sortBy"),
        db: AsyncSession = Depends(get_db_async),
    ):
        filters = RoommateFilters(
            search=search,
            min_budget=min_budget,
            max_budget=max_budget,
            gender=gender,
            cleanliness=cleanliness,
            study_hours=study_hours,
            smoking=smoking,
            pets=pets,
            sort_by=sort_by,
        )
        return success_response(
            await RoommateService(db).list_roommates(filters, page, limit)
        )

    @router.post("/roommates", status_code=201, dependencies=[rate_limit])
    @safe_handler
    async def create_roommate(
        self,
        request: Request,
        data: RoommateCreate,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        result = await RoommateService(db).create_roommate(context.user, data)
        return success_response(result, status_code=201)

    @router.get("/roommates/me", dependencies=[rate_limit])
    @safe_handler
    async def my_roommates(
        self,
        request: Request,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        return success_response(await RoommateService(db).my_roommates(context.user_id))

    @router.get("/roommates/{roommate_id}", dependencies=[rate_limit, Depends(with_optional_auth)])
    @safe_handler
    async def get_roommate(
        self,
        request: Request,
        roommate_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
    ):
        return success_response(await RoommateService(db).get_roommate(roommate_id))

    @router.patch("/roommates/{roommate_id}", dependencies=[rate_limit])
    @safe_handler
    async def update_roommate(
        self,
        request: Request,
        roommate_id: uuid.UUID,
        data: RoommateUpdate,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        result = await RoommateService(db).update_roommate(
            roommate_id, context.user_id, data
        )
        return success_response(result)

    @router.delete("/roommates/{roommate_id}", dependencies=[rate_limit])
    @safe_handler
    async def delete_roommate(
        self,
        request: Request,
        roommate_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        result = await RoommateService(db).delete_roommate(roommate_id, context.user_id)
        return success_response(result)
