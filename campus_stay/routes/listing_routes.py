import uuid

from fastapi import APIRouter, Depends, Query, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from campus_stay.core.get_current_user import (
    AuthContext,
    with_agent,
    with_auth,
    with_optional_auth,
)
from campus_stay.core.get_db import get_db_async
from campus_stay.core.response import success_response
from campus_stay.core.safe_handler import safe_handler
from campus_stay.core.throttling import rate_limit
from campus_stay.models.enums import CampusArea, ListingSort, ListingStatus
from campus_stay.repos.listing_repo import ListingFilters
from campus_stay.schemas.schema import (
    ListingCreate,
    ListingStatusUpdate,
    ListingUpdate,
    ReviewCreate,
    ReviewUpdate,
)
from campus_stay.services.listing_service import ListingService
from campus_stay.services.review_service import ReviewService

router = APIRouter(tags=["Listings"])


@cbv(router)
class ListingRoutes:
    @router.get("/listings", dependencies=[rate_limit, Depends(with_optional_auth)])
    @safe_handler
    async def list_listings(
        self,
        request: Request,
        page: int = Query(1, ge=1),
        limit: int = Query(12, ge=1, le=50),
        search: str | None = Query(None, max_length=100),
        campus_area: CampusArea | None = Query(None, alias="campusArea"),
        min_price: int | None = Query(None, ge=0, alias="minPrice"),
        max_price: int | None = Query(None, ge=0, alias="maxPrice"),
        bedrooms: int | None = Query(None, ge=1, le=5),
        bathrooms: int | None = Query(None, ge=1, le=4),
        status: ListingStatus | None = Query(None),
        agent_id: uuid.UUID | None = Query(None, alias="agentId"),
        verified_agents_only: bool = Query(False, alias="verifiedAgentsOnly"),
        sort_by: ListingSort = Query(ListingSort.NEWEST, alias="sortBy"),
        db: AsyncSession = Depends(get_db_async),
    ):
        filters = ListingFilters(
            search=search,
            campus_area=campus_area,
            min_price=min_price,
            max_price=max_price,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            status=status,
            agent_id=agent_id,
            verified_agents_only=verified_agents_only,
            sort_by=sort_by,
        )
        return success_response(
            await ListingService(db).list_listings(filters, page, limit)
        )

    @router.post("/listings", status_code=201, dependencies=[rate_limit])
    @safe_handler
    async def create_listing(
        self,
        request: Request,
        data: ListingCreate,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_agent),
    ):
        result = await ListingService(db).create_listing(context.user_id, data)
        return success_response(result, status_code=201)

    @router.get("/listings/{listing_id}", dependencies=[rate_limit])
    @safe_handler
    async def get_listing(
        self,
        request: Request,
        listing_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext | None = Depends(with_optional_auth),
    ):
        return success_response(await ListingService(db).get_listing(listing_id, context))

    @router.patch("/listings/{listing_id}", dependencies=[rate_limit])
    @safe_handler
    async def update_listing(
        self,
        request: Request,
        listing_id: uuid.UUID,
        data: ListingUpdate,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_agent),
    ):
        result = await ListingService(db).update_listing(listing_id, context.user_id, data)
        return success_response(result)

    @router.patch("/listings/{listing_id}/status", dependencies=[rate_limit])
    @safe_handler
    async def update_listing_status(
        self,
        request: Request,
        listing_id: uuid.UUID,
        data: ListingStatusUpdate,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_agent),
    ):
        result = await ListingService(db).update_status(
            listing_id, context.user_id, data.status
        )
        return success_response(result)

    @router.delete("/listings/{listing_id}", dependencies=[rate_limit])
    @safe_handler
    async def delete_listing(
        self,
        request: Request,
        listing_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_agent),
    ):
        result = await ListingService(db).delete_listing(listing_id, context.user_id)
        return success_response(result)

    @router.get("/listings/{listing_id}/reviews", dependencies=[rate_limit])
    @safe_handler
    async def list_reviews(
        self,
        request: Request,
        listing_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
    ):
        return success_response(await ReviewService(db).list_reviews(listing_id))

    @router.post("/listings/{listing_id}/reviews", status_code=201, dependencies=[rate_limit])
    @safe_handler
    async def create_review(
        self,
        request: Request,
        listing_id: uuid.UUID,
        data: ReviewCreate,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        result = await ReviewService(db).create_review(listing_id, context.user_id, data)
        return success_response(result, status_code=201)

    @router.patch("/listings/{listing_id}/reviews/{review_id}", dependencies=[rate_limit])
    @safe_handler
    async def update_review(
        self,
        request: Request,
        listing_id: uuid.UUID,
        review_id: uuid.UUID,
        data: ReviewUpdate,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        result = await ReviewService(db).update_review(
            listing_id, review_id, context.user_id, data
        )
        return success_response(result)

    @router.delete("/listings/{listing_id}/reviews/{review_id}", dependencies=[rate_limit])
    @safe_handler
    async def delete_review(
        self,
        request: Request,
        listing_id: uuid.UUID,
        review_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        result = await ReviewService(db).delete_review(
            listing_id, review_id, context.user_id
        )
        return success_response(result)
