import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, or_, select, update

from campus_stay.models.enums import CampusArea, ListingSort, ListingStatus
from campus_stay.models.models import Listing, User

from .base_repo import BaseRepo

LISTING_ORDER = {
    ListingSort.NEWEST: (Listing.created_at.desc(),),
    ListingSort.OLDEST: (Listing.created_at.asc(),),
    ListingSort.PRICE_LOW: (Listing.price_monthly.asc(), Listing.created_at.desc()),
    ListingSort.PRICE_HIGH: (Listing.price_monthly.desc(), Listing.created_at.desc()),
    ListingSort.RATING: (Listing.rating.desc(), Listing.created_at.desc()),
    ListingSort.VIEWS: (Listing.views.desc(), Listing.created_at.desc()),
}


@dataclass
class ListingFilters:
    search: str | None = None
    campus_area: CampusArea | None = None
    min_price: int | None = None
    max_price: int | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    status: ListingStatus | None = None
    agent_id: uuid.UUID | None = None
    verified_agents_only: bool = False
    sort_by: ListingSort = ListingSort.NEWEST


class ListingRepo(BaseRepo):
    async def get_active(self, listing_id: uuid.UUID) -> Optional[Listing]:
        result = await self.db.execute(
            select(Listing).where(Listing.id == listing_id, Listing.active())
        )
        return result.scalar_one_or_none()

    async def create(self, data: dict) -> Listing:
        listing = await self.save(Listing(**data))
        return await self.load(listing, "agent")

    def _apply_filters(self, stmt, filters: ListingFilters):
        stmt = stmt.where(Listing.active())
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            stmt = stmt.where(
                or_(
                    Listing.title.ilike(pattern),
                    Listing.description.ilike(pattern),
                    Listing.address_approx.ilike(pattern),
                )
            )
        if filters.campus_area is not None:
            stmt = stmt.where(Listing.campus_area == filters.campus_area)
        if filters.min_price is not None:
            stmt = stmt.where(Listing.price_monthly >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(Listing.price_monthly <= filters.max_price)
        if filters.bedrooms is not None:
            stmt = stmt.where(Listing.bedrooms == filters.bedrooms)
        if filters.bathrooms is not None:
            stmt = stmt.where(Listing.bathrooms == filters.bathrooms)
        if filters.status is not None:
            stmt = stmt.where(Listing.status == filters.status)
        if filters.agent_id is not None:
            stmt = stmt.where(Listing.agent_id == filters.agent_id)
        if filters.verified_agents_only:
            stmt = stmt.join(User, User.id == Listing.agent_id).where(
                User.is_verified.is_(True), User.active()
            )
        return stmt

    async def search(
        self, filters: ListingFilters, offset: int, limit: int
    ) -> tuple[list[Listing], int]:
        total = (
            await self.db.execute(
                self._apply_filters(select(func.count(Listing.id)), filters)
            )
        ).scalar_one()
        stmt = (
            self._apply_filters(select(Listing), filters)
            .order_by(*LISTING_ORDER[filters.sort_by])
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def increment_views(self, listing: Listing) -> Listing:
        await self.db.execute(
            update(Listing)
            .where(Listing.id == listing.id)
            .values(views=Listing.views + 1)
            .execution_options(synchronize_session=False)
        )
        await self.commit()
        await self.db.refresh(listing, attribute_names=["views"])
        return listing

    async def count_active_by_agent(self, agent_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count(Listing.id)).where(
                Listing.agent_id == agent_id, Listing.active()
            )
        )
        return result.scalar_one()

    async def list_by_agent(
        self,
        agent_id: uuid.UUID,
        offset: int,
        limit: int,
        status: ListingStatus | None = None,
    ) -> tuple[list[Listing], int]:
        criteria = [Listing.agent_id == agent_id, Listing.active()]
        if status is not None:
            criteria.append(Listing.status == status)

        total = (
            await self.db.execute(select(func.count(Listing.id)).where(*criteria))
        ).scalar_one()
        result = await self.db.execute(
            select(Listing)
            .where(*criteria)
            .order_by(Listing.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def agent_totals(self, agent_id: uuid.UUID) -> dict:
        result = await self.db.execute(
            select(
                func.count(Listing.id),
                func.coalesce(func.sum(Listing.views), 0),
            ).where(Listing.agent_id == agent_id, Listing.active())
        )
        total, views = result.one()
        available = (
            await self.db.execute(
                select(func.count(Listing.id)).where(
                    Listing.agent_id == agent_id,
                    Listing.active(),
                    Listing.status == ListingStatus.AVAILABLE,
                )
            )
        ).scalar_one()
        return {"total": total, "available": available, "views": int(views)}

    async def count_active(self, status: ListingStatus | None = None) -> int:
        stmt = select(func.count(Listing.id)).where(Listing.active())
        if status is not None:
            stmt = stmt.where(Listing.status == status)
        return (await self.db.execute(stmt)).scalar_one()

    async def recent(self, limit: int) -> list[Listing]:
        result = await self.db.execute(
            select(Listing)
            .where(Listing.active())
            .order_by(Listing.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def set_rating(self, listing_id: uuid.UUID, rating: float, count: int):
        await self.db.execute(
            update(Listing)
            .where(Listing.id == listing_id)
            .values(rating=rating, reviews_count=count)
            .execution_options(synchronize_session=False)
        )
