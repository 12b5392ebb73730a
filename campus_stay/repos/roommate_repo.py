import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, or_, select

from campus_stay.models.enums import (
    Cleanliness,
    GenderPreference,
    PetsPreference,
    RoommateSort,
    SmokingPreference,
    StudyHours,
)
from campus_stay.models.models import RoommateListing

from .base_repo import BaseRepo

ROOMMATE_ORDER = {
    RoommateSort.NEWEST: (RoommateListing.created_at.desc(),),
    RoommateSort.OLDEST: (RoommateListing.created_at.asc(),),
    RoommateSort.BUDGET_LOW: (
        RoommateListing.budget_monthly.asc(),
        RoommateListing.created_at.desc(),
    ),
    RoommateSort.BUDGET_HIGH: (
        RoommateListing.budget_monthly.desc(),
        RoommateListing.created_at.desc(),
    ),
}


@dataclass
class RoommateFilters:
    search: str | None = None
    min_budget: int | None = None
    max_budget: int | None = None
    gender: GenderPreference | None = None
    cleanliness: Cleanliness | None = None
    study_hours: StudyHours | None = None
    smoking: SmokingPreference | None = None
    pets: PetsPreference | None = None
    owner_id: uuid.UUID | None = None
    sort_by: RoommateSort = RoommateSort.NEWEST


class RoommateRepo(BaseRepo):
    async def get_active(self, roommate_id: uuid.UUID) -> Optional[RoommateListing]:
        result = await self.db.execute(
            select(RoommateListing).where(
                RoommateListing.id == roommate_id, RoommateListing.active()
            )
        )
        return result.scalar_one_or_none()

    async def create(self, data: dict) -> RoommateListing:
        roommate = await self.save(RoommateListing(**data))
        return await self.load(roommate, "owner")

    def _apply_filters(self, stmt, filters: RoommateFilters):
        stmt = stmt.where(RoommateListing.active())
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            stmt = stmt.where(
                or_(
                    RoommateListing.title.ilike(pattern),
                    RoommateListing.description.ilike(pattern),
                )
            )
        if filters.min_budget is not None:
            stmt = stmt.where(RoommateListing.budget_monthly >= filters.min_budget)
        if filters.max_budget is not None:
            stmt = stmt.where(RoommateListing.budget_monthly <= filters.max_budget)
        for field in RoommateListing.PREFERENCE_FIELDS:
            value = getattr(filters, field)
            if value is not None:
                stmt = stmt.where(getattr(RoommateListing, field) == value)
        if filters.owner_id is not None:
            stmt = stmt.where(RoommateListing.owner_id == filters.owner_id)
        return stmt

    async def search(
        self, filters: RoommateFilters, offset: int, limit: int
    ) -> tuple[list[RoommateListing], int]:
        total = (
            await self.db.execute(
                self._apply_filters(select(func.count(RoommateListing.id)), filters)
            )
        ).scalar_one()
        result = await self.db.execute(
            self._apply_filters(select(RoommateListing), filters)
            .order_by(*ROOMMATE_ORDER[filters.sort_by])
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_by_owner(self, owner_id: uuid.UUID) -> list[RoommateListing]:
        result = await self.db.execute(
            select(RoommateListing)
            .where(RoommateListing.owner_id == owner_id, RoommateListing.active())
            .order_by(RoommateListing.created_at.desc())
        )
        return list(result.scalars().all())

    async def count_active(self) -> int:
        result = await self.db.execute(
            select(func.count(RoommateListing.id)).where(RoommateListing.active())
        )
        return result.scalar_one()
