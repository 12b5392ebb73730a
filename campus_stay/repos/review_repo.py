import uuid
from typing import Optional

from sqlalchemy import func, select

from campus_stay.models.models import Review

from .base_repo import BaseRepo


class ReviewRepo(BaseRepo):
    async def get_active(self, review_id: uuid.UUID) -> Optional[Review]:
        result = await self.db.execute(
            select(Review).where(Review.id == review_id, Review.active())
        )
        return result.scalar_one_or_none()

    async def create(self, data: dict) -> Review:
        review = await self.save(Review(**data))
        return await self.load(review, "user")

    async def find_user_review(
        self, user_id: uuid.UUID, listing_id: uuid.UUID
    ) -> Optional[Review]:
        result = await self.db.execute(
            select(Review).where(
                Review.user_id == user_id,
                Review.listing_id == listing_id,
                Review.active(),
            )
        )
        return result.scalars().first()

    async def list_for_listing(self, listing_id: uuid.UUID) -> list[Review]:
        result = await self.db.execute(
            select(Review)
            .where(Review.listing_id == listing_id, Review.active())
            .order_by(Review.created_at.desc())
        )
        return list(result.scalars().all())

    async def rating_summary(self, listing_id: uuid.UUID) -> tuple[float, int]:
        result = await self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.listing_id == listing_id, Review.active()
            )
        )
        average, count = result.one()
        return round(float(average or 0), 1), count
