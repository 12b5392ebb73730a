import uuid

from campus_stay.core.errors import ConflictError, PermissionDeniedError
from campus_stay.core.mapper import ORMMapper
from campus_stay.policy.ownership_policy import ModelPolicy, ensure_allowed, ensure_found
from campus_stay.repos.listing_repo import ListingRepo
from campus_stay.repos.review_repo import ReviewRepo
from campus_stay.repos.saved_repo import UserSetRepo
from campus_stay.schemas.schema import ReviewCreate, ReviewOut, ReviewUpdate


class ReviewService:
    def __init__(self, db):
        self.repo: ReviewRepo = ReviewRepo(db)
        self.listing_repo: ListingRepo = ListingRepo(db)
        self.sets: UserSetRepo = UserSetRepo(db)
        self.mapper: ORMMapper = ORMMapper()

    async def _recompute_rating(self, listing_id: uuid.UUID):
        average, count = await self.repo.rating_summary(listing_id)
        await self.listing_repo.set_rating(listing_id, average, count)
        await self.repo.commit()

    async def _authored(self, listing_id, review_id, user_id, action: str):
        review = await self.repo.get_active(review_id)
        if review is not None and review.listing_id != listing_id:
            review = None
        ensure_found(review, "Review not found")
        ensure_allowed(
            await ModelPolicy.wrote_review(review, user_id),
            f"You do not have permission to {action} this review",
        )
        return review

    async def list_reviews(self, listing_id: uuid.UUID) -> dict:
        ensure_found(await self.listing_repo.get_active(listing_id), "Listing not found")
        reviews = await self.repo.list_for_listing(listing_id)
        average, count = await self.repo.rating_summary(listing_id)
        return {
            "reviews": self.mapper.many(reviews, ReviewOut),
            "averageRating": average,
            "totalReviews": count,
        }

    async def create_review(
        self, listing_id: uuid.UUID, user_id: uuid.UUID, data: ReviewCreate
    ) -> dict:
        ensure_found(await self.listing_repo.get_active(listing_id), "Listing not found")
        if not await self.sets.has_unlocked(user_id, listing_id):
            raise PermissionDeniedError("You must unlock this listing before reviewing")
        if await self.repo.find_user_review(user_id, listing_id):
            raise ConflictError("You have already reviewed this listing")

        review = await self.repo.create(
            {
                "listing_id": listing_id,
                "user_id": user_id,
                "rating": data.rating,
                "comment": data.comment.strip(),
            }
        )
        await self._recompute_rating(listing_id)
        return {"review": self.mapper.one(review, ReviewOut)}

    async def update_review(
        self,
        listing_id: uuid.UUID,
        review_id: uuid.UUID,
        user_id: uuid.UUID,
        data: ReviewUpdate,
    ) -> dict:
        review = await self._authored(listing_id, review_id, user_id, "update")
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(review, field, value)
        await self.repo.save(review)
        await self._recompute_rating(listing_id)
        return {"review": self.mapper.one(review, ReviewOut)}

    async def delete_review(
        self, listing_id: uuid.UUID, review_id: uuid.UUID, user_id: uuid.UUID
    ) -> dict:
        review = await self._authored(listing_id, review_id, user_id, "delete")
        review.soft_delete()
        await self.repo.save(review)
        await self._recompute_rating(listing_id)
        return {"message": "Review deleted successfully"}
