import uuid

from campus_stay.core.errors import ConflictError, NotFoundError
from campus_stay.core.mapper import ORMMapper
from campus_stay.models.models import User
from campus_stay.policy.ownership_policy import ensure_found
from campus_stay.repos.listing_repo import ListingRepo
from campus_stay.repos.roommate_repo import RoommateRepo
from campus_stay.repos.saved_repo import UserSetRepo
from campus_stay.repos.user_repo import UserRepo
from campus_stay.schemas.schema import RoommateOut

from .listing_service import ListingService


class SavedService:
    """Saved listings and saved roommate listings of the current user.

    Membership is a row per (user, item) with a composite primary key, so
    concurrent saves of the same item cannot both succeed: the loser gets
    the same 409 as a plain repeat.
    """

    def __init__(self, db):
        self.sets: UserSetRepo = UserSetRepo(db)
        self.users: UserRepo = UserRepo(db)
        self.listing_repo: ListingRepo = ListingRepo(db)
        self.roommate_repo: RoommateRepo = RoommateRepo(db)
        self.listings: ListingService = ListingService(db)
        self.mapper: ORMMapper = ORMMapper()

    async def saved_listings(self, user_id: uuid.UUID) -> dict:
        listings = await self.sets.saved_listings(user_id)
        return {"listings": [self.listings.to_public(listing) for listing in listings]}

    async def save_listing(self, user: User, listing_id: uuid.UUID) -> dict:
        ensure_found(await self.listing_repo.get_active(listing_id), "Listing not found")
        if not await self.sets.add_saved_listing(user.id, listing_id):
            raise ConflictError("Listing is already saved")

        await self.users.refresh_sets(user)
        return {
            "message": "Listing saved successfully",
            "savedListingIds": user.saved_listing_ids,
        }

    async def unsave_listing(self, user: User, listing_id: uuid.UUID) -> dict:
        if not await self.sets.remove_saved_listing(user.id, listing_id):
            raise NotFoundError("Listing is not in your saved list")

        await self.users.refresh_sets(user)
        return {
            "message": "Listing removed from saved",
            "savedListingIds": user.saved_listing_ids,
        }

    async def saved_roommates(self, user_id: uuid.UUID) -> dict:
        roommates = await self.sets.saved_roommates(user_id)
        return {"listings": self.mapper.many(roommates, RoommateOut)}

    async def save_roommate(self, user: User, roommate_id: uuid.UUID) -> dict:
        ensure_found(
            await self.roommate_repo.get_active(roommate_id), "Roommate listing not found"
        )
        if not await self.sets.add_saved_roommate(user.id, roommate_id):
            raise ConflictError("Roommate listing is already saved")

        await self.users.refresh_sets(user)
        return {
            "message": "Roommate listing saved successfully",
            "savedRoommateIds": user.saved_roommate_ids,
        }

    async def unsave_roommate(self, user: User, roommate_id: uuid.UUID) -> dict:
        if not await self.sets.remove_saved_roommate(user.id, roommate_id):
            raise NotFoundError("Roommate listing is not in your saved list")

        await self.users.refresh_sets(user)
        return {
            "message": "Roommate listing removed from saved",
            "savedRoommateIds": user.saved_roommate_ids,
        }
