import logging
import uuid

from campus_stay.core.get_current_user import AuthContext
from campus_stay.core.mapper import ORMMapper
from campus_stay.core.paginate import PaginatePage
from campus_stay.models.enums import ListingStatus
from campus_stay.models.models import Listing
from campus_stay.policy.ownership_policy import ModelPolicy, ensure_allowed, ensure_found
from campus_stay.repos.listing_repo import ListingFilters, ListingRepo
from campus_stay.repos.saved_repo import UserSetRepo
from campus_stay.schemas.schema import (
    ListingCreate,
    ListingOut,
    ListingUpdate,
    UnlockedListingOut,
)

logger = logging.getLogger(__name__)


class ListingService:
    def __init__(self, db):
        self.repo: ListingRepo = ListingRepo(db)
        self.sets: UserSetRepo = UserSetRepo(db)
        self.paginate: PaginatePage = PaginatePage()
        self.mapper: ORMMapper = ORMMapper()

    def to_public(self, listing: Listing, schema=ListingOut, listings_count=None):
        out = self.mapper.one(listing, schema)
        agent = listing.agent
        if agent is None or agent.is_deleted:
            return out.model_copy(update={"agent": None})
        if listings_count is not None:
            out.agent.listings_count = listings_count
        return out

    async def _owned(self, listing_id: uuid.UUID, user_id: uuid.UUID, action: str):
        listing = ensure_found(await self.repo.get_active(listing_id), "Listing not found")
        ensure_allowed(
            await ModelPolicy.owns_listing(listing, user_id),
            f"You do not have permission to {action} this listing",
        )
        return listing

    async def list_listings(self, filters: ListingFilters, page: int, limit: int) -> dict:
        listings, total = await self.repo.search(
            filters, self.paginate.offset(page, limit), limit
        )
        return {
            "listings": [self.to_public(listing) for listing in listings],
            "pagination": self.paginate.meta(page, limit, total),
        }

    async def create_listing(self, agent_id: uuid.UUID, data: ListingCreate):
        columns = data.to_columns()
        listing = await self.repo.create({**columns, "agent_id": agent_id})
        logger.info(f"Listing {listing.id} created by agent {agent_id}")
        return {"listing": self.to_public(listing, UnlockedListingOut)}

    async def get_listing(self, listing_id: uuid.UUID, context: AuthContext | None):
        listing = ensure_found(await self.repo.get_active(listing_id), "Listing not found")
        await self.repo.increment_views(listing)

        listings_count = await self.repo.count_active_by_agent(listing.agent_id)
        is_unlocked = bool(
            context and await self.sets.has_unlocked(context.user_id, listing.id)
        )
        schema = UnlockedListingOut if is_unlocked else ListingOut
        return {
            "listing": self.to_public(listing, schema, listings_count),
            "isUnlocked": is_unlocked,
        }

    async def update_listing(
        self, listing_id: uuid.UUID, user_id: uuid.UUID, data: ListingUpdate
    ):
        listing = await self._owned(listing_id, user_id, "update")
        for field, value in data.to_columns().items():
            setattr(listing, field, value)
        await self.repo.save(listing)
        return {"listing": self.to_public(listing, UnlockedListingOut)}

    async def update_status(
        self, listing_id: uuid.UUID, user_id: uuid.UUID, status: ListingStatus
    ):
        listing = await self._owned(listing_id, user_id, "update")
        listing.status = status
        await self.repo.save(listing)
        return {"listing": self.to_public(listing, UnlockedListingOut)}

    async def delete_listing(self, listing_id: uuid.UUID, user_id: uuid.UUID):
        listing = await self._owned(listing_id, user_id, "delete")
        listing.soft_delete()
        await self.repo.save(listing)
        logger.info(f"Listing {listing.id} soft deleted by {user_id}")
        return {"message": "Listing deleted successfully"}
