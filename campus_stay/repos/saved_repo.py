import uuid

from sqlalchemy import delete, exists, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from campus_stay.models.models import (
    Listing,
    RoommateListing,
    SavedListing,
    SavedRoommate,
    UnlockedListing,
)

from .base_repo import BaseRepo

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class UserSetRepo(BaseRepo):
    """Membership rows behind a user's saved and unlocked sets.

    Every set is a table keyed on (user, item), so a duplicate add cannot
    slip in between a read and a write; the database rejects it.
    """

    async def _add(self, model, values: dict) -> bool:
        try:
            await self.db.execute(insert(model).values(**values))
            await self.db.commit()
            return True
        except IntegrityError:
            await self.db.rollback()
            return False
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def _remove(self, model, *criteria) -> bool:
        try:
            result = await self.db.execute(delete(model).where(*criteria))
            await self.db.commit()
            return result.rowcount > 0
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def add_saved_listing(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> bool:
        return await self._add(SavedListing, {"user_id": user_id, "listing_id": listing_id})

    async def remove_saved_listing(
        self, user_id: uuid.UUID, listing_id: uuid.UUID
    ) -> bool:
        return await self._remove(
            SavedListing,
            SavedListing.user_id == user_id,
            SavedListing.listing_id == listing_id,
        )

    async def add_saved_roommate(
        self, user_id: uuid.UUID, roommate_id: uuid.UUID
    ) -> bool:
        return await self._add(
            SavedRoommate, {"user_id": user_id, "roommate_id": roommate_id}
        )

    async def remove_saved_roommate(
        self, user_id: uuid.UUID, roommate_id: uuid.UUID
    ) -> bool:
        return await self._remove(
            SavedRoommate,
            SavedRoommate.user_id == user_id,
            SavedRoommate.roommate_id == roommate_id,
        )

    async def saved_listings(self, user_id: uuid.UUID) -> list[Listing]:
        result = await self.db.execute(
            select(Listing)
            .join(SavedListing, SavedListing.listing_id == Listing.id)
            .where(SavedListing.user_id == user_id, Listing.active())
            .order_by(SavedListing.created_at.desc())
        )
        return list(result.scalars().all())

    async def saved_roommates(self, user_id: uuid.UUID) -> list[RoommateListing]:
        result = await self.db.execute(
            select(RoommateListing)
            .join(SavedRoommate, SavedRoommate.roommate_id == RoommateListing.id)
            .where(SavedRoommate.user_id == user_id, RoommateListing.active())
            .order_by(SavedRoommate.created_at.desc())
        )
        return list(result.scalars().all())

    async def stage_unlock(self, user_id: uuid.UUID, listing_id: uuid.UUID):
        """Add an unlock inside the caller's transaction; repeats are no-ops."""
        values = {"user_id": user_id, "listing_id": listing_id}
        upsert = _UPSERT_DIALECTS.get(self.db.bind.dialect.name)
        if upsert is not None:
            await self.db.execute(upsert(UnlockedListing).values(**values).on_conflict_do_nothing())
            return

        already = await self.db.execute(
            select(
                exists().where(
                    UnlockedListing.user_id == user_id,
                    UnlockedListing.listing_id == listing_id,
                )
            )
        )
        if not already.scalar():
            await self.db.execute(insert(UnlockedListing).values(**values))

    async def has_unlocked(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(
                exists().where(
                    UnlockedListing.user_id == user_id,
                    UnlockedListing.listing_id == listing_id,
                )
            )
        )
        return bool(result.scalar())
