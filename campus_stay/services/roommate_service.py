import logging
import uuid

from campus_stay.core.check_permission import role_permission
from campus_stay.core.mapper import ORMMapper
from campus_stay.core.paginate import PaginatePage
from campus_stay.models.enums import RoommateOwnerType, UserRole
from campus_stay.models.models import User
from campus_stay.policy.ownership_policy import ModelPolicy, ensure_allowed, ensure_found
from campus_stay.repos.roommate_repo import RoommateFilters, RoommateRepo
from campus_stay.schemas.schema import RoommateCreate, RoommateOut, RoommateUpdate

logger = logging.getLogger(__name__)

ROOMMATE_CREATORS = (UserRole.STUDENT, UserRole.OWNER)


class RoommateService:
    def __init__(self, db):
        self.repo: RoommateRepo = RoommateRepo(db)
        self.paginate: PaginatePage = PaginatePage()
        self.mapper: ORMMapper = ORMMapper()

    async def _owned(self, roommate_id: uuid.UUID, user_id: uuid.UUID, action: str):
        roommate = ensure_found(
            await self.repo.get_active(roommate_id), "Roommate listing not found"
        )
        ensure_allowed(
            await ModelPolicy.owns_roommate(roommate, user_id),
            f"You do not have permission to {action} this listing",
        )
        return roommate

    async def list_roommates(self, filters: RoommateFilters, page: int, limit: int):
        roommates, total = await self.repo.search(
            filters, self.paginate.offset(page, limit), limit
        )
        return {
            "listings": self.mapper.many(roommates, RoommateOut),
            "pagination": self.paginate.meta(page, limit, total),
        }

    async def create_roommate(self, user: User, data: RoommateCreate):
        role_permission.ensure_exact(
            user.role,
            ROOMMATE_CREATORS,
            "Only students and property owners can create roommate listings",
        )
        roommate = await self.repo.create(
            {
                **data.to_columns(),
                "owner_id": user.id,
                "owner_type": RoommateOwnerType(user.role.value),
            }
        )
        logger.info(f"Roommate listing {roommate.id} created by {user.id}")
        return {"listing": self.mapper.one(roommate, RoommateOut)}

    async def get_roommate(self, roommate_id: uuid.UUID):
        roommate = ensure_found(
            await self.repo.get_active(roommate_id), "Roommate listing not found"
        )
        return {"listing": self.mapper.one(roommate, RoommateOut)}

    async def my_roommates(self, user_id: uuid.UUID):
        roommates = await self.repo.list_by_owner(user_id)
        return {"listings": self.mapper.many(roommates, RoommateOut)}

    async def update_roommate(
        self, roommate_id: uuid.UUID, user_id: uuid.UUID, data: RoommateUpdate
    ):
        roommate = await self._owned(roommate_id, user_id, "update")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        changes.pop("preferences", None)
        if "photos" in changes:
            changes["photos"] = [str(photo) for photo in data.photos]
        for field, value in changes.items():
            setattr(roommate, field, value)
        if data.preferences is not None:
            # only the preference keys sent are replaced, the rest are kept
            sent = data.preferences.model_dump(exclude_unset=True)
            roommate.merge_preferences(sent)

        await self.repo.save(roommate)
        return {"listing": self.mapper.one(roommate, RoommateOut)}

    async def delete_roommate(self, roommate_id: uuid.UUID, user_id: uuid.UUID):
        roommate = await self._owned(roommate_id, user_id, "delete")
        roommate.soft_delete()
        await self.repo.save(roommate)
        return {"message": "Roommate listing deleted successfully"}
