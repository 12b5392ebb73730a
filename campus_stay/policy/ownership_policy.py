import uuid

from campus_stay.core.check_permission import role_permission
from campus_stay.core.errors import NotFoundError, PermissionDeniedError
from campus_stay.models.enums import UserRole
from campus_stay.models.models import Listing, PaymentProof, Review, RoommateListing, User


class ModelPolicy:
    @staticmethod
    async def owns_listing(listing: Listing, user_id: uuid.UUID) -> bool:
        return listing.agent_id == user_id

    @staticmethod
    async def owns_roommate(roommate: RoommateListing, user_id: uuid.UUID) -> bool:
        return roommate.owner_id == user_id

    @staticmethod
    async def wrote_review(review: Review, user_id: uuid.UUID) -> bool:
        return review.user_id == user_id

    @staticmethod
    async def can_view_proof(proof: PaymentProof, user: User) -> bool:
        return proof.user_id == user.id or role_permission.grants(
            user.role, UserRole.ADMIN
        )


def ensure_found(record, message: str):
    """Return ``record`` or raise NotFoundError when it is missing."""
    if record is None:
        raise NotFoundError(message)
    return record


def ensure_allowed(allowed: bool, message: str):
    if not allowed:
        raise PermissionDeniedError(message)
