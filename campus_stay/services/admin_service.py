import logging
import uuid

from campus_stay.core.errors import PermissionDeniedError
from campus_stay.core.mapper import ORMMapper
from campus_stay.core.paginate import PaginatePage
from campus_stay.core.settings import settings
from campus_stay.models.enums import (
    ListingStatus,
    NotificationKind,
    PaymentProofStatus,
    UserRole,
)
from campus_stay.notifications.outbox import NotificationOutbox
from campus_stay.policy.ownership_policy import ensure_found
from campus_stay.repos.listing_repo import ListingRepo
from campus_stay.repos.payment_proof_repo import PaymentProofRepo
from campus_stay.repos.roommate_repo import RoommateRepo
from campus_stay.repos.user_repo import UserRepo
from campus_stay.schemas.schema import (
    AdminUserOut,
    AdminUserUpdate,
    RecentListingOut,
    RecentProofOut,
    RecentUserOut,
)

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db, outbox: NotificationOutbox | None = None):
        self.users: UserRepo = UserRepo(db)
        self.listings: ListingRepo = ListingRepo(db)
        self.roommates: RoommateRepo = RoommateRepo(db)
        self.proofs: PaymentProofRepo = PaymentProofRepo(db)
        self.outbox = outbox
        self.paginate: PaginatePage = PaginatePage()
        self.mapper: ORMMapper = ORMMapper()

    async def platform_stats(self) -> dict:
        by_role = await self.users.count_by_role()
        by_status = await self.proofs.count_by_status()
        approved = by_status.get(PaymentProofStatus.APPROVED, 0)

        return {
            "totalUsers": await self.users.count_active(),
            "usersByRole": {role.value: by_role.get(role, 0) for role in UserRole},
            "totalListings": await self.listings.count_active(),
            "activeListings": await self.listings.count_active(ListingStatus.AVAILABLE),
            "totalRoommates": await self.roommates.count_active(),
            "pendingPayments": by_status.get(PaymentProofStatus.PENDING, 0),
            "approvedPayments": approved,
            "rejectedPayments": by_status.get(PaymentProofStatus.REJECTED, 0),
            "totalRevenue": approved * settings.UNLOCK_FEE,
        }

    async def list_users(
        self,
        page: int,
        limit: int,
        role: UserRole | None = None,
        search: str | None = None,
        verified: bool | None = None,
    ) -> dict:
        users, total = await self.users.list_users(
            self.paginate.offset(page, limit), limit, role, search, verified
        )
        return {
            "users": self.mapper.many(users, AdminUserOut),
            "pagination": self.paginate.meta(page, limit, total),
        }

    async def get_user(self, user_id: uuid.UUID) -> dict:
        user = ensure_found(await self.users.get_active_by_id(user_id), "User not found")
        return {"user": self.mapper.one(user, AdminUserOut)}

    async def update_user(self, user_id: uuid.UUID, data: AdminUserUpdate) -> dict:
        user = ensure_found(await self.users.get_active_by_id(user_id), "User not found")

        # only an agent that was unverified before this change gets the email
        newly_verified_agent = (
            data.is_verified is True
            and not user.is_verified
            and user.role == UserRole.AGENT
        )

        if data.is_verified is not None:
            user.is_verified = data.is_verified
        if data.role is not None:
            user.role = data.role

        await self.users.save(user)
        logger.info(f"Admin updated user {user.id}")

        if newly_verified_agent:
            self.outbox.stage(NotificationKind.AGENT_VERIFIED, user.email, name=user.name)
            await self.outbox.flush()

        return {"user": self.mapper.one(user, AdminUserOut)}

    async def delete_user(self, user_id: uuid.UUID, admin_id: uuid.UUID) -> dict:
        if user_id == admin_id:
            raise PermissionDeniedError("Cannot delete your own account")

        user = ensure_found(await self.users.get_active_by_id(user_id), "User not found")
        if user.role == UserRole.ADMIN:
            raise PermissionDeniedError("Cannot delete admin accounts")

        user.soft_delete()
        await self.users.save(user)
        logger.info(f"Admin {admin_id} soft deleted user {user.id}")
        return {"message": "User deleted successfully"}

    async def recent_activity(self, limit: int) -> dict:
        users = await self.users.recent(limit)
        listings = await self.listings.recent(limit)
        proofs = await self.proofs.recent(limit)

        return {
            "recentUsers": self.mapper.many(users, RecentUserOut),
            "recentListings": [
                RecentListingOut(
                    id=listing.id,
                    title=listing.title,
                    campus_area=listing.campus_area,
                    status=listing.status,
                    agent_name=listing.agent.name if listing.agent else None,
                    created_at=listing.created_at,
                )
                for listing in listings
            ],
            "recentProofs": [
                RecentProofOut(
                    id=proof.id,
                    status=proof.status,
                    amount=proof.amount,
                    user_name=proof.user.name if proof.user else None,
                    listing_title=proof.listing.title if proof.listing else None,
                    created_at=proof.created_at,
                )
                for proof in proofs
            ],
        }
