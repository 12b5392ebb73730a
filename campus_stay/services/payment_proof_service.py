import logging
import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from campus_stay.core.errors import ConflictError
from campus_stay.core.mapper import ORMMapper
from campus_stay.core.paginate import PaginatePage
from campus_stay.core.settings import settings
from campus_stay.models.enums import NotificationKind, PaymentProofStatus
from campus_stay.models.models import PaymentProof, User
from campus_stay.notifications.outbox import NotificationOutbox
from campus_stay.policy.ownership_policy import ModelPolicy, ensure_allowed, ensure_found
from campus_stay.repos.listing_repo import ListingRepo
from campus_stay.repos.payment_proof_repo import PaymentProofRepo
from campus_stay.repos.saved_repo import UserSetRepo
from campus_stay.repos.user_repo import UserRepo
from campus_stay.schemas.schema import (
    PaymentProofCreate,
    PaymentProofDetailOut,
    PaymentProofReview,
)

logger = logging.getLogger(__name__)


class PaymentProofService:
    def __init__(self, db, outbox: NotificationOutbox | None = None):
        self.repo: PaymentProofRepo = PaymentProofRepo(db)
        self.listing_repo: ListingRepo = ListingRepo(db)
        self.users: UserRepo = UserRepo(db)
        self.sets: UserSetRepo = UserSetRepo(db)
        self.outbox = outbox
        self.paginate: PaginatePage = PaginatePage()
        self.mapper: ORMMapper = ORMMapper()

    def _page(self, proofs, page: int, limit: int, total: int) -> dict:
        return {
            "proofs": self.mapper.many(proofs, PaymentProofDetailOut),
            "pagination": self.paginate.meta(page, limit, total),
        }

    async def submit_proof(self, user: User, data: PaymentProofCreate) -> dict:
        listing = ensure_found(
            await self.listing_repo.get_active(data.listing_id), "Listing not found"
        )
        if await self.sets.has_unlocked(user.id, listing.id):
            raise ConflictError("You have already unlocked this listing")
        if await self.repo.has_pending(user.id, listing.id):
            raise ConflictError(
                "You already have a pending payment proof for this listing"
            )

        try:
            proof = await self.repo.create(
                {
                    "user_id": user.id,
                    "listing_id": listing.id,
                    "amount": settings.UNLOCK_FEE,
                    "method": data.method,
                    "reference": data.reference,
                    "image_url": str(data.image_url),
                    "status": PaymentProofStatus.PENDING,
                }
            )
        except IntegrityError:
            # another submission for the same listing is already waiting for review
            raise ConflictError(
                "You already have a pending payment proof for this listing"
            )
        logger.info(f"Payment proof {proof.id} submitted by {user.id} for {listing.id}")

        admin_emails = await self.users.active_admin_emails()
        if admin_emails:
            self.outbox.stage(
                NotificationKind.PAYMENT_SUBMITTED,
                admin_emails,
                user_name=user.name,
                user_email=user.email,
                listing_title=listing.title,
                amount=proof.amount,
                reference=proof.reference,
            )
        else:
            logger.warning("No admin emails found to send payment proof notification")
        await self.outbox.flush()

        return {"proof": self.mapper.one(proof, PaymentProofDetailOut)}

    async def my_proofs(
        self,
        user_id: uuid.UUID,
        page: int,
        limit: int,
        status: PaymentProofStatus | None = None,
    ) -> dict:
        proofs, total = await self.repo.list_for_user(
            user_id, self.paginate.offset(page, limit), limit, status
        )
        return self._page(proofs, page, limit, total)

    async def pending_proofs(self, page: int, limit: int) -> dict:
        proofs, total = await self.repo.list_pending(
            self.paginate.offset(page, limit), limit
        )
        return self._page(proofs, page, limit, total)

    async def get_proof(self, proof_id: uuid.UUID, user: User) -> dict:
        proof = ensure_found(await self.repo.get_by_id(proof_id), "Payment proof not found")
        ensure_allowed(
            await ModelPolicy.can_view_proof(proof, user),
            "You do not have permission to view this proof",
        )
        return {"proof": self.mapper.one(proof, PaymentProofDetailOut)}

    async def review_proof(
        self, proof_id: uuid.UUID, admin_id: uuid.UUID, data: PaymentProofReview
    ) -> dict:
        proof = ensure_found(await self.repo.get_by_id(proof_id), "Payment proof not found")
        values = PaymentProof.review_values(
            data.status, admin_id, data.rejection_reason
        )

        try:
            resolved = await self.repo.resolve_pending(proof.id, values)
            if resolved and data.status == PaymentProofStatus.APPROVED:
                await self.sets.stage_unlock(proof.user_id, proof.listing_id)
        except SQLAlchemyError:
            await self.repo.rollback()
            raise

        if not resolved:
            await self.repo.rollback()
            raise ConflictError("This payment proof has already been reviewed")

        # the status change and the unlock row commit together
        await self.repo.commit()
        proof = await self.repo.reload(proof)
        logger.info(f"Payment proof {proof.id} {proof.status.value} by admin {admin_id}")

        user, listing = proof.user, proof.listing
        if data.status == PaymentProofStatus.APPROVED:
            self.outbox.stage(
                NotificationKind.PAYMENT_APPROVED,
                user.email,
                name=user.name,
                listing_title=listing.title,
                listing_id=str(listing.id),
            )
        else:
            self.outbox.stage(
                NotificationKind.PAYMENT_REJECTED,
                user.email,
                name=user.name,
                listing_title=listing.title,
                listing_id=str(listing.id),
                reason=proof.rejection_reason,
            )
        await self.outbox.flush()

        return {"proof": self.mapper.one(proof, PaymentProofDetailOut)}

    async def proofs_for_listing(
        self, listing_id: uuid.UUID, agent_id: uuid.UUID, page: int, limit: int
    ) -> dict:
        listing = ensure_found(
            await self.listing_repo.get_active(listing_id), "Listing not found"
        )
        ensure_allowed(
            await ModelPolicy.owns_listing(listing, agent_id),
            "You do not have permission to view proofs for this listing",
        )
        proofs, total = await self.repo.list_approved_for_listing(
            listing_id, self.paginate.offset(page, limit), limit
        )
        return self._page(proofs, page, limit, total)
