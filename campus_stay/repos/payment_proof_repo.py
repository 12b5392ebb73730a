import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import exists, func, select, update

from campus_stay.models.enums import PaymentProofStatus
from campus_stay.models.models import Listing, PaymentProof

from .base_repo import BaseRepo


class PaymentProofRepo(BaseRepo):
    async def get_by_id(self, proof_id: uuid.UUID) -> Optional[PaymentProof]:
        result = await self.db.execute(
            select(PaymentProof).where(PaymentProof.id == proof_id)
        )
        return result.scalar_one_or_none()

    async def create(self, data: dict) -> PaymentProof:
        proof = await self.save(PaymentProof(**data))
        return await self.load(proof, "user", "listing")

    async def has_pending(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(
                exists().where(
                    PaymentProof.user_id == user_id,
                    PaymentProof.listing_id == listing_id,
                    PaymentProof.status == PaymentProofStatus.PENDING,
                )
            )
        )
        return bool(result.scalar())

    async def resolve_pending(self, proof_id: uuid.UUID, values: dict) -> bool:
        """Move a pending proof to its reviewed state inside the open transaction.

        The status guard lives in the UPDATE itself, so of two concurrent
        reviews only one matches the row; the other sees no rows affected.
        """
        result = await self.db.execute(
            update(PaymentProof)
            .where(
                PaymentProof.id == proof_id,
                PaymentProof.status == PaymentProofStatus.PENDING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _page(self, criteria: list, offset: int, limit: int, newest_first=True):
        total = (
            await self.db.execute(select(func.count(PaymentProof.id)).where(*criteria))
        ).scalar_one()
        order = PaymentProof.created_at.desc() if newest_first else PaymentProof.created_at.asc()
        result = await self.db.execute(
            select(PaymentProof).where(*criteria).order_by(order).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        offset: int,
        limit: int,
        status: PaymentProofStatus | None = None,
    ) -> tuple[list[PaymentProof], int]:
        criteria = [PaymentProof.user_id == user_id]
        if status is not None:
            criteria.append(PaymentProof.status == status)
        return await self._page(criteria, offset, limit)

    async def list_pending(self, offset: int, limit: int) -> tuple[list[PaymentProof], int]:
        # oldest first so reviewers work through the queue in order
        return await self._page(
            [PaymentProof.status == PaymentProofStatus.PENDING],
            offset,
            limit,
            newest_first=False,
        )

    async def list_approved_for_listing(
        self, listing_id: uuid.UUID, offset: int, limit: int
    ) -> tuple[list[PaymentProof], int]:
        criteria = (
            PaymentProof.listing_id == listing_id,
            PaymentProof.status == PaymentProofStatus.APPROVED,
        )
        total = (
            await self.db.execute(select(func.count(PaymentProof.id)).where(*criteria))
        ).scalar_one()
        result = await self.db.execute(
            select(PaymentProof)
            .where(*criteria)
            .order_by(PaymentProof.reviewed_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def count_by_status(self) -> dict[PaymentProofStatus, int]:
        result = await self.db.execute(
            select(PaymentProof.status, func.count(PaymentProof.id)).group_by(
                PaymentProof.status
            )
        )
        return {status: count for status, count in result.all()}

    def _approved_for_agent(self, agent_id: uuid.UUID):
        return (
            PaymentProof.status == PaymentProofStatus.APPROVED,
            Listing.agent_id == agent_id,
            Listing.active(),
        )

    async def count_approved_for_agent(self, agent_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count(PaymentProof.id))
            .join(Listing, Listing.id == PaymentProof.listing_id)
            .where(*self._approved_for_agent(agent_id))
        )
        return result.scalar_one()

    async def approved_times_for_agent(
        self, agent_id: uuid.UUID, since: datetime
    ) -> list[datetime]:
        result = await self.db.execute(
            select(PaymentProof.reviewed_at)
            .join(Listing, Listing.id == PaymentProof.listing_id)
            .where(*self._approved_for_agent(agent_id), PaymentProof.reviewed_at >= since)
        )
        return [value for value in result.scalars().all() if value is not None]

    async def approved_counts_by_listing(
        self, listing_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, int]:
        if not listing_ids:
            return {}
        result = await self.db.execute(
            select(PaymentProof.listing_id, func.count(PaymentProof.id))
            .where(
                PaymentProof.listing_id.in_(listing_ids),
                PaymentProof.status == PaymentProofStatus.APPROVED,
            )
            .group_by(PaymentProof.listing_id)
        )
        return {listing_id: count for listing_id, count in result.all()}

    async def recent(self, limit: int) -> list[PaymentProof]:
        result = await self.db.execute(
            select(PaymentProof).order_by(PaymentProof.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())
