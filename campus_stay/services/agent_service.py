import uuid
from collections import Counter
from datetime import date, datetime, time, timezone

from campus_stay.core.mapper import ORMMapper
from campus_stay.core.paginate import PaginatePage
from campus_stay.core.settings import settings
from campus_stay.models.enums import ListingStatus
from campus_stay.models.utils import as_utc, month_label, month_starts
from campus_stay.repos.listing_repo import ListingRepo
from campus_stay.repos.payment_proof_repo import PaymentProofRepo
from campus_stay.schemas.schema import AgentListingOut


class AgentService:
    def __init__(self, db):
        self.listings: ListingRepo = ListingRepo(db)
        self.proofs: PaymentProofRepo = PaymentProofRepo(db)
        self.paginate: PaginatePage = PaginatePage()
        self.mapper: ORMMapper = ORMMapper()

    async def stats(self, agent_id: uuid.UUID) -> dict:
        totals = await self.listings.agent_totals(agent_id)
        unlocks = await self.proofs.count_approved_for_agent(agent_id)
        return {
            "totalListings": totals["total"],
            "activeListings": totals["available"],
            "totalViews": totals["views"],
            "totalUnlocks": unlocks,
            "totalEarnings": unlocks * settings.UNLOCK_FEE,
        }

    async def earnings(
        self, agent_id: uuid.UUID, months: int, today: date | None = None
    ) -> dict:
        """Approved unlocks per calendar month, oldest first, zero filled.

        A proof counts in the month it was approved (``reviewed_at``).
        """
        buckets = month_starts(months, today)
        since = datetime.combine(buckets[0], time.min, tzinfo=timezone.utc)

        reviewed = await self.proofs.approved_times_for_agent(agent_id, since)
        per_month = Counter(as_utc(value).date().replace(day=1) for value in reviewed)

        rows = [
            {
                "month": month_label(start),
                "unlocks": per_month.get(start, 0),
                "amount": per_month.get(start, 0) * settings.UNLOCK_FEE,
            }
            for start in buckets
        ]
        return {"earnings": rows, "total": sum(row["amount"] for row in rows)}

    async def listings_with_stats(
        self,
        agent_id: uuid.UUID,
        page: int,
        limit: int,
        status: ListingStatus | None = None,
    ) -> dict:
        listings, total = await self.listings.list_by_agent(
            agent_id, self.paginate.offset(page, limit), limit, status
        )
        unlocks = await self.proofs.approved_counts_by_listing(
            [listing.id for listing in listings]
        )

        items = []
        for listing in listings:
            out = self.mapper.one(listing, AgentListingOut)
            out.unlock_count = unlocks.get(listing.id, 0)
            out.earnings = out.unlock_count * settings.UNLOCK_FEE
            items.append(out)

        return {
            "listings": items,
            "pagination": self.paginate.meta(page, limit, total),
        }
