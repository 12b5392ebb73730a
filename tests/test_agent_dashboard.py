from datetime import date, datetime, timezone

from conftest import create_user

from campus_stay.models.enums import (
    CampusArea,
    PaymentMethod,
    PaymentProofStatus,
    UserRole,
)
from campus_stay.models.models import Listing, PaymentProof
from campus_stay.models.utils import month_starts
from campus_stay.services.agent_service import AgentService


def make_listing(agent_id, title="Room near campus"):
    return Listing(
        agent_id=agent_id,
        title=title,
        description="A quiet room a short walk from the main gate.",
        campus_area=CampusArea.EFFURUN,
        address_approx="Off Airport Road",
        address_full="4 Airport Road, Effurun",
        price_monthly=40000,
        bedrooms=1,
        bathrooms=1,
        distance_to_campus_km=1.5,
        amenities=["water"],
        photos=["https://img.example.com/a.jpg"],
        cover_photo="https://img.example.com/a.jpg",
        map_preview="https://maps.example.com/p.png",
        map_full="https://maps.example.com/f.png",
    )


def make_proof(user_id, listing_id, status, reviewed_at=None):
    return PaymentProof(
        user_id=user_id,
        listing_id=listing_id,
        amount=1000,
        method=PaymentMethod.USSD,
        reference="USSD-778812",
        image_url="https://img.example.com/r.png",
        status=status,
        reviewed_at=reviewed_at,
    )


def test_month_starts_cross_year_boundary():
    assert month_starts(3, date(2024, 2, 17)) == [
        date(2023, 12, 1),
        date(2024, 1, 1),
        date(2024, 2, 1),
    ]


async def test_earnings_bucket_by_approval_month(database, db_session):
    agent = await create_user(database, "agent@example.com", role=UserRole.AGENT)
    student = await create_user(database, "student@example.com")
    listing = make_listing(agent.id)
    db_session.add(listing)
    await db_session.flush()

    def at(year, month, day):
        return datetime(year, month, day, 12, tzinfo=timezone.utc)

    db_session.add_all(
        [
            make_proof(student.id, listing.id, PaymentProofStatus.APPROVED, at(2024, 1, 5)),
            make_proof(student.id, listing.id, PaymentProofStatus.APPROVED, at(2024, 3, 2)),
            make_proof(student.id, listing.id, PaymentProofStatus.APPROVED, at(2024, 3, 28)),
            make_proof(student.id, listing.id, PaymentProofStatus.REJECTED, at(2024, 3, 10)),
            make_proof(student.id, listing.id, PaymentProofStatus.PENDING),
            # outside the window
            make_proof(student.id, listing.id, PaymentProofStatus.APPROVED, at(2023, 9, 30)),
        ]
    )
    await db_session.commit()

    result = await AgentService(db_session).earnings(agent.id, 3, today=date(2024, 3, 31))

    assert result["earnings"] == [
        {"month": "Jan 2024", "unlocks": 1, "amount": 1000},
        {"month": "Feb 2024", "unlocks": 0, "amount": 0},
        {"month": "Mar 2024", "unlocks": 2, "amount": 2000},
    ]
    assert result["total"] == 3000


async def test_dashboard_routes(sign_in, create_listing, unlock):
    agent, _ = await sign_in(UserRole.AGENT)
    student, _ = await sign_in(UserRole.STUDENT)
    admin, _ = await sign_in(UserRole.ADMIN)
    first = await create_listing(agent)
    await create_listing(agent, priceMonthly=80000)
    await unlock(student, admin, first["id"])
    await student.get(f"/api/listings/{first['id']}")

    stats = (await agent.get("/api/agents/me/stats")).json()["data"]
    assert stats == {
        "totalListings": 2,
        "activeListings": 2,
        "totalViews": 1,
        "totalUnlocks": 1,
        "totalEarnings": 1000,
    }

    earnings = (await agent.get("/api/agents/me/earnings", params={"months": 2})).json()
    rows = earnings["data"]["earnings"]
    assert len(rows) == 2
    assert rows[-1]["unlocks"] == 1
    assert earnings["data"]["total"] == 1000

    listings = (await agent.get("/api/agents/me/listings")).json()["data"]["listings"]
    by_id = {item["id"]: item for item in listings}
    assert by_id[first["id"]]["unlockCount"] == 1
    assert by_id[first["id"]]["earnings"] == 1000

    assert (await student.get("/api/agents/me/stats")).status_code == 403
    too_many = await agent.get("/api/agents/me/earnings", params={"months": 30})
    assert too_many.status_code == 400
