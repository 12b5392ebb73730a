import pytest
from sqlalchemy import select

from conftest import listing_payload

from campus_stay.models.enums import UserRole
from campus_stay.models.models import Listing


async def test_agent_creates_listing(sign_in, create_listing):
    agent, user = await sign_in(UserRole.AGENT, name="Tunde Agent")

    listing = await create_listing(agent)

    assert listing["agentId"] == str(user.id)
    assert listing["status"] == "available"
    assert listing["addressFull"] == "12 Unity Street, Ugbomro, Effurun"
    assert listing["agent"]["name"] == "Tunde Agent"
    assert listing["views"] == 0


@pytest.mark.parametrize("role", [UserRole.STUDENT, UserRole.OWNER])
async def test_non_agent_cannot_create_listing(sign_in, role):
    # owners sit beside agents in the hierarchy, not above them
    user_client, _ = await sign_in(role)

    response = await user_client.post("/api/listings", json=listing_payload())

    assert response.status_code == 403
    assert response.json()["error"] == "Insufficient permissions"


async def test_listing_validation_errors_are_grouped(sign_in):
    agent, _ = await sign_in(UserRole.AGENT)

    response = await agent.post(
        "/api/listings",
        json=listing_payload(priceMonthly=100, photos=[], title="Hut"),
    )

    assert response.status_code == 400
    errors = response.json()["errors"]
    assert {"priceMonthly", "photos", "title"} <= set(errors)


async def test_locked_detail_hides_private_fields(sign_in, client, create_listing):
    agent, _ = await sign_in(UserRole.AGENT)
    listing = await create_listing(agent)

    response = await client.get(f"/api/listings/{listing['id']}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["isUnlocked"] is False
    assert "addressFull" not in data["listing"]
    assert "mapFull" not in data["listing"]
    assert "phone" not in data["listing"]["agent"]
    assert data["listing"]["agent"]["listingsCount"] == 1
    assert data["listing"]["views"] == 1


async def test_unlocked_detail_reveals_contact(sign_in, create_listing, unlock):
    agent, agent_user = await sign_in(UserRole.AGENT)
    student, _ = await sign_in(UserRole.STUDENT)
    admin, _ = await sign_in(UserRole.ADMIN)
    listing = await create_listing(agent)

    await unlock(student, admin, listing["id"])
    response = await student.get(f"/api/listings/{listing['id']}")

    data = response.json()["data"]
    assert data["isUnlocked"] is True
    assert data["listing"]["addressFull"] == "12 Unity Street, Ugbomro, Effurun"
    assert data["listing"]["mapFull"] == "https://maps.example.com/full.png"
    assert data["listing"]["agent"]["email"] == agent_user.email


async def test_search_filters_and_sorting(sign_in, client, create_listing):
    agent, _ = await sign_in(UserRole.AGENT)
    await create_listing(agent, priceMonthly=30000, campusArea="Effurun")
    await create_listing(agent, priceMonthly=90000, bedrooms=3)
    await create_listing(
        agent, priceMonthly=60000, title="Spacious flat by PTI Road", campusArea="PTI Road"
    )

    cheap_first = await client.get("/api/listings", params={"sortBy": "price_low"})
    prices = [item["priceMonthly"] for item in cheap_first.json()["data"]["listings"]]
    assert prices == [30000, 60000, 90000]

    ranged = await client.get(
        "/api/listings", params={"minPrice": 50000, "maxPrice": 95000}
    )
    assert ranged.json()["data"]["pagination"]["total"] == 2

    searched = await client.get("/api/listings", params={"search": "spacious"})
    assert [item["campusArea"] for item in searched.json()["data"]["listings"]] == [
        "PTI Road"
    ]

    paged = await client.get("/api/listings", params={"limit": 2, "page": 2})
    pagination = paged.json()["data"]["pagination"]
    assert len(paged.json()["data"]["listings"]) == 1
    assert pagination == {
        "page": 2,
        "limit": 2,
        "total": 3,
        "totalPages": 2,
        "hasNext": False,
        "hasPrev": True,
    }


async def test_verified_agents_only(sign_in, client, create_listing):
    verified, _ = await sign_in(UserRole.AGENT, is_verified=True)
    unverified, _ = await sign_in(UserRole.AGENT)
    kept = await create_listing(verified)
    await create_listing(unverified)

    response = await client.get("/api/listings", params={"verifiedAgentsOnly": "true"})

    listings = response.json()["data"]["listings"]
    assert [item["id"] for item in listings] == [kept["id"]]


async def test_only_owner_may_update_listing(sign_in, create_listing):
    owner, _ = await sign_in(UserRole.AGENT)
    other, _ = await sign_in(UserRole.AGENT)
    listing = await create_listing(owner)

    denied = await other.patch(
        f"/api/listings/{listing['id']}", json={"priceMonthly": 50000}
    )
    assert denied.status_code == 403
    assert denied.json()["error"] == "You do not have permission to update this listing"

    updated = await owner.patch(
        f"/api/listings/{listing['id']}", json={"priceMonthly": 50000}
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["listing"]["priceMonthly"] == 50000

    status = await owner.patch(
        f"/api/listings/{listing['id']}/status", json={"status": "taken"}
    )
    assert status.json()["data"]["listing"]["status"] == "taken"


async def test_soft_deleted_listing_disappears(sign_in, client, create_listing, db_session):
    agent, _ = await sign_in(UserRole.AGENT)
    listing = await create_listing(agent)

    deleted = await agent.delete(f"/api/listings/{listing['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["data"]["message"] == "Listing deleted successfully"

    detail = await client.get(f"/api/listings/{listing['id']}")
    assert detail.status_code == 404
    assert detail.json()["error"] == "Listing not found"

    browse = await client.get("/api/listings")
    assert browse.json()["data"]["listings"] == []

    row = (
        await db_session.execute(select(Listing).where(Listing.title == listing["title"]))
    ).scalar_one()
    assert row.is_deleted is True
    assert row.deleted_at is not None


async def test_reviews_require_unlock_and_update_rating(sign_in, create_listing, unlock):
    agent, _ = await sign_in(UserRole.AGENT)
    student, _ = await sign_in(UserRole.STUDENT, name="Ada Obi")
    admin, _ = await sign_in(UserRole.ADMIN)
    listing = await create_listing(agent)
    url = f"/api/listings/{listing['id']}/reviews"
    review = {"rating": 4, "comment": "Clean room and a responsive agent."}

    locked = await student.post(url, json=review)
    assert locked.status_code == 403
    assert locked.json()["error"] == "You must unlock this listing before reviewing"

    await unlock(student, admin, listing["id"])
    created = await student.post(url, json=review)
    assert created.status_code == 201
    assert created.json()["data"]["review"]["userName"] == "Ada Obi"

    again = await student.post(url, json=review)
    assert again.status_code == 409

    review_id = created.json()["data"]["review"]["id"]
    updated = await student.patch(f"{url}/{review_id}", json={"rating": 2})
    assert updated.json()["data"]["review"]["rating"] == 2

    summary = (await student.get(url)).json()["data"]
    assert summary["averageRating"] == 2.0
    assert summary["totalReviews"] == 1

    detail = (await student.get(f"/api/listings/{listing['id']}")).json()["data"]
    assert detail["listing"]["rating"] == 2.0
    assert detail["listing"]["reviewsCount"] == 1

    stranger = await admin.delete(f"{url}/{review_id}")
    assert stranger.status_code == 403

    removed = await student.delete(f"{url}/{review_id}")
    assert removed.status_code == 200
    assert (await student.get(url)).json()["data"]["totalReviews"] == 0
