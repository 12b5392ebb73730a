import uuid

from sqlalchemy import func, select

from conftest import roommate_payload

from campus_stay.models.enums import UserRole
from campus_stay.models.models import SavedListing


async def test_save_listing_is_idempotent(sign_in, create_listing, db_session):
    agent, _ = await sign_in(UserRole.AGENT)
    student, user = await sign_in(UserRole.STUDENT)
    listing = await create_listing(agent)

    first = await student.post("/api/users/me/saved", json={"listingId": listing["id"]})
    assert first.status_code == 200
    assert first.json()["data"]["savedListingIds"] == [listing["id"]]

    second = await student.post("/api/users/me/saved", json={"listingId": listing["id"]})
    assert second.status_code == 409
    assert second.json()["error"] == "Listing is already saved"

    count = (
        await db_session.execute(
            select(func.count()).select_from(SavedListing).where(SavedListing.user_id == user.id)
        )
    ).scalar_one()
    assert count == 1

    saved = await student.get("/api/users/me/saved")
    assert [item["id"] for item in saved.json()["data"]["listings"]] == [listing["id"]]

    me = await student.get("/api/auth/me")
    assert me.json()["data"]["user"]["savedListingIds"] == [listing["id"]]


async def test_unsave_listing(sign_in, create_listing):
    agent, _ = await sign_in(UserRole.AGENT)
    student, _ = await sign_in(UserRole.STUDENT)
    listing = await create_listing(agent)
    await student.post("/api/users/me/saved", json={"listingId": listing["id"]})

    removed = await student.delete(f"/api/users/me/saved/{listing['id']}")
    assert removed.status_code == 200
    assert removed.json()["data"] == {
        "message": "Listing removed from saved",
        "savedListingIds": [],
    }

    missing = await student.delete(f"/api/users/me/saved/{listing['id']}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "Listing is not in your saved list"


async def test_save_unknown_listing(sign_in):
    student, _ = await sign_in(UserRole.STUDENT)

    response = await student.post(
        "/api/users/me/saved", json={"listingId": str(uuid.uuid4())}
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Listing not found"


async def test_deleted_listing_drops_out_of_saved(sign_in, create_listing):
    agent, _ = await sign_in(UserRole.AGENT)
    student, _ = await sign_in(UserRole.STUDENT)
    listing = await create_listing(agent)
    await student.post("/api/users/me/saved", json={"listingId": listing["id"]})

    await agent.delete(f"/api/listings/{listing['id']}")

    saved = await student.get("/api/users/me/saved")
    assert saved.json()["data"]["listings"] == []


async def test_saved_roommates(sign_in):
    owner, _ = await sign_in(UserRole.OWNER)
    student, _ = await sign_in(UserRole.STUDENT)
    created = await owner.post("/api/roommates", json=roommate_payload())
    roommate_id = created.json()["data"]["listing"]["id"]

    saved = await student.post(
        "/api/users/me/saved-roommates", json={"roommateId": roommate_id}
    )
    assert saved.status_code == 200
    assert saved.json()["data"]["savedRoommateIds"] == [roommate_id]

    repeat = await student.post(
        "/api/users/me/saved-roommates", json={"roommateId": roommate_id}
    )
    assert repeat.status_code == 409
    assert repeat.json()["error"] == "Roommate listing is already saved"

    listed = await student.get("/api/users/me/saved-roommates")
    assert [item["id"] for item in listed.json()["data"]["listings"]] == [roommate_id]

    removed = await student.delete(f"/api/users/me/saved-roommates/{roommate_id}")
    assert removed.json()["data"]["message"] == "Roommate listing removed from saved"
