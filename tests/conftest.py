import os

os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-campus-stay-suite-0123456789"
os.environ["DRAMATIQ_REDIS_URL"] = ""
os.environ["RATE_LIMIT_REDIS_URL"] = ""
os.environ["EMAIL_SERVER"] = ""

import uuid
from datetime import date, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from campus_stay.app import create_app
from campus_stay.core.get_db import Database
from campus_stay.models.enums import UserRole
from campus_stay.models.models import User

PASSWORD = "password123"


class RecordingPublisher:
    """Stands in for the broker and keeps every event it is handed."""

    def __init__(self):
        self.published = []
        self.fail = False

    async def connect(self):
        return None

    async def publish(self, event):
        if self.fail:
            raise ConnectionError("broker unavailable")
        self.published.append(event)

    def kinds(self):
        return [event.kind for event in self.published]


def listing_payload(**overrides):
    payload = {
        "title": "Cozy self-contain near the main gate",
        "description": "Bright room with steady water and prepaid meter, five minutes to campus.",
        "campusArea": "Ugbomro",
        "addressApprox": "Near Ugbomro junction",
        "addressFull": "12 Unity Street, Ugbomro, Effurun",
        "priceMonthly": 45000,
        "bedrooms": 1,
        "bathrooms": 1,
        "distanceToCampusKm": 0.8,
        "amenities": ["water", "prepaid meter"],
        "photos": ["https://img.example.com/room-1.jpg"],
        "coverPhoto": "https://img.example.com/room-1.jpg",
        "mapPreview": "https://maps.example.com/preview.png",
        "mapFull": "https://maps.example.com/full.png",
    }
    payload.update(overrides)
    return payload


def roommate_payload(**overrides):
    payload = {
        "title": "Looking for a calm roommate",
        "budgetMonthly": 30000,
        "moveInDate": (date.today() + timedelta(days=30)).isoformat(),
        "description": "Final year student, quiet and tidy, prefers early nights.",
        "photos": ["https://img.example.com/shared-room.jpg"],
        "preferences": {"gender": "any", "cleanliness": "high"},
    }
    payload.update(overrides)
    return payload


def proof_payload(listing_id, **overrides):
    payload = {
        "listingId": str(listing_id),
        "method": "bank_transfer",
        "reference": "TRX-2024-0042",
        "imageUrl": "https://img.example.com/receipt.png",
    }
    payload.update(overrides)
    return payload


async def create_user(
    database: Database,
    email: str,
    role: UserRole = UserRole.STUDENT,
    name: str = "Test User",
    is_verified: bool = False,
    is_email_verified: bool = True,
) -> User:
    session_factory = await database.connect()
    async with session_factory() as session:
        user = User(
            email=email,
            name=name,
            role=role,
            is_verified=is_verified,
            is_email_verified=is_email_verified,
        )
        user.set_password(PASSWORD)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest.fixture
async def database(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'campus_stay.db'}")
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def app(database, publisher):
    return create_app(database=database, publisher=publisher)


@pytest.fixture
async def make_client(app):
    clients = []

    async def factory() -> AsyncClient:
        client = AsyncClient(
            transport=ASGITransport(app=app), base_url="http://testserver"
        )
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()


@pytest.fixture
async def client(make_client):
    return await make_client()


@pytest.fixture
async def db_session(database):
    session_factory = await database.connect()
    async with session_factory() as session:
        yield session


@pytest.fixture
def sign_in(database, make_client):
    """Create a user with the given role and return a client logged in as them."""

    async def factory(role: UserRole = UserRole.STUDENT, **fields):
        email = fields.pop("email", None) or f"{role.value}-{uuid.uuid4().hex[:8]}@example.com"
        user = await create_user(database, email, role=role, **fields)
        client = await make_client()
        response = await client.post(
            "/api/auth/login", json={"email": email, "password": PASSWORD}
        )
        assert response.status_code == 200, response.text
        return client, user

    return factory


@pytest.fixture
def create_listing():
    async def factory(agent_client: AsyncClient, **overrides) -> dict:
        response = await agent_client.post(
            "/api/listings", json=listing_payload(**overrides)
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["listing"]

    return factory


@pytest.fixture
def unlock():
    """Run a listing through proof submission and admin approval."""

    async def factory(student_client, admin_client, listing_id, **proof_fields) -> dict:
        submitted = await student_client.post(
            "/api/payments/proofs", json=proof_payload(listing_id, **proof_fields)
        )
        assert submitted.status_code == 201, submitted.text
        proof_id = submitted.json()["data"]["proof"]["id"]

        reviewed = await admin_client.patch(
            f"/api/payments/proofs/{proof_id}", json={"status": "approved"}
        )
        assert reviewed.status_code == 200, reviewed.text
        return reviewed.json()["data"]["proof"]

    return factory
