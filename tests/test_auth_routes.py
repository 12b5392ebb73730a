from datetime import timedelta

from sqlalchemy import select

from conftest import PASSWORD

from campus_stay.models.enums import NotificationKind, UserRole
from campus_stay.models.models import User
from campus_stay.models.utils import utc_now

REGISTER = {
    "email": "Ada.Obi@Example.com",
    "password": "secret123",
    "name": "Ada Obi",
    "phone": "08031234567",
    "role": "student",
    "matricNumber": "FUPRE/CSC/19/001",
}


async def register(client, **overrides):
    return await client.post("/api/auth/register", json={**REGISTER, **overrides})


async def test_register_sets_cookies_and_stages_verification(client, publisher):
    response = await register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    user = body["data"]["user"]
    assert user["email"] == "ada.obi@example.com"
    assert user["phone"] == "+2348031234567"
    assert user["isEmailVerified"] is False
    assert user["savedListingIds"] == []
    assert "hashedPassword" not in user
    assert {"access_token", "refresh_token"} <= set(response.cookies.keys())

    assert publisher.kinds() == [NotificationKind.VERIFICATION]
    event = publisher.published[0]
    assert event.recipients == ["ada.obi@example.com"]
    assert event.context["token"]


async def test_duplicate_registration_conflicts_without_email(client, publisher):
    await register(client)
    response = await register(client, email="ada.obi@example.com")

    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "error": "An account with this email already exists",
    }
    assert publisher.kinds() == [NotificationKind.VERIFICATION]


async def test_register_rejects_admin_role_and_bad_fields(client):
    response = await register(client, role="admin", password="123", phone="12345")

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert {"role", "password", "phone"} <= set(body["errors"])
    assert body["errors"]["role"] == ["Invalid role choice"]


async def test_login_and_me(client, make_client):
    await register(client)
    fresh = await make_client()

    response = await fresh.post(
        "/api/auth/login",
        json={"email": "ADA.OBI@example.com", "password": "secret123"},
    )
    assert response.status_code == 200
    me = await fresh.get("/api/auth/me")

    assert me.status_code == 200
    assert me.json()["data"]["user"]["name"] == "Ada Obi"


async def test_login_failures(client, sign_in, db_session):
    _, user = await sign_in(UserRole.STUDENT)

    wrong = await client.post(
        "/api/auth/login", json={"email": user.email, "password": "not-it"}
    )
    unknown = await client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD}
    )
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["error"] == unknown.json()["error"] == "Invalid email or password"

    row = await db_session.get(User, user.id)
    row.soft_delete()
    await db_session.commit()

    deactivated = await client.post(
        "/api/auth/login", json={"email": user.email, "password": PASSWORD}
    )
    assert deactivated.status_code == 401
    assert deactivated.json()["error"] == "This account has been deactivated"


async def test_me_requires_authentication(client):
    response = await client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Authentication required"}


async def test_refresh_cookie_renews_missing_access_cookie(sign_in):
    student, _ = await sign_in(UserRole.STUDENT)
    student.cookies.delete("access_token")

    response = await student.get("/api/auth/me")

    assert response.status_code == 200
    assert "access_token" in response.cookies


async def test_refresh_and_logout(sign_in, client):
    student, user = await sign_in(UserRole.STUDENT)

    refreshed = await student.post("/api/auth/refresh")
    assert refreshed.status_code == 200
    assert refreshed.json()["data"]["user"]["id"] == str(user.id)

    logout = await student.post("/api/auth/logout")
    assert logout.status_code == 200
    assert (await student.get("/api/auth/me")).status_code == 401

    missing = await client.post("/api/auth/refresh")
    assert missing.status_code == 401
    assert missing.json()["error"] == "Refresh token not found"


async def test_role_change_invalidates_session(sign_in, db_session):
    agent, user = await sign_in(UserRole.AGENT)

    row = await db_session.get(User, user.id)
    row.role = UserRole.STUDENT
    await db_session.commit()

    assert (await agent.get("/api/auth/me")).status_code == 401


async def test_update_profile(sign_in):
    student, _ = await sign_in(UserRole.STUDENT)

    response = await student.patch(
        "/api/auth/me",
        json={"name": "Ada Updated", "avatarUrl": "https://img.example.com/me.png"},
    )

    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["name"] == "Ada Updated"
    assert user["avatarUrl"] == "https://img.example.com/me.png"


async def test_update_profile_rejects_null_name_but_clears_optional_fields(sign_in):
    student, _ = await sign_in(UserRole.STUDENT, name="Ada Obi")

    rejected = await student.patch("/api/auth/me", json={"name": None})

    assert rejected.status_code == 400
    assert rejected.json()["errors"]["name"] == ["Name cannot be empty"]

    cleared = await student.patch(
        "/api/auth/me", json={"avatarUrl": None, "matricNumber": None}
    )

    assert cleared.status_code == 200
    user = cleared.json()["data"]["user"]
    assert user["name"] == "Ada Obi"
    assert user["avatarUrl"] is None


async def test_email_verification_flow(client, publisher):
    await register(client)
    token = publisher.published[0].context["token"]

    response = await client.post("/api/auth/verify-email", json={"token": token})
    assert response.status_code == 200
    assert response.json()["data"]["message"] == "Email verified successfully"
    assert publisher.kinds()[-1] == NotificationKind.WELCOME

    reused = await client.post("/api/auth/verify-email", json={"token": token})
    assert reused.status_code == 400
    assert reused.json()["error"] == "Invalid or expired verification token"

    me = await client.get("/api/auth/me")
    assert me.json()["data"]["user"]["isEmailVerified"] is True


async def test_verification_link_redirects(client, publisher):
    await register(client)
    token = publisher.published[0].context["token"]

    missing = await client.get("/api/auth/verify-email")
    invalid = await client.get("/api/auth/verify-email", params={"token": "nope"})
    valid = await client.get("/api/auth/verify-email", params={"token": token})

    assert missing.status_code == invalid.status_code == valid.status_code == 307
    assert missing.headers["location"].endswith("/auth/login?error=missing_token")
    assert invalid.headers["location"].endswith("/auth/login?error=invalid_token")
    assert valid.headers["location"].endswith("/auth/login?verified=true")


async def test_resend_verification_cooldown(client, publisher, db_session):
    await register(client)

    too_soon = await client.post(
        "/api/auth/resend-verification", json={"email": REGISTER["email"]}
    )
    assert too_soon.status_code == 429

    user = (
        await db_session.execute(select(User).where(User.email == "ada.obi@example.com"))
    ).scalar_one()
    user.verification_token_expires = utc_now() + timedelta(hours=20)
    await db_session.commit()

    resent = await client.post(
        "/api/auth/resend-verification", json={"email": REGISTER["email"]}
    )
    assert resent.status_code == 200
    assert publisher.kinds() == [NotificationKind.VERIFICATION, NotificationKind.VERIFICATION]

    unknown = await client.post(
        "/api/auth/resend-verification", json={"email": "ghost@example.com"}
    )
    assert unknown.status_code == 200
    assert unknown.json()["data"]["message"] == resent.json()["data"]["message"]


async def test_resend_for_verified_account_is_rejected(client, sign_in):
    _, user = await sign_in(UserRole.STUDENT, is_email_verified=True)

    response = await client.post(
        "/api/auth/resend-verification", json={"email": user.email}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Email is already verified"


async def test_password_reset_flow(client, sign_in, publisher):
    _, user = await sign_in(UserRole.STUDENT)

    ghost = await client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    known = await client.post("/api/auth/forgot-password", json={"email": user.email})
    assert ghost.status_code == known.status_code == 200
    assert ghost.json() == known.json()
    assert publisher.kinds() == [NotificationKind.PASSWORD_RESET]
    token = publisher.published[0].context["token"]

    check = await client.get("/api/auth/reset-password", params={"token": token})
    assert check.json()["data"] == {"valid": True}
    missing = await client.get("/api/auth/reset-password")
    assert missing.status_code == 400
    assert missing.json()["error"] == "Reset token is required"

    reset = await client.post(
        "/api/auth/reset-password", json={"token": token, "password": "brandnew1"}
    )
    assert reset.status_code == 200
    assert publisher.kinds()[-1] == NotificationKind.PASSWORD_CHANGED

    reused = await client.post(
        "/api/auth/reset-password", json={"token": token, "password": "another1"}
    )
    assert reused.status_code == 400
    assert reused.json()["error"] == "Invalid or expired reset token"

    login = await client.post(
        "/api/auth/login", json={"email": user.email, "password": "brandnew1"}
    )
    assert login.status_code == 200
