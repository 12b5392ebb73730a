async def test_health(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {"status": "ok"}}


async def test_email_health_reports_unconfigured(client):
    response = await client.get("/api/health/email")

    assert response.json()["data"] == {"configured": False, "connected": False}


async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Resource not found"}


async def test_listing_and_roommate_routes_mount_under_api_prefix(app):
    paths = {route.path for route in app.routes}

    assert {
        "/api/listings",
        "/api/listings/{listing_id}",
        "/api/listings/{listing_id}/reviews",
        "/api/roommates",
        "/api/roommates/me",
        "/api/roommates/{roommate_id}",
    } <= paths
