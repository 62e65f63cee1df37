from fastapi.testclient import TestClient


REQUIRED_ROUTES = {
    "/auth/otp/request",
    "/auth/otp/verify",
    "/auth/signup",
    "/auth/me",
    "/api/tailors",
    "/api/tailors/{tailor_id}",
    "/api/tailors/me/profile",
    "/api/rate-card/templates",
    "/api/enquiries",
    "/api/enquiries/{counterpart_id}",
    "/api/enquiries/{counterpart_id}/messages",
    "/api/enquiries/{counterpart_id}/pricing",
    "/api/enquiries/{counterpart_id}/share-contact",
    "/api/enquiries/{counterpart_id}/accept",
    "/api/enquiries/{counterpart_id}/reject",
    "/api/enquiries/{counterpart_id}/presence",
    "/api/orders",
    "/api/orders/{order_id}",
    "/api/dashboard",
    "/api/cart",
    "/api/cart/{tailor_id}",
    "/ws/enquiries",
    "/ws/enquiries/{counterpart_id}",
    "/ws/orders",
    "/ws/session",
}


def test_api_startup_and_router_registration(monkeypatch):
    from stitchup import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        response = client.get("/")
        health_response = client.get("/health")
        docs_response = client.get("/docs")
        openapi_response = client.get("/openapi.json")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert health_response.json() == {"status": "healthy"}
    assert "x-request-id" in {key.lower() for key in response.headers}
    assert docs_response.status_code == 200
    assert openapi_response.status_code == 200

    paths = {getattr(route, "path", None) for route in main.app.routes}
    assert REQUIRED_ROUTES.issubset(paths)
