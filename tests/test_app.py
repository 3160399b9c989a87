import hashlib
import hmac

import httpx
import pytest
from fastapi import APIRouter, FastAPI

from careconnect.client import VerificationPoller
from careconnect.main import ROUTERS, app
from careconnect.models import Client
from careconnect.routing import DuplicateRouteError, RouteTableError, assert_unique_routes


def test_health(api):
    assert api.get("/health").json() == {"status": "healthy"}


def test_unknown_route_uses_error_shape(api):
    response = api.get("/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found", "code": "NOT_FOUND"}


def test_application_routes_are_unique():
    assert assert_unique_routes(app, ROUTERS) > 50


def test_duplicate_route_is_rejected():
    duplicate = FastAPI()

    @duplicate.get("/jobs/requests")
    async def first():
        return {}

    @duplicate.get("/jobs/requests")
    async def second():
        return {}

    with pytest.raises(DuplicateRouteError):
        assert_unique_routes(duplicate)


def test_parameter_route_shadowing_literal_is_rejected():
    shadowed = FastAPI()

    @shadowed.get("/verification/{provider_id}")
    async def by_id(provider_id: str):
        return {}

    @shadowed.get("/verification/pending")
    async def pending():
        return {}

    with pytest.raises(DuplicateRouteError):
        assert_unique_routes(shadowed)


def test_literal_before_parameter_route_is_allowed():
    ordered = FastAPI()

    @ordered.get("/verification/pending")
    async def pending():
        return {}

    @ordered.get("/verification/{provider_id}")
    async def by_id(provider_id: str):
        return {}

    @ordered.post("/verification/{provider_id}")
    async def update(provider_id: str):
        return {}

    assert assert_unique_routes(ordered) == 3


def test_duplicate_across_included_routers_is_rejected():
    jobs = APIRouter(prefix="/jobs")
    bookings = APIRouter()

    @jobs.get("/provider")
    async def from_jobs():
        return {}

    @bookings.get("/jobs/provider")
    async def from_bookings():
        return {}

    combined = FastAPI()
    combined.include_router(jobs)
    combined.include_router(bookings)

    with pytest.raises(DuplicateRouteError):
        assert_unique_routes(combined, [jobs, bookings])


def test_nested_router_prefixes_are_resolved():
    outer = APIRouter(prefix="/v1")
    inner = APIRouter(prefix="/items")

    @inner.get("/{item_id}")
    async def by_id(item_id: str):
        return {}

    outer.include_router(inner)
    nested = FastAPI()
    nested.include_router(outer)

    @nested.get("/v1/items/new")
    async def new_item():
        return {}

    with pytest.raises(DuplicateRouteError):
        assert_unique_routes(nested)


def test_router_missing_from_table_is_reported():
    registered = APIRouter()
    forgotten = APIRouter()

    @registered.get("/health")
    async def health():
        return {}

    @forgotten.get("/jobs/provider")
    async def jobs():
        return {}

    partial = FastAPI()
    partial.include_router(registered)

    assert assert_unique_routes(partial, [registered]) == 1
    with pytest.raises(RouteTableError):
        assert_unique_routes(partial, [registered, forgotten])


def test_emergency_alert_flow(api, client_headers, admin_headers):
    raised = api.post(
        "/emergency/alert",
        json={"message": "Fell in bathroom", "latitude": 12.97, "longitude": 77.59},
        headers=client_headers,
    )
    assert raised.status_code == 200
    alert_id = raised.json()["alert"]["id"]

    alerts = api.get("/admin/emergency-alerts", headers=admin_headers).json()["alerts"]
    assert [a["status"] for a in alerts] == ["active"]
    assert api.get("/admin/stats", headers=admin_headers).json()["activeEmergencyAlerts"] == 1

    resolved = api.post(
        "/admin/emergency-alerts/resolve", json={"alertId": alert_id}, headers=admin_headers
    )
    assert resolved.status_code == 200
    assert resolved.json()["alert"]["status"] == "resolved"

    again = api.post(
        "/admin/emergency-alerts/resolve", json={"alertId": alert_id}, headers=admin_headers
    )
    assert again.status_code == 409


def test_emergency_alert_for_unknown_booking(api, client_headers):
    response = api.post(
        "/emergency/alert",
        json={"bookingId": "00000000-0000-0000-0000-000000000000"},
        headers=client_headers,
    )
    assert response.status_code == 404


def test_admin_overview(api, admin_headers, client_headers, make_provider):
    make_provider()
    api.post(
        "/requests/create", json={"serviceType": "Companionship"}, headers=client_headers
    )

    stats = api.get("/admin/stats", headers=admin_headers).json()
    assert stats["totalClients"] == 1
    assert stats["totalProviders"] == 1
    assert stats["pendingProviders"] == 1
    assert stats["pendingBookings"] == 1

    assert len(api.get("/admin/clients", headers=admin_headers).json()["clients"]) == 1
    providers = api.get(
        "/admin/providers", params={"status": "approved"}, headers=admin_headers
    ).json()["providers"]
    assert providers == []
    assert len(api.get("/admin/bookings", headers=admin_headers).json()["bookings"]) == 1


def test_public_settings_defaults(api):
    settings = api.get("/settings/public").json()["settings"]
    assert settings == {
        "currency": "INR",
        "currencySymbol": "₹",
        "enableProviderSearch": True,
        "mapboxAccessToken": "",
    }


def test_admin_updates_settings(api, admin_headers, client_headers):
    updated = api.put(
        "/admin/settings",
        json={"currency": "usd", "currencySymbol": "$", "enableProviderSearch": False},
        headers=admin_headers,
    )
    assert updated.status_code == 200, updated.text
    settings = updated.json()["settings"]
    assert settings["currency"] == "USD"
    assert settings["enableClientWallet"] is True
    assert settings["updatedBy"] is not None

    # Partial updates keep earlier values
    api.put("/admin/settings", json={"mapboxAccessToken": "pk.test"}, headers=admin_headers)
    stored = api.get("/admin/settings", headers=admin_headers).json()["settings"]
    assert stored["currency"] == "USD"
    assert stored["mapboxAccessToken"] == "pk.test"

    public = api.get("/settings/public").json()["settings"]
    assert public["currencySymbol"] == "$"
    assert public["enableProviderSearch"] is False
    assert "enableClientWallet" not in public

    forbidden = api.put("/admin/settings", json={"currency": "EUR"}, headers=client_headers)
    assert forbidden.status_code == 403
    invalid = api.put("/admin/settings", json={"currency": "DOLLAR"}, headers=admin_headers)
    assert invalid.status_code == 400


def test_toggle_client_status(api, admin_headers, client_headers, db):
    api.get("/bookings/client", headers=client_headers)
    client_id = str(db.query(Client).one().id)

    off = api.post("/admin/toggle-status", json={"userId": client_id}, headers=admin_headers)
    assert off.status_code == 200, off.text
    assert off.json()["user"] == {"id": client_id, "role": "client", "status": "inactive"}

    blocked = api.get("/bookings/client", headers=client_headers)
    assert blocked.status_code == 403
    assert blocked.json()["code"] == "ACCOUNT_INACTIVE"

    on = api.post("/admin/toggle-status", json={"userId": client_id}, headers=admin_headers)
    assert on.json()["user"]["status"] == "active"
    assert api.get("/bookings/client", headers=client_headers).status_code == 200


def test_toggle_provider_status(api, admin_headers, approved_provider):
    headers, provider_id = approved_provider
    assert len(api.get("/providers").json()["providers"]) == 1

    off = api.post("/admin/toggle-status", json={"userId": provider_id}, headers=admin_headers)
    assert off.json()["user"] == {"id": provider_id, "role": "provider", "status": "inactive"}

    blocked = api.get("/jobs/requests", headers=headers)
    assert blocked.status_code == 403
    assert blocked.json()["code"] == "ACCOUNT_INACTIVE"
    assert api.get("/providers").json()["providers"] == []


def test_toggle_unknown_user(api, admin_headers):
    response = api.post("/admin/toggle-status", json={"userId": "nobody"}, headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"


def test_payment_verification(api, client_headers, monkeypatch):
    monkeypatch.setattr("careconnect.routes.payments.PAYMENT_KEY_SECRET", "test-secret")
    signature = hmac.new(b"test-secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
    body = {
        "razorpay_order_id": "order_1",
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": signature,
    }

    first = api.post("/payment/verify", json=body, headers=client_headers)
    assert first.status_code == 200
    assert first.json()["duplicate"] is False

    second = api.post("/payment/verify", json=body, headers=client_headers)
    assert second.json()["duplicate"] is True

    forged = api.post(
        "/payment/verify", json={**body, "razorpay_signature": "0" * 64}, headers=client_headers
    )
    assert forged.status_code == 400
    assert forged.json()["code"] == "INVALID_SIGNATURE"


def test_payment_key_requires_configuration(api, client_headers, monkeypatch):
    monkeypatch.setattr("careconnect.routes.payments.PAYMENT_KEY_ID", None)
    response = api.get("/payment/key", headers=client_headers)
    assert response.status_code == 400

    monkeypatch.setattr("careconnect.routes.payments.PAYMENT_KEY_ID", "rzp_test_key")
    assert api.get("/payment/key", headers=client_headers).json() == {"keyId": "rzp_test_key"}


def test_poller_waits_for_full_verification():
    states = iter([False, False, True])
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, request.headers["Authorization"]))
        return httpx.Response(200, json={"isFullyVerified": next(states)})

    sleeps = []
    poller = VerificationPoller(
        "http://api.test/",
        "a.b.c",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=sleeps.append,
    )

    state = poller.wait_until_verified("provider-1")
    assert state == {"isFullyVerified": True}
    assert sleeps == [30, 30]
    assert seen[0] == ("/verification/provider-1", "Bearer a.b.c")


def test_poller_gives_up_after_max_polls():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    poller = VerificationPoller(
        "http://api.test",
        "a.b.c",
        interval=1,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=lambda _: None,
    )
    with pytest.raises(TimeoutError):
        poller.wait_until_verified("provider-1", max_polls=3)


def test_poller_raises_on_client_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(401, json={"error": "Invalid or expired token"})

    poller = VerificationPoller(
        "http://api.test",
        "a.b.c",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=lambda _: None,
    )
    with pytest.raises(httpx.HTTPStatusError):
        poller.wait_until_verified("provider-1", max_polls=3)
    assert len(calls) == 1


def test_poller_retries_transport_errors():
    attempts = iter([httpx.ConnectError("refused"), None])

    def handler(request: httpx.Request) -> httpx.Response:
        error = next(attempts)
        if error is not None:
            raise error
        return httpx.Response(200, json={"isFullyVerified": True})

    poller = VerificationPoller(
        "http://api.test",
        "a.b.c",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=lambda _: None,
    )
    assert poller.wait_until_verified("provider-1", max_polls=3) == {"isFullyVerified": True}
