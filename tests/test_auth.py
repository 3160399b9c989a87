from careconnect.models import Client, ClientLocation, Provider, VerificationRecord, WalletAccount

from .conftest import bearer


def test_missing_token_is_401(api):
    response = api.get("/client/profile")
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"


def test_malformed_token_is_401(api):
    response = api.get("/client/profile", headers=bearer("not-a-jwt"))
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"


def test_unknown_token_is_401(api):
    response = api.get("/client/profile", headers=bearer("a.b.c"))
    assert response.status_code == 401


def test_auth_service_outage_is_502(api, auth, client_headers):
    auth.unavailable = True
    response = api.get("/client/profile", headers=client_headers)
    assert response.status_code == 502
    assert response.json() == {
        "error": "Authentication service unavailable",
        "code": "AUTH_SERVICE_UNAVAILABLE",
    }


def test_client_is_provisioned_once(api, client_headers, db):
    first = api.get("/client/profile", headers=client_headers)
    second = api.get("/client/profile", headers=client_headers)

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["client"]["id"] == second.json()["client"]["id"]
    assert first.json()["client"]["name"] == "Asha"
    assert db.query(Client).count() == 1
    assert db.query(WalletAccount).count() == 1


def test_provisioned_name_falls_back_to_email_local_part(api, auth):
    headers = bearer(auth.issue("meera.k@example.com"))
    response = api.get("/client/profile", headers=headers)
    assert response.json()["client"]["name"] == "meera.k"


def test_provider_route_rejects_non_provider(api, client_headers):
    response = api.get("/provider/dashboard-access", headers=client_headers)
    assert response.status_code == 403
    assert response.json()["code"] == "NOT_A_PROVIDER"


def test_provider_identity_is_auto_provisioned(api, auth, db):
    headers = bearer(auth.issue("nurse@example.com", role="provider", name="Nurse"))
    response = api.get("/provider/dashboard-access", headers=headers)

    assert response.status_code == 200
    assert response.json()["hasAccess"] is False
    assert response.json()["stages"] == {
        "stage1": "pending",
        "stage2": "pending",
        "stage3": "pending",
        "stage4": "pending",
    }
    assert db.query(Provider).count() == 1
    assert db.query(VerificationRecord).count() == 1


def test_admin_route_rejects_non_admin(api, client_headers):
    response = api.get("/admin/stats", headers=client_headers)
    assert response.status_code == 403
    assert response.json()["code"] == "ADMIN_REQUIRED"


def test_init_admin_only_once(api, admin_headers):
    assert api.get("/auth/check-admin").json() == {"adminExists": True}

    response = api.post(
        "/auth/init-admin",
        json={"email": "second@careconnect.test", "password": "admin-pass-2", "name": "Second"},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "ADMIN_ALREADY_EXISTS"


def test_init_admin_seeds_catalog(api, admin_headers):
    services = api.get("/services").json()["services"]
    assert "Nursing Care" in {s["title"] for s in services}


def test_check_admin_before_init(api):
    assert api.get("/auth/check-admin").json() == {"adminExists": False}


def test_client_signup_creates_wallet_and_home_location(api, db):
    response = api.post(
        "/auth/signup/client",
        json={
            "email": "ravi@example.com",
            "password": "secret-pass",
            "name": "Ravi",
            "phone": "+91 98765 43210",
            "address": "12 MG Road, Bengaluru",
            "age": 71,
        },
    )
    assert response.status_code == 200, response.text
    assert response.json()["user"]["role"] == "client"

    client = db.query(Client).filter(Client.email == "ravi@example.com").one()
    assert client.phone == "+919876543210"
    location = db.query(ClientLocation).filter(ClientLocation.client_id == client.id).one()
    assert location.is_default is True
    assert location.address == {
        "street": "12 MG Road, Bengaluru",
        "full_address": "12 MG Road, Bengaluru",
    }
    assert client.default_location_id == location.id
    assert db.query(WalletAccount).filter(WalletAccount.client_id == client.id).count() == 1


def test_signup_rejects_registered_email(api):
    body = {"email": "dup@example.com", "password": "secret-pass", "name": "Dup"}
    assert api.post("/auth/signup/client", json=body).status_code == 200

    response = api.post("/auth/signup/provider", json=body)
    assert response.status_code == 409
    assert response.json()["code"] == "EMAIL_ALREADY_REGISTERED"


def test_signup_validation_error_shape(api):
    response = api.post(
        "/auth/signup/client", json={"email": "bad", "password": "secret-pass", "name": "X"}
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert "email" in response.json()["error"]


def test_check_email(api):
    api.post(
        "/auth/signup/client",
        json={"email": "taken@example.com", "password": "secret-pass", "name": "Taken"},
    )
    assert api.post("/auth/check-email", json={"email": "taken@example.com"}).json()["exists"]
    assert not api.post("/auth/check-email", json={"email": "free@example.com"}).json()["exists"]
