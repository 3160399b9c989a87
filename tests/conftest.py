import os
import uuid

import pytest

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("SUPABASE_JWT_SECRET", None)

from fastapi.testclient import TestClient  # noqa: E402

from careconnect.auth_service import AuthIdentity, get_auth_service  # noqa: E402
from careconnect.database import Base, SessionLocal, engine  # noqa: E402
from careconnect.errors import ConflictError, UpstreamServiceError  # noqa: E402
from careconnect.main import app  # noqa: E402


class FakeAuthService:
    """In-memory stand-in for the managed auth service; tokens are opaque three-part strings"""

    def __init__(self):
        self.identities = {}
        self.unavailable = False

    def issue(self, email, role=None, name=None, user_id=None, **metadata) -> str:
        identity = AuthIdentity(
            id=user_id or str(uuid.uuid4()),
            email=email,
            user_metadata={k: v for k, v in {"role": role, "name": name, **metadata}.items() if v},
        )
        token = f"header.{identity.id}.signature"
        self.identities[token] = identity
        return token

    def token_for(self, email) -> str:
        for token, identity in self.identities.items():
            if identity.email == email:
                return token
        raise KeyError(email)

    async def get_user(self, token):
        if self.unavailable:
            raise UpstreamServiceError(
                "Authentication service unavailable", code="AUTH_SERVICE_UNAVAILABLE"
            )
        return self.identities.get(token)

    async def create_user(self, email, password, user_metadata):
        if any(identity.email == email for identity in self.identities.values()):
            raise ConflictError("This email is already registered", code="EMAIL_ALREADY_REGISTERED")
        token = self.issue(email, **user_metadata)
        return self.identities[token]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def auth():
    fake = FakeAuthService()
    app.dependency_overrides[get_auth_service] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_auth_service, None)


@pytest.fixture
def api(auth):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin_headers(api, auth):
    response = api.post(
        "/auth/init-admin",
        json={"email": "admin@careconnect.test", "password": "admin-pass-1", "name": "Admin"},
    )
    assert response.status_code == 200, response.text
    return bearer(auth.token_for("admin@careconnect.test"))


@pytest.fixture
def client_headers(auth):
    return bearer(auth.issue("asha@example.com", role="client", name="Asha"))


@pytest.fixture
def make_provider(api, auth):
    """Register a provider with every stage submitted; returns (headers, provider_id)"""
    counter = {"n": 0}

    def _make(specialty="Nursing Care", skills=("nursing", "elder care"), **overrides):
        counter["n"] += 1
        email = f"provider{counter['n']}@example.com"
        body = {
            "email": email,
            "password": "secret-pass",
            "name": f"Provider {counter['n']}",
            "phone": "+919876543210",
            "emailVerified": True,
            "mobileVerified": True,
            "idCardNumber": "ID-1234",
            "idCardCopy": "https://files.example.com/id.png",
            "specialty": specialty,
            "skills": list(skills),
            "experienceYears": 4,
            "hourlyRate": 300,
        }
        body.update(overrides)
        response = api.post("/auth/signup/provider", json=body)
        assert response.status_code == 200, response.text
        return bearer(auth.token_for(email)), response.json()["providerId"]

    return _make


@pytest.fixture
def approved_provider(api, admin_headers, make_provider):
    headers, provider_id = make_provider()
    response = api.post(
        "/admin/approve-provider", json={"providerId": provider_id}, headers=admin_headers
    )
    assert response.status_code == 200, response.text
    return headers, provider_id
