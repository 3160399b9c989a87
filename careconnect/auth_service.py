"""
Managed auth service client.

Access tokens are issued by a Supabase-compatible GoTrue service. Tokens are
resolved to an identity either by calling ``/auth/v1/user`` or, when
``SUPABASE_JWT_SECRET`` is configured, by verifying the HS256 signature locally.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx
from jose import JWTError, jwt

from .config import (
    AUTH_HTTP_TIMEOUT,
    SUPABASE_ANON_KEY,
    SUPABASE_JWT_AUDIENCE,
    SUPABASE_JWT_SECRET,
    SUPABASE_SERVICE_KEY,
    SUPABASE_URL,
)
from .errors import ConflictError, UpstreamServiceError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class AuthIdentity:
    """The authenticated user as reported by the auth service"""

    id: str
    email: Optional[str] = None
    user_metadata: dict = field(default_factory=dict)

    @property
    def role(self) -> Optional[str]:
        return self.user_metadata.get("role")

    @property
    def name(self) -> Optional[str]:
        return self.user_metadata.get("name")

    @classmethod
    def from_payload(cls, payload: dict) -> "AuthIdentity":
        return cls(
            id=str(payload.get("id") or payload.get("sub")),
            email=payload.get("email"),
            user_metadata=payload.get("user_metadata") or {},
        )


class ManagedAuthService:
    """Thin async wrapper around the GoTrue REST API"""

    def __init__(
        self,
        base_url: str = SUPABASE_URL,
        anon_key: Optional[str] = SUPABASE_ANON_KEY,
        service_key: Optional[str] = SUPABASE_SERVICE_KEY,
        jwt_secret: Optional[str] = SUPABASE_JWT_SECRET,
        timeout: float = AUTH_HTTP_TIMEOUT,
    ):
        self.base_url = base_url
        self.anon_key = anon_key
        self.service_key = service_key
        self.jwt_secret = jwt_secret
        self.timeout = timeout

    def _unavailable(self, detail: str) -> UpstreamServiceError:
        logger.error(f"❌ Auth service unavailable: {detail}")
        return UpstreamServiceError(
            "Authentication service unavailable", code="AUTH_SERVICE_UNAVAILABLE"
        )

    def _decode_locally(self, token: str) -> Optional[AuthIdentity]:
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=SUPABASE_JWT_AUDIENCE,
            )
        except JWTError as e:
            logger.info(f"ℹ️ Rejected access token: {e}")
            return None
        if not payload.get("sub"):
            return None
        return AuthIdentity.from_payload(payload)

    async def get_user(self, token: str) -> Optional[AuthIdentity]:
        """
        Resolve an access token to an identity.

        Returns None when the token is invalid or expired. Raises
        UpstreamServiceError when the auth service cannot be reached or
        answers with anything other than success or an auth rejection.
        """
        if self.jwt_secret:
            return self._decode_locally(token)

        if not self.base_url:
            raise self._unavailable("SUPABASE_URL not configured")

        headers = {"apikey": self.anon_key or "", "Authorization": f"Bearer {token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"{self.base_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as e:
            raise self._unavailable(str(e)) from e

        if response.status_code in (401, 403):
            logger.info(f"ℹ️ Auth service rejected token (HTTP {response.status_code})")
            return None
        if response.status_code != 200:
            raise self._unavailable(f"HTTP {response.status_code}")

        return AuthIdentity.from_payload(response.json())

    async def create_user(self, email: str, password: str, user_metadata: dict) -> AuthIdentity:
        """Create a confirmed user through the admin API"""
        if not self.base_url or not self.service_key:
            raise self._unavailable("service key not configured")

        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }
        body = {
            "email": email,
            "password": password,
            "user_metadata": user_metadata,
            "email_confirm": True,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/auth/v1/admin/users", headers=headers, json=body
                )
        except httpx.HTTPError as e:
            raise self._unavailable(str(e)) from e

        if response.status_code in (200, 201):
            logger.info(f"✅ Auth user created: {email}")
            return AuthIdentity.from_payload(response.json())

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        message = payload.get("msg") or payload.get("message") or payload.get("error_description")

        if response.status_code in (400, 409, 422):
            if message and "already" in message.lower():
                raise ConflictError(
                    "This email is already registered", code="EMAIL_ALREADY_REGISTERED"
                )
            raise ValidationError(message or "Could not create account")

        raise self._unavailable(f"HTTP {response.status_code}: {message}")


_auth_service: Optional[ManagedAuthService] = None


def get_auth_service() -> ManagedAuthService:
    """Dependency returning the process-wide auth service client"""
    global _auth_service
    if _auth_service is None:
        _auth_service = ManagedAuthService()
    return _auth_service
