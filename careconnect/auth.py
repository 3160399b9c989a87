import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .auth_service import AuthIdentity, ManagedAuthService, get_auth_service
from .config import DEFAULT_CURRENCY
from .database import get_db
from .domain.verification.workflow import is_fully_verified
from .errors import ForbiddenError, UnauthorizedError
from .models import (
    PROVIDER_PENDING,
    AdminUser,
    Client,
    Provider,
    VerificationRecord,
    WalletAccount,
)
from .shared.validators import email_local_part

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    auth_service: ManagedAuthService = Depends(get_auth_service),
) -> AuthIdentity:
    """Resolve the bearer token to an auth identity"""
    if not credentials or not credentials.credentials:
        raise UnauthorizedError(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise UnauthorizedError("Invalid token format. Expected a valid JWT token.")

    identity = await auth_service.get_user(token)
    if identity is None:
        raise UnauthorizedError("Invalid or expired token")

    logger.debug(f"✅ Identity resolved: {identity.id}")
    return identity


def _display_name(identity: AuthIdentity) -> str:
    return identity.name or email_local_part(identity.email) or "User"


def _ensure_active(account) -> None:
    if account.status != "active":
        logger.warning(f"⚠️ Inactive account {account.id} attempted access")
        raise ForbiddenError("This account has been deactivated", code="ACCOUNT_INACTIVE")


async def get_current_client(
    identity: AuthIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> Client:
    """Find the caller's client row, creating it with an empty wallet on first access"""
    client = db.query(Client).filter(Client.auth_user_id == identity.id).first()
    if client:
        _ensure_active(client)
        return client

    logger.info(f"🆕 Auto-provisioning client for {identity.email}")
    client = Client(
        auth_user_id=identity.id,
        name=_display_name(identity),
        email=identity.email,
        phone=identity.user_metadata.get("phone"),
        metadata_={"role": "client"},
    )
    db.add(client)
    try:
        db.flush()
        db.add(WalletAccount(client_id=client.id, balance=0, currency=DEFAULT_CURRENCY))
        db.commit()
    except IntegrityError:
        # Another request provisioned the same identity first
        db.rollback()
        logger.info(f"🔄 Client for {identity.id} created concurrently, re-reading")
        client = db.query(Client).filter(Client.auth_user_id == identity.id).first()
        if not client:
            raise
        return client

    db.refresh(client)
    logger.info(f"✅ Client created: {client.id}")
    return client


async def get_current_provider(
    identity: AuthIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> Provider:
    """Find the caller's provider row; only identities registered as providers are provisioned"""
    provider = db.query(Provider).filter(Provider.auth_user_id == identity.id).first()
    if provider:
        return provider

    if identity.role != "provider":
        logger.warning(f"⚠️ Non-provider {identity.id} attempted a provider route")
        raise ForbiddenError("Only providers can access this resource", code="NOT_A_PROVIDER")

    logger.info(f"🆕 Auto-provisioning provider for {identity.email}")
    provider = Provider(
        auth_user_id=identity.id,
        name=_display_name(identity),
        email=identity.email,
        phone=identity.user_metadata.get("phone"),
        specialty=identity.user_metadata.get("specialty"),
        verification_status=PROVIDER_PENDING,
        verified=False,
        available=False,
    )
    db.add(provider)
    try:
        db.flush()
        db.add(VerificationRecord(provider_id=provider.id, stage_data={}, review_notes={}))
        db.commit()
    except IntegrityError:
        db.rollback()
        provider = db.query(Provider).filter(Provider.auth_user_id == identity.id).first()
        if not provider:
            raise
        return provider

    db.refresh(provider)
    return provider


async def require_verified_provider(
    provider: Provider = Depends(get_current_provider),
) -> Provider:
    """Providers whose four stages and account status are all approved"""
    _ensure_active(provider)
    if not is_fully_verified(provider.verification, provider):
        raise ForbiddenError(
            "Provider verification is not complete", code="PROVIDER_NOT_VERIFIED"
        )
    return provider


async def require_admin(
    identity: AuthIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> AdminUser:
    admin = (
        db.query(AdminUser)
        .filter(AdminUser.auth_user_id == identity.id, AdminUser.status == "active")
        .first()
    )
    if not admin:
        logger.warning(f"⚠️ Non-admin {identity.id} attempted an admin route")
        raise ForbiddenError("Admin access required", code="ADMIN_REQUIRED")
    return admin
