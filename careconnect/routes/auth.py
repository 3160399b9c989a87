import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth_service import ManagedAuthService, get_auth_service
from ..config import DEFAULT_CURRENCY
from ..database import get_db
from ..domain.catalog.service import CatalogService
from ..domain.clients.schemas import ClientResponse, normalize_address
from ..domain.verification import workflow
from ..errors import ConflictError
from ..models import (
    PROVIDER_PENDING,
    STAGE_PENDING,
    STAGE_SUBMITTED,
    AdminUser,
    Client,
    ClientLocation,
    Provider,
    WalletAccount,
)
from ..schemas import AdminInit, ClientSignup, EmailCheck, ProviderSignup, SignupUser
from ..shared.validators import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _email_taken(db: Session, email: str) -> bool:
    return any(
        db.query(model.id).filter(model.email == email).first() is not None
        for model in (Client, Provider, AdminUser)
    )


def _initial_stages(data: ProviderSignup) -> tuple[dict, dict]:
    """Stages start submitted when registration already carries their evidence"""
    now = utcnow().isoformat()
    contact_done = data.emailVerified and data.mobileVerified
    identity_done = bool(data.idCardNumber and data.idCardCopy)
    expertise_done = bool(data.specialty and data.skills)

    stages = {
        "stage1": STAGE_SUBMITTED if contact_done else STAGE_PENDING,
        "stage2": STAGE_SUBMITTED if identity_done else STAGE_PENDING,
        "stage3": STAGE_SUBMITTED if expertise_done else STAGE_PENDING,
        # Behavioral assessment is part of the registration form
        "stage4": STAGE_SUBMITTED,
    }
    stage_data = {
        "stage1": {"emailVerified": True, "mobileVerified": True, "submittedAt": now}
        if contact_done
        else {},
        "stage2": {
            "idCardNumber": data.idCardNumber,
            "idCardCopy": data.idCardCopy,
            "profilePhoto": data.profilePhoto or "",
            "consentGiven": True,
            "submittedAt": now,
        }
        if identity_done
        else {},
        "stage3": {
            "services": data.skills,
            "specialty": data.specialty,
            "experienceYears": data.experienceYears,
            "experienceDetails": data.experienceDetails,
            "certifications": data.certifications,
            "submittedAt": now,
        }
        if expertise_done
        else {},
        "stage4": {"submittedAt": now},
    }
    return stages, stage_data


@router.get("/check-admin")
async def check_admin(db: Session = Depends(get_db)):
    return {"adminExists": db.query(AdminUser.id).first() is not None}


@router.post("/init-admin")
async def init_admin(
    data: AdminInit,
    db: Session = Depends(get_db),
    auth_service: ManagedAuthService = Depends(get_auth_service),
):
    """Create the first admin account and seed the default service catalog"""
    if db.query(AdminUser.id).first() is not None:
        logger.warning(f"⚠️ Admin initialization attempted for {data.email} but an admin exists")
        raise ConflictError("Admin account already exists", code="ADMIN_ALREADY_EXISTS")

    identity = await auth_service.create_user(
        data.email, data.password, {"name": data.name, "role": "admin", "userType": "admin"}
    )

    db.add(AdminUser(auth_user_id=identity.id, email=data.email, name=data.name))
    CatalogService(db).seed_defaults()
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Admin account already exists", code="ADMIN_ALREADY_EXISTS") from e

    logger.info(f"✅ Admin initialized: {data.email}")
    return {"success": True, "user": SignupUser(id=identity.id, email=data.email, role="admin")}


@router.post("/signup/client")
async def signup_client(
    data: ClientSignup,
    db: Session = Depends(get_db),
    auth_service: ManagedAuthService = Depends(get_auth_service),
):
    logger.info(f"📝 Client signup request received for: {data.email}")
    if _email_taken(db, data.email):
        raise ConflictError("This email is already registered", code="EMAIL_ALREADY_REGISTERED")

    identity = await auth_service.create_user(
        data.email,
        data.password,
        {"name": data.name, "phone": data.phone, "address": data.address, "role": "client"},
    )

    client = Client(
        auth_user_id=identity.id,
        email=data.email,
        name=data.name,
        phone=data.phone,
        phone_verified=False,
        metadata_={
            "age": data.age,
            "gender": data.gender,
            "role": "client",
            "signup_date": utcnow().isoformat(),
        },
    )
    try:
        db.add(client)
        db.flush()
        db.add(WalletAccount(client_id=client.id, balance=0, currency=DEFAULT_CURRENCY))
        if data.address:
            home = ClientLocation(
                client_id=client.id,
                label="Home",
                address=normalize_address(data.address),
                is_default=True,
            )
            db.add(home)
            db.flush()
            client.default_location_id = home.id
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(
            "This email is already registered", code="EMAIL_ALREADY_REGISTERED"
        ) from e

    db.refresh(client)
    logger.info(f"✅ Client account created: {client.id}")
    return {
        "success": True,
        "user": SignupUser(id=identity.id, email=data.email, role="client"),
        "client": ClientResponse.model_validate(client),
    }


@router.post("/signup/provider")
async def signup_provider(
    data: ProviderSignup,
    db: Session = Depends(get_db),
    auth_service: ManagedAuthService = Depends(get_auth_service),
):
    logger.info(f"📝 Provider signup request received for: {data.email}")
    if _email_taken(db, data.email):
        raise ConflictError("This email is already registered", code="EMAIL_ALREADY_REGISTERED")

    identity = await auth_service.create_user(
        data.email,
        data.password,
        {"name": data.name, "phone": data.phone, "role": "provider", "specialty": data.specialty},
    )

    provider = Provider(
        auth_user_id=identity.id,
        email=data.email,
        name=data.name,
        phone=data.phone,
        address=data.address or "",
        gender=data.gender,
        specialty=data.specialty,
        skills=data.skills,
        hourly_rate=data.hourlyRate,
        experience_years=data.experienceYears,
        experience_details=data.experienceDetails or "",
        certifications=data.certifications,
        languages=data.languages,
        verification_status=PROVIDER_PENDING,
        verified=False,
        available=False,
    )
    stages, stage_data = _initial_stages(data)
    try:
        db.add(provider)
        db.flush()
        record = workflow.new_record(provider.id, stages=stages, stage_data=stage_data)
        record.email_verified = data.emailVerified
        record.mobile_verified = data.mobileVerified
        db.add(record)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(
            "This email is already registered", code="EMAIL_ALREADY_REGISTERED"
        ) from e

    logger.info(f"✅ Provider account created: {provider.id} (stages: {stages})")
    return {
        "success": True,
        "user": SignupUser(id=identity.id, email=data.email, role="provider"),
        "providerId": str(provider.id),
    }


@router.post("/check-email")
async def check_email(data: EmailCheck, db: Session = Depends(get_db)):
    exists = _email_taken(db, data.email)
    return {
        "exists": exists,
        "message": "This email is already registered" if exists else "Email is available",
    }
