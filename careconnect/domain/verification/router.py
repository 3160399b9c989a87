"""Verification router - provider onboarding stages and the admin review workflow"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_identity, get_current_provider, require_admin
from ...auth_service import AuthIdentity
from ...database import get_db
from ...models import AdminUser, Provider
from . import workflow
from .schemas import (
    AdminVerificationResponse,
    PendingProvider,
    ProviderActionRequest,
    ReviewStageRequest,
    SendOtpRequest,
    StageStates,
    SubmitStageRequest,
    VerificationResponse,
    VerifyOtpRequest,
)
from .service import VerificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verification", tags=["Verification"])
admin_router = APIRouter(prefix="/admin", tags=["Admin Verification"])


def get_verification_service(db: Session = Depends(get_db)) -> VerificationService:
    """Dependency injection for VerificationService"""
    return VerificationService(db)


# ============================================================================
# PROVIDER ONBOARDING
# ============================================================================


@router.post("/submit-stage")
async def submit_stage(
    data: SubmitStageRequest,
    provider: Provider = Depends(get_current_provider),
    service: VerificationService = Depends(get_verification_service),
):
    verification = service.submit_stage(provider, data.stage, data.data)
    return {"success": True, "verification": verification}


@router.post("/send-otp")
async def send_otp(
    data: SendOtpRequest,
    provider: Provider = Depends(get_current_provider),
    service: VerificationService = Depends(get_verification_service),
):
    """Issue a one-time code for the email or mobile check of stage 1"""
    service.send_otp(provider, data.type)
    return {"success": True, "message": f"OTP sent to {data.type}"}


@router.post("/verify-otp")
async def verify_otp(
    data: VerifyOtpRequest,
    provider: Provider = Depends(get_current_provider),
    service: VerificationService = Depends(get_verification_service),
):
    verification = service.verify_otp(provider, data.type, data.otp)
    return {"verified": True, "verification": verification}


@router.get("/{provider_id}", response_model=VerificationResponse)
async def get_verification(
    provider_id: str,
    identity: AuthIdentity = Depends(get_current_identity),
    service: VerificationService = Depends(get_verification_service),
):
    """Verification state for the owning provider or an admin; polled while pending"""
    return service.get_status(provider_id, identity)


# ============================================================================
# ADMIN REVIEW
# ============================================================================


@admin_router.get("/verifications/pending")
async def list_pending_verifications(
    _admin: AdminUser = Depends(require_admin),
    service: VerificationService = Depends(get_verification_service),
):
    return {"verifications": service.list_pending_verifications()}


@admin_router.get("/verifications/{provider_id}", response_model=AdminVerificationResponse)
async def get_verification_detail(
    provider_id: str,
    _admin: AdminUser = Depends(require_admin),
    service: VerificationService = Depends(get_verification_service),
):
    return service.get_admin_detail(provider_id)


@admin_router.post("/verifications/review")
async def review_stage(
    data: ReviewStageRequest,
    admin: AdminUser = Depends(require_admin),
    service: VerificationService = Depends(get_verification_service),
):
    verification = service.review_stage(
        data.providerId, data.stage, data.action, data.notes, admin.auth_user_id
    )
    return {
        "success": True,
        "verification": verification,
        "allApproved": all(
            value == "approved" for value in verification.stages.model_dump().values()
        ),
    }


@admin_router.get("/pending-providers")
async def list_pending_providers(
    _admin: AdminUser = Depends(require_admin),
    service: VerificationService = Depends(get_verification_service),
):
    providers = service.list_pending_providers()
    return {
        "providers": [
            PendingProvider(
                **service.to_contact(p).model_dump(),
                specialty=p.specialty,
                createdAt=p.created_at,
                stages=StageStates(**workflow.get_stages(p.verification)),
            )
            for p in providers
        ]
    }


@admin_router.post("/approve-provider")
async def approve_provider(
    data: ProviderActionRequest,
    admin: AdminUser = Depends(require_admin),
    service: VerificationService = Depends(get_verification_service),
):
    verification = service.approve_provider(data.providerId, admin.auth_user_id)
    return {"success": True, "verification": verification}


@admin_router.post("/reject-provider")
async def reject_provider(
    data: ProviderActionRequest,
    admin: AdminUser = Depends(require_admin),
    service: VerificationService = Depends(get_verification_service),
):
    verification = service.reject_provider(data.providerId, data.reason, admin.auth_user_id)
    return {"success": True, "verification": verification}


@admin_router.post("/unapprove-provider")
async def unapprove_provider(
    data: ProviderActionRequest,
    admin: AdminUser = Depends(require_admin),
    service: VerificationService = Depends(get_verification_service),
):
    verification = service.unapprove_provider(data.providerId, admin.auth_user_id)
    return {"success": True, "verification": verification}


@admin_router.post("/blacklist-provider")
async def blacklist_provider(
    data: ProviderActionRequest,
    admin: AdminUser = Depends(require_admin),
    service: VerificationService = Depends(get_verification_service),
):
    verification = service.blacklist_provider(data.providerId, data.reason, admin.auth_user_id)
    return {"success": True, "verification": verification}


@admin_router.post("/remove-blacklist")
async def remove_blacklist(
    data: ProviderActionRequest,
    admin: AdminUser = Depends(require_admin),
    service: VerificationService = Depends(get_verification_service),
):
    verification = service.remove_blacklist(data.providerId, admin.auth_user_id)
    return {"success": True, "verification": verification}


@admin_router.post("/fix-provider-verification")
async def fix_provider_verification(
    data: ProviderActionRequest,
    _admin: AdminUser = Depends(require_admin),
    service: VerificationService = Depends(get_verification_service),
):
    verification, changed = service.fix_provider_verification(data.providerId)
    return {
        "success": True,
        "changed": changed,
        "verification": verification,
        "message": "Verification fixed successfully" if changed else "Verification already consistent",
    }
