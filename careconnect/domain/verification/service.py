"""Verification service - Business logic for the provider verification workflow"""

import hmac
import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...auth_service import AuthIdentity
from ...config import OTP_MAX_ATTEMPTS, OTP_TTL_MINUTES, VERIFICATION_POLL_SECONDS
from ...errors import ForbiddenError, NotFoundError, ValidationError
from ...models import OtpCode, Provider, VerificationRecord
from ...shared.validators import utcnow
from . import workflow
from .repository import VerificationRepository
from .schemas import (
    AdminVerificationResponse,
    ProviderContact,
    StageStates,
    VerificationResponse,
)

logger = logging.getLogger(__name__)


class VerificationService:
    """Service layer for verification business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = VerificationRepository()

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Lookups and serialization
    # ------------------------------------------------------------------

    def get_provider(self, provider_ref: str) -> Provider:
        provider = self.repo.get_provider(self.db, provider_ref)
        if not provider:
            raise NotFoundError("Provider not found", code="PROVIDER_NOT_FOUND")
        return provider

    def ensure_record(self, provider: Provider) -> VerificationRecord:
        """Return the provider's record, adding an all-pending one if missing (not committed)"""
        record = provider.verification or self.repo.get_record(self.db, provider.id)
        if record is None:
            logger.info(f"🆕 Initializing verification record for provider {provider.id}")
            record = workflow.new_record(provider.id)
            self.db.add(record)
            provider.verification = record
        return record

    @staticmethod
    def to_response(record: VerificationRecord, provider: Provider) -> VerificationResponse:
        return VerificationResponse(
            providerId=str(provider.id),
            stages=StageStates(**workflow.get_stages(record)),
            stageData=record.stage_data or {},
            reviewNotes=record.review_notes or {},
            emailVerified=bool(record.email_verified),
            mobileVerified=bool(record.mobile_verified),
            approvedAt=record.approved_at,
            verificationStatus=provider.verification_status,
            isFullyVerified=workflow.is_fully_verified(record, provider),
            pollIntervalSeconds=VERIFICATION_POLL_SECONDS,
        )

    @staticmethod
    def to_contact(provider: Provider) -> ProviderContact:
        return ProviderContact(
            id=str(provider.id),
            name=provider.name,
            email=provider.email,
            phone=provider.phone,
            verificationStatus=provider.verification_status,
            verified=bool(provider.verified),
            available=bool(provider.available),
            status=provider.status,
        )

    # ------------------------------------------------------------------
    # Provider-facing operations
    # ------------------------------------------------------------------

    def get_status(self, provider_ref: str, identity: AuthIdentity) -> VerificationResponse:
        """Verification state for the owning provider or an admin"""
        provider = self.get_provider(provider_ref)
        if provider.auth_user_id != identity.id and not self.repo.is_admin(self.db, identity.id):
            raise ForbiddenError("You can only view your own verification status")

        had_record = provider.verification is not None
        record = self.ensure_record(provider)
        if not had_record:
            self._commit()
        return self.to_response(record, provider)

    def submit_stage(self, provider: Provider, stage: str, data: dict) -> VerificationResponse:
        record = self.ensure_record(provider)
        workflow.submit_stage(record, stage, data, utcnow())
        self._commit()
        logger.info(f"📤 Provider {provider.id} submitted {stage}")
        return self.to_response(record, provider)

    def send_otp(self, provider: Provider, channel: str) -> None:
        self.ensure_record(provider)
        code = f"{secrets.randbelow(1_000_000):06d}"
        self.repo.delete_otps(self.db, provider.id, channel)
        self.db.add(
            OtpCode(
                provider_id=provider.id,
                channel=channel,
                code=code,
                expires_at=utcnow() + timedelta(minutes=OTP_TTL_MINUTES),
            )
        )
        self._commit()
        logger.info(f"📨 OTP issued for provider {provider.id} via {channel}")
        logger.debug(f"OTP for {provider.email if channel == 'email' else provider.phone}: {code}")

    def verify_otp(self, provider: Provider, channel: str, otp: str) -> VerificationResponse:
        stored: Optional[OtpCode] = self.repo.latest_otp(self.db, provider.id, channel)
        if not stored:
            raise ValidationError("OTP not found or expired", code="OTP_NOT_FOUND")
        if stored.expires_at < utcnow():
            raise ValidationError("OTP expired", code="OTP_EXPIRED")
        if not hmac.compare_digest(stored.code, otp.strip()):
            attempts = self.repo.record_failed_attempt(self.db, stored.id)
            if attempts >= OTP_MAX_ATTEMPTS:
                self.repo.delete_otps(self.db, provider.id, channel)
                self._commit()
                logger.warning(
                    f"⚠️ OTP for provider {provider.id} via {channel} discarded after {attempts} attempts"
                )
                raise ValidationError(
                    "Too many attempts. Please request a new code.", code="OTP_ATTEMPTS_EXCEEDED"
                )
            self._commit()
            raise ValidationError("Invalid OTP", code="INVALID_OTP")

        record = self.ensure_record(provider)
        if channel == "email":
            record.email_verified = True
        else:
            record.mobile_verified = True
        self.repo.delete_otps(self.db, provider.id, channel)
        self._commit()
        logger.info(f"✅ Provider {provider.id} verified {channel}")
        return self.to_response(record, provider)

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    def list_pending_verifications(self) -> list[AdminVerificationResponse]:
        return [
            AdminVerificationResponse(
                verification=self.to_response(record, record.provider),
                provider=self.to_contact(record.provider),
            )
            for record in self.repo.get_records_with_submitted_stage(self.db)
        ]

    def get_admin_detail(self, provider_ref: str) -> AdminVerificationResponse:
        provider = self.get_provider(provider_ref)
        if provider.verification is None:
            raise NotFoundError("Verification not found", code="VERIFICATION_NOT_FOUND")
        return AdminVerificationResponse(
            verification=self.to_response(provider.verification, provider),
            provider=self.to_contact(provider),
        )

    def list_pending_providers(self) -> list[Provider]:
        return self.repo.get_pending_providers(self.db)

    def review_stage(
        self, provider_ref: str, stage: str, action: str, notes: Optional[str], reviewer_id: str
    ) -> VerificationResponse:
        provider = self.get_provider(provider_ref)
        if provider.verification is None:
            raise NotFoundError("Verification not found", code="VERIFICATION_NOT_FOUND")
        record = provider.verification
        workflow.review_stage(record, provider, stage, action, notes, reviewer_id, utcnow())
        self._commit()
        logger.info(
            f"📝 Admin {reviewer_id} {action}d {stage} for provider {provider.id} "
            f"(status: {provider.verification_status})"
        )
        return self.to_response(record, provider)

    def approve_provider(self, provider_ref: str, reviewer_id: str) -> VerificationResponse:
        provider = self.get_provider(provider_ref)
        record = self.ensure_record(provider)
        workflow.approve_provider(record, provider, reviewer_id, utcnow())
        self._commit()
        logger.info(f"✅ Provider {provider.id} approved by {reviewer_id}")
        return self.to_response(record, provider)

    def unapprove_provider(self, provider_ref: str, reviewer_id: str) -> VerificationResponse:
        provider = self.get_provider(provider_ref)
        record = self.ensure_record(provider)
        workflow.unapprove_provider(record, provider, reviewer_id, utcnow())
        self._commit()
        logger.info(f"↩️ Provider {provider.id} unapproved by {reviewer_id}")
        return self.to_response(record, provider)

    def reject_provider(self, provider_ref: str, reason: Optional[str], reviewer_id: str):
        provider = self.get_provider(provider_ref)
        record = self.ensure_record(provider)
        workflow.reject_provider(provider, reason, reviewer_id, utcnow())
        self._commit()
        logger.info(f"❌ Provider {provider.id} rejected by {reviewer_id}")
        return self.to_response(record, provider)

    def blacklist_provider(self, provider_ref: str, reason: Optional[str], reviewer_id: str):
        provider = self.get_provider(provider_ref)
        record = self.ensure_record(provider)
        workflow.blacklist_provider(provider, reason, reviewer_id, utcnow())
        self._commit()
        logger.warning(f"🚫 Provider {provider.id} blacklisted by {reviewer_id}: {reason}")
        return self.to_response(record, provider)

    def remove_blacklist(self, provider_ref: str, reviewer_id: str) -> VerificationResponse:
        provider = self.get_provider(provider_ref)
        record = self.ensure_record(provider)
        workflow.remove_blacklist(record, provider)
        self._commit()
        logger.info(f"♻️ Blacklist removed for provider {provider.id} by {reviewer_id}")
        return self.to_response(record, provider)

    def fix_provider_verification(self, provider_ref: str) -> tuple[VerificationResponse, bool]:
        provider = self.get_provider(provider_ref)
        record = self.ensure_record(provider)
        changed = workflow.fix_verification(record, provider, utcnow())
        self._commit()
        if changed:
            logger.info(f"🔧 Verification stages realigned for provider {provider.id}")
        return self.to_response(record, provider), changed
