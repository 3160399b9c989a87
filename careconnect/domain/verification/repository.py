"""Verification repository - Database operations for providers and their verification records"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import (
    PROVIDER_PENDING,
    STAGE_SUBMITTED,
    AdminUser,
    OtpCode,
    Provider,
    VerificationRecord,
)
from ...shared.validators import parse_uuid


class VerificationRepository:
    """Repository for verification database operations"""

    @staticmethod
    def get_provider(db: Session, provider_ref: str) -> Optional[Provider]:
        """Look a provider up by row id or by auth user id"""
        provider_uuid = parse_uuid(provider_ref)
        conditions = [Provider.auth_user_id == str(provider_ref)]
        if provider_uuid:
            conditions.append(Provider.id == provider_uuid)
        return (
            db.query(Provider)
            .options(joinedload(Provider.verification))
            .filter(or_(*conditions))
            .first()
        )

    @staticmethod
    def get_record(db: Session, provider_id) -> Optional[VerificationRecord]:
        return (
            db.query(VerificationRecord)
            .filter(VerificationRecord.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def get_records_with_submitted_stage(db: Session) -> list[VerificationRecord]:
        """Records with at least one stage awaiting review, oldest first"""
        return (
            db.query(VerificationRecord)
            .options(joinedload(VerificationRecord.provider))
            .filter(
                or_(
                    VerificationRecord.stage1 == STAGE_SUBMITTED,
                    VerificationRecord.stage2 == STAGE_SUBMITTED,
                    VerificationRecord.stage3 == STAGE_SUBMITTED,
                    VerificationRecord.stage4 == STAGE_SUBMITTED,
                )
            )
            .order_by(VerificationRecord.updated_at.asc())
            .all()
        )

    @staticmethod
    def get_pending_providers(db: Session) -> list[Provider]:
        return (
            db.query(Provider)
            .options(joinedload(Provider.verification))
            .filter(Provider.verification_status == PROVIDER_PENDING)
            .order_by(Provider.created_at.desc())
            .all()
        )

    @staticmethod
    def is_admin(db: Session, auth_user_id: str) -> bool:
        return (
            db.query(AdminUser.id)
            .filter(AdminUser.auth_user_id == auth_user_id, AdminUser.status == "active")
            .first()
            is not None
        )

    @staticmethod
    def latest_otp(db: Session, provider_id, channel: str) -> Optional[OtpCode]:
        return (
            db.query(OtpCode)
            .filter(OtpCode.provider_id == provider_id, OtpCode.channel == channel)
            .order_by(OtpCode.id.desc())
            .first()
        )

    @staticmethod
    def delete_otps(db: Session, provider_id, channel: str) -> None:
        db.query(OtpCode).filter(
            OtpCode.provider_id == provider_id, OtpCode.channel == channel
        ).delete(synchronize_session=False)

    @staticmethod
    def record_failed_attempt(db: Session, otp_id) -> int:
        """Increment the wrong-guess counter in SQL and return the new count"""
        db.query(OtpCode).filter(OtpCode.id == otp_id).update(
            {OtpCode.failed_attempts: OtpCode.failed_attempts + 1}, synchronize_session=False
        )
        return db.query(OtpCode.failed_attempts).filter(OtpCode.id == otp_id).scalar() or 0
