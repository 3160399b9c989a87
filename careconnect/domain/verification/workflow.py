"""
Provider verification state machine.

Each provider has four stages (contact, identity/background, expertise,
behavioral), each one of pending/submitted/approved/rejected. Providers move a
stage to ``submitted``; admins move a submitted stage to approved or rejected.
The account-level fields on ``Provider`` (verification_status, verified,
available) are only ever changed through the functions in this module, in the
same unit of work as the stage change that caused them.

Functions here mutate ORM objects in place and never commit; callers own the
transaction.
"""

from datetime import datetime
from typing import Optional

from ...errors import ConflictError, ValidationError
from ...models import (
    PROVIDER_APPROVED,
    PROVIDER_BLACKLISTED,
    PROVIDER_PENDING,
    PROVIDER_REJECTED,
    STAGE_APPROVED,
    STAGE_PENDING,
    STAGE_REJECTED,
    STAGE_SUBMITTED,
    Provider,
    VerificationRecord,
)

STAGES = ("stage1", "stage2", "stage3", "stage4")

STAGE_NAMES = {
    "stage1": "contact",
    "stage2": "identity",
    "stage3": "expertise",
    "stage4": "behavioral",
}

# Stage states a provider may (re)submit from
PROVIDER_SUBMITTABLE = {STAGE_PENDING, STAGE_SUBMITTED, STAGE_REJECTED}

REVIEW_ACTIONS = {"approve": STAGE_APPROVED, "reject": STAGE_REJECTED}


def _check_stage(stage: str) -> str:
    if stage not in STAGES:
        raise ValidationError(f"Unknown verification stage: {stage}", code="INVALID_STAGE")
    return stage


def get_stages(record: Optional[VerificationRecord]) -> dict:
    if record is None:
        return {stage: STAGE_PENDING for stage in STAGES}
    return {stage: getattr(record, stage) for stage in STAGES}


def _set_all_stages(record: VerificationRecord, state: str) -> None:
    for stage in STAGES:
        setattr(record, stage, state)


def new_record(provider_id, stages: Optional[dict] = None, stage_data: Optional[dict] = None):
    """An all-pending record unless initial stage states are given"""
    record = VerificationRecord(provider_id=provider_id, stage_data=stage_data or {}, review_notes={})
    for stage in STAGES:
        setattr(record, stage, (stages or {}).get(stage, STAGE_PENDING))
    return record


def is_fully_verified(record: Optional[VerificationRecord], provider: Optional[Provider]) -> bool:
    """All four stages approved and the account itself approved"""
    if record is None or provider is None:
        return False
    stages_approved = all(value == STAGE_APPROVED for value in get_stages(record).values())
    return stages_approved and provider.verification_status == PROVIDER_APPROVED


def submit_stage(record: VerificationRecord, stage: str, data: dict, now: datetime) -> None:
    _check_stage(stage)
    current = getattr(record, stage)
    if current not in PROVIDER_SUBMITTABLE:
        raise ConflictError(
            f"Cannot submit {stage} while it is {current}", code="INVALID_STAGE_TRANSITION"
        )
    if stage == "stage1" and not (record.email_verified and record.mobile_verified):
        raise ValidationError(
            "Email and mobile number must be verified first", code="CONTACT_NOT_VERIFIED"
        )

    stage_data = dict(record.stage_data or {})
    stage_data[stage] = {**(data or {}), "submittedAt": now.isoformat()}
    record.stage_data = stage_data
    setattr(record, stage, STAGE_SUBMITTED)


def recompute_account_status(record: VerificationRecord, provider: Provider, now: datetime) -> None:
    """Derive verification_status/verified/available from the stage states"""
    if provider.verification_status == PROVIDER_BLACKLISTED:
        return

    stages = get_stages(record).values()
    if all(value == STAGE_APPROVED for value in stages):
        provider.verification_status = PROVIDER_APPROVED
        provider.verified = True
        provider.available = True
        provider.verified_at = now
        record.approved_at = now
    elif any(value == STAGE_REJECTED for value in stages):
        provider.verification_status = PROVIDER_REJECTED
        provider.verified = False
        provider.available = False


def review_stage(
    record: VerificationRecord,
    provider: Provider,
    stage: str,
    action: str,
    notes: Optional[str],
    reviewer_id: str,
    now: datetime,
) -> None:
    _check_stage(stage)
    if action not in REVIEW_ACTIONS:
        raise ValidationError("Action must be 'approve' or 'reject'", code="INVALID_ACTION")

    current = getattr(record, stage)
    if current != STAGE_SUBMITTED:
        raise ConflictError(
            f"Only submitted stages can be reviewed ({stage} is {current})",
            code="INVALID_STAGE_TRANSITION",
        )

    setattr(record, stage, REVIEW_ACTIONS[action])
    review_notes = dict(record.review_notes or {})
    review_notes[stage] = {
        "action": action,
        "notes": notes,
        "reviewedBy": reviewer_id,
        "reviewedAt": now.isoformat(),
    }
    record.review_notes = review_notes

    recompute_account_status(record, provider, now)


def approve_provider(record: VerificationRecord, provider: Provider, reviewer_id: str, now: datetime):
    _set_all_stages(record, STAGE_APPROVED)
    record.approved_at = now
    provider.verification_status = PROVIDER_APPROVED
    provider.verified = True
    provider.available = True
    provider.verified_at = now
    provider.reviewed_at = now
    provider.reviewed_by = reviewer_id


def unapprove_provider(record: VerificationRecord, provider: Provider, reviewer_id: str, now: datetime):
    """Send an approved provider back for a full re-review"""
    if provider.verification_status != PROVIDER_APPROVED:
        raise ConflictError("Provider is not approved", code="INVALID_STATUS_TRANSITION")

    # Stages go back to submitted so the existing evidence can be re-reviewed
    _set_all_stages(record, STAGE_SUBMITTED)
    record.approved_at = None
    provider.verification_status = PROVIDER_PENDING
    provider.verified = False
    provider.available = False
    provider.unapproved_at = now
    provider.unapproved_by = reviewer_id


def reject_provider(provider: Provider, reason: Optional[str], reviewer_id: str, now: datetime):
    if provider.verification_status == PROVIDER_BLACKLISTED:
        raise ConflictError("Provider is blacklisted", code="INVALID_STATUS_TRANSITION")
    provider.verification_status = PROVIDER_REJECTED
    provider.verified = False
    provider.available = False
    provider.rejection_reason = reason
    provider.reviewed_at = now
    provider.reviewed_by = reviewer_id


def blacklist_provider(provider: Provider, reason: Optional[str], reviewer_id: str, now: datetime):
    if provider.verification_status == PROVIDER_BLACKLISTED:
        raise ConflictError("Provider is already blacklisted", code="INVALID_STATUS_TRANSITION")
    provider.verification_status = PROVIDER_BLACKLISTED
    provider.status = "inactive"
    provider.available = False
    provider.blacklist_reason = reason
    provider.blacklisted_at = now
    provider.blacklisted_by = reviewer_id


def remove_blacklist(record: VerificationRecord, provider: Provider):
    if provider.verification_status != PROVIDER_BLACKLISTED:
        raise ConflictError("Provider is not blacklisted", code="INVALID_STATUS_TRANSITION")
    provider.verification_status = PROVIDER_APPROVED
    provider.status = "active"
    provider.verified = all(value == STAGE_APPROVED for value in get_stages(record).values())
    provider.blacklist_reason = None
    provider.blacklisted_at = None
    provider.blacklisted_by = None


def fix_verification(record: VerificationRecord, provider: Provider, now: datetime) -> bool:
    """Force the stages of an approved provider to approved; returns True if anything changed"""
    if provider.verification_status != PROVIDER_APPROVED:
        return False
    if all(value == STAGE_APPROVED for value in get_stages(record).values()):
        return False
    _set_all_stages(record, STAGE_APPROVED)
    record.email_verified = True
    record.mobile_verified = True
    record.approved_at = record.approved_at or now
    provider.verified = True
    return True
