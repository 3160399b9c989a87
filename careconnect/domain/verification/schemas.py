"""Verification domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class StageStates(BaseModel):
    stage1: str
    stage2: str
    stage3: str
    stage4: str


class VerificationResponse(BaseModel):
    """Verification state as polled by the pending-status view"""

    providerId: str
    stages: StageStates
    stageData: dict = Field(default_factory=dict)
    reviewNotes: dict = Field(default_factory=dict)
    emailVerified: bool = False
    mobileVerified: bool = False
    approvedAt: Optional[datetime] = None
    verificationStatus: str
    isFullyVerified: bool
    pollIntervalSeconds: int


class SubmitStageRequest(BaseModel):
    stage: str
    data: dict = Field(default_factory=dict)


class SendOtpRequest(BaseModel):
    type: Literal["email", "mobile"]


class VerifyOtpRequest(BaseModel):
    type: Literal["email", "mobile"]
    otp: str = Field(..., min_length=4, max_length=10)


class ReviewStageRequest(BaseModel):
    providerId: str
    stage: str
    action: Literal["approve", "reject"]
    notes: Optional[str] = None


class ProviderActionRequest(BaseModel):
    """Body for the admin approve/reject/blacklist family of actions"""

    providerId: str
    reason: Optional[str] = None


class ProviderContact(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    verificationStatus: str
    verified: bool
    available: bool
    status: str


class PendingProvider(ProviderContact):
    specialty: Optional[str] = None
    createdAt: Optional[datetime] = None
    stages: Optional[StageStates] = None


class AdminVerificationResponse(BaseModel):
    verification: VerificationResponse
    provider: ProviderContact


class PendingVerificationsResponse(BaseModel):
    verifications: list[AdminVerificationResponse]
