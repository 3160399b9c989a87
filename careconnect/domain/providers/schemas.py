"""Provider schemas"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from ..verification.schemas import StageStates


class ProviderPublic(BaseModel):
    """Provider card shown to clients"""

    id: UUID
    name: Optional[str] = None
    specialty: Optional[str] = None
    skills: list[str] = []
    hourlyRate: float = 0
    rating: float = 0
    reviewCount: int = 0
    available: bool = False
    verified: bool = False
    gender: Optional[str] = None
    languages: list[str] = []
    experienceYears: int = 0


class AvailabilityRequest(BaseModel):
    available: bool


class DashboardAccessResponse(BaseModel):
    providerId: str
    hasAccess: bool
    verificationStatus: str
    stages: StageStates
    pollIntervalSeconds: int
