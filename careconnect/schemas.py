from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .shared.validators import validate_email, validate_phone


class SignupBase(BaseModel):
    email: str
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_phone(v)
        return v


class ClientSignup(SignupBase):
    address: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    gender: Optional[str] = None


class ProviderSignup(SignupBase):
    """Provider registration; documents and skills pre-fill the verification stages"""

    emailVerified: bool = False
    mobileVerified: bool = False
    address: Optional[str] = None
    gender: Optional[str] = None
    idCardNumber: Optional[str] = None
    profilePhoto: Optional[str] = None
    idCardCopy: Optional[str] = None
    specialty: Optional[str] = None
    skills: list[str] = []
    experienceYears: int = Field(default=0, ge=0, le=80)
    experienceDetails: Optional[str] = None
    hourlyRate: float = Field(default=0, ge=0)
    certifications: list[str] = []
    languages: list[str] = []


class AdminInit(BaseModel):
    email: str
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)


class EmailCheck(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)


class SignupUser(BaseModel):
    id: str
    email: Optional[str] = None
    role: str


class EmergencyAlertCreate(BaseModel):
    message: Optional[str] = Field(default=None, max_length=2000)
    bookingId: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class ResolveAlertRequest(BaseModel):
    alertId: str


class EmergencyAlertResponse(BaseModel):
    id: UUID
    client_id: UUID
    booking_id: Optional[UUID] = None
    message: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: str
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentVerifyRequest(BaseModel):
    """Callback fields posted by the checkout widget"""

    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)


class AdminProviderRow(BaseModel):
    id: UUID
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    specialty: Optional[str] = None
    verification_status: str
    verified: bool
    available: bool
    status: str
    rating: Optional[float] = None
    total_reviews: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlatformSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value"""

    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    currencySymbol: Optional[str] = Field(default=None, min_length=1, max_length=5)
    enableProviderSearch: Optional[bool] = None
    enableClientWallet: Optional[bool] = None
    enableProviderWallet: Optional[bool] = None
    mapboxAccessToken: Optional[str] = Field(default=None, max_length=500)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v):
        if v:
            return v.upper()
        return v


class ToggleStatusRequest(BaseModel):
    userId: str = Field(..., min_length=1)
