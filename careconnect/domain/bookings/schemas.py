"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_phone


class CreateRequest(BaseModel):
    """Schema for a client's service request"""

    serviceType: str = Field(..., min_length=1, max_length=255)
    serviceId: Optional[str] = None
    serviceTitle: Optional[str] = None
    bookingType: Optional[str] = "scheduled"
    scheduledDate: Optional[str] = None
    scheduledTime: Optional[str] = None
    duration: Optional[float] = Field(default=None, gt=0)
    location: Optional[Union[dict, str]] = None
    additionalDetails: Optional[str] = None
    estimatedCost: float = Field(default=0, ge=0)
    requestFor: Optional[str] = "self"
    recipientName: Optional[str] = None
    recipientPhone: Optional[str] = None
    recipientAddress: Optional[str] = None
    recipientAge: Optional[int] = Field(default=None, ge=0, le=150)
    recipientGender: Optional[str] = None
    providerGenderPreference: Optional[str] = None
    providerLanguagePreference: Optional[str] = None
    paymentId: Optional[str] = None
    orderId: Optional[str] = None
    paymentStatus: Optional[str] = None
    paidAmount: Optional[float] = Field(default=None, ge=0)

    @field_validator("scheduledDate")
    @classmethod
    def validate_date(cls, v):
        if v:
            datetime.strptime(v[:10], "%Y-%m-%d")
        return v

    @field_validator("recipientPhone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_phone(v)
        return v

    def recipient(self) -> Optional[dict]:
        if self.requestFor != "other" and not self.recipientName:
            return None
        return {
            "name": self.recipientName,
            "phone": self.recipientPhone,
            "address": self.recipientAddress,
            "age": self.recipientAge,
            "gender": self.recipientGender,
        }

    def preferences(self) -> dict:
        return {
            k: v
            for k, v in {
                "providerGender": self.providerGenderPreference,
                "providerLanguage": self.providerLanguagePreference,
            }.items()
            if v
        }


class AdminCreateRequest(CreateRequest):
    """A service request an admin books on behalf of a client"""

    clientId: str


class ReassignRequest(BaseModel):
    providerId: str = Field(..., min_length=1)


class CancelRequest(BaseModel):
    requestId: str


class RateBookingRequest(BaseModel):
    bookingId: str
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = Field(default=None, max_length=2000)


class AcceptJobRequest(BaseModel):
    requestId: str


class UpdateJobStatusRequest(BaseModel):
    jobId: str
    status: str
    notes: Optional[str] = None


class UpdateJobNotesRequest(BaseModel):
    jobId: str
    notes: str = Field(..., max_length=5000)


class BookingResponse(BaseModel):
    id: UUID
    client_id: UUID
    provider_id: Optional[UUID] = None
    service_id: Optional[UUID] = None
    service_type: Optional[str] = None
    service_title: Optional[str] = None
    booking_type: Optional[str] = None
    scheduled_date: Optional[str] = None
    scheduled_time: Optional[str] = None
    duration: Optional[float] = None
    status: str
    estimated_cost: Optional[float] = None
    base_price: Optional[float] = None
    minimum_hours: Optional[float] = None
    minimum_fee: Optional[float] = None
    platform_fee: Optional[float] = None
    provider_payout: Optional[float] = None
    location: Optional[Union[dict, str]] = None
    recipient: Optional[dict] = None
    request_for: Optional[str] = None
    additional_details: Optional[str] = None
    preferences: Optional[dict] = None
    provider_notes: Optional[str] = None
    payment_id: Optional[str] = None
    order_id: Optional[str] = None
    payment_status: Optional[str] = None
    paid_amount: Optional[float] = None
    created_by_admin: Optional[bool] = None
    previous_provider_id: Optional[UUID] = None
    reassigned_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    user_rating: Optional[int] = None
    user_review: Optional[str] = None
    rated_at: Optional[datetime] = None
    review_hidden: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingProvider(BaseModel):
    id: UUID
    name: Optional[str] = None
    phone: Optional[str] = None
    rating: Optional[float] = None
    reviewCount: int = 0

    class Config:
        from_attributes = True


class ClientBookingResponse(BookingResponse):
    provider: Optional[BookingProvider] = None
    is_favorite: bool = False


class ProviderBookingResponse(BookingResponse):
    client_name: Optional[str] = None
    client_phone: Optional[str] = None


class AdminBookingResponse(ClientBookingResponse):
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    reassigned_by: Optional[str] = None
    admin_id: Optional[str] = None


class EarningsSummary(BaseModel):
    totalEarnings: float
    platformFees: float
    completedJobs: int
    pendingEarnings: float
    activeJobs: int
    averageRating: float
    totalReviews: int
