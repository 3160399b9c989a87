"""Review schemas - a review is the rating stored on a completed booking"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class HideReviewRequest(BaseModel):
    reviewId: str
    reason: Optional[str] = Field(default=None, max_length=500)


class UnhideReviewRequest(BaseModel):
    reviewId: str


class ReviewResponse(BaseModel):
    id: UUID
    booking_id: UUID
    service_title: Optional[str] = None
    rating: int
    review: Optional[str] = None
    rated_at: Optional[datetime] = None
    client_name: Optional[str] = None


class AdminReviewResponse(ReviewResponse):
    client_id: UUID
    provider_id: Optional[UUID] = None
    provider_name: Optional[str] = None
    hidden: bool = False
    hidden_at: Optional[datetime] = None
    hidden_by: Optional[str] = None
    hidden_reason: Optional[str] = None
