"""Service catalog schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    icon: Optional[str] = None
    description: Optional[str] = None
    basePrice: Optional[float] = Field(default=None, ge=0)
    minimumHours: Optional[float] = Field(default=None, ge=0)
    minimumFee: Optional[float] = Field(default=None, ge=0)
    platformFeePercentage: Optional[float] = Field(default=None, ge=0, le=100)


class ServiceUpdate(ServiceCreate):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)


class ServiceResponse(BaseModel):
    id: UUID
    title: str
    icon: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[float] = None
    minimum_hours: Optional[float] = None
    minimum_fee: Optional[float] = None
    platform_fee_percentage: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
