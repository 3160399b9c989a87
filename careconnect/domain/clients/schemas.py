"""Client domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_phone


def normalize_address(value):
    """A bare string is stored as a street/full_address pair"""
    if isinstance(value, str):
        value = value.strip()
        return {"street": value, "full_address": value} if value else None
    return value


class ClientResponse(BaseModel):
    id: UUID
    auth_user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    phone_verified: bool = False
    status: Optional[str] = None
    default_location_id: Optional[UUID] = None
    avatar_url: Optional[str] = None
    metadata: Optional[dict] = Field(default=None, validation_alias="metadata_")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LocationCreate(BaseModel):
    """Schema for saving a client location; ``name`` is accepted as an alias of ``label``"""

    label: Optional[str] = None
    name: Optional[str] = None
    address: Optional[Union[str, dict]] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    isDefault: Optional[bool] = None
    isPrimary: Optional[bool] = None
    metadata: Optional[dict] = None

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return normalize_address(v)

    @property
    def resolved_label(self) -> Optional[str]:
        return self.label or self.name

    @property
    def resolved_default(self) -> Optional[bool]:
        if self.isDefault is not None:
            return self.isDefault
        return self.isPrimary


class LocationUpdate(LocationCreate):
    pass


class LocationResponse(BaseModel):
    id: UUID
    client_id: UUID
    label: Optional[str] = None
    address: Optional[dict] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_default: bool = False
    metadata: Optional[dict] = Field(default=None, validation_alias="metadata_")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FamilyMemberCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    relation: Optional[str] = None
    relationship: Optional[str] = None
    phone: Optional[str] = None
    dob: Optional[date] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    gender: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_phone(v)
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    def extra_metadata(self) -> dict:
        return {
            "age": self.age,
            "gender": self.gender,
            "address": self.address,
            "notes": self.notes or "",
        }


class FamilyMemberUpdate(FamilyMemberCreate):
    name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v else v


class FamilyMemberResponse(BaseModel):
    id: UUID
    client_id: UUID
    name: str
    relation: Optional[str] = None
    phone: Optional[str] = None
    dob: Optional[date] = None
    metadata: Optional[dict] = Field(default=None, validation_alias="metadata_")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FavoriteRequest(BaseModel):
    providerId: str


class FavoriteProvider(BaseModel):
    provider_id: UUID
    name: Optional[str] = None
    specialty: Optional[str] = None
    rating: Optional[float] = None
    total_reviews: Optional[int] = None
    available: Optional[bool] = None
    created_at: Optional[datetime] = None


class ProfileResponse(BaseModel):
    client: ClientResponse
    locations: list[LocationResponse]
    familyMembers: list[FamilyMemberResponse]
