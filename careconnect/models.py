import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Verification stage states
STAGE_PENDING = "pending"
STAGE_SUBMITTED = "submitted"
STAGE_APPROVED = "approved"
STAGE_REJECTED = "rejected"

# Provider account-level verification status
PROVIDER_PENDING = "pending"
PROVIDER_APPROVED = "approved"
PROVIDER_REJECTED = "rejected"
PROVIDER_BLACKLISTED = "blacklisted"

# Booking status
BOOKING_PENDING = "pending"
BOOKING_ACCEPTED = "accepted"
BOOKING_IN_PROGRESS = "in-progress"
BOOKING_COMPLETED = "completed"
BOOKING_CANCELLED = "cancelled"


class Client(Base):
    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    auth_user_id = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    phone = Column(String(50), nullable=True, index=True)
    phone_verified = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default="active", nullable=False)  # active, inactive
    default_location_id = Column(Uuid, nullable=True)
    avatar_url = Column(String(500), nullable=True)
    metadata_ = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    locations = relationship(
        "ClientLocation", back_populates="client", cascade="all, delete-orphan"
    )
    family_members = relationship(
        "FamilyMember", back_populates="client", cascade="all, delete-orphan"
    )
    favorites = relationship("Favorite", back_populates="client", cascade="all, delete-orphan")
    wallet = relationship(
        "WalletAccount", back_populates="client", uselist=False, cascade="all, delete-orphan"
    )
    bookings = relationship("Booking", back_populates="client", cascade="all, delete-orphan")


class ClientLocation(Base):
    __tablename__ = "client_locations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    label = Column(String(255), nullable=True)
    address = Column(JSON, nullable=True)
    latitude = Column(Numeric(10, 7), nullable=True)
    longitude = Column(Numeric(10, 7), nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)
    metadata_ = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="locations")


class FamilyMember(Base):
    __tablename__ = "family_members"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    relation = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    dob = Column(Date, nullable=True)
    metadata_ = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="family_members")


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("client_id", "provider_id", name="uq_favorite"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider_id = Column(Uuid, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    client = relationship("Client", back_populates="favorites")


class WalletAccount(Base):
    __tablename__ = "wallet_accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    balance = Column(Numeric(14, 2), default=0, nullable=False)
    currency = Column(String(3), default="INR", nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="wallet")
    transactions = relationship(
        "WalletTransaction",
        back_populates="wallet",
        cascade="all, delete-orphan",
        order_by="WalletTransaction.created_at.desc()",
    )


class WalletTransaction(Base):
    """Append-only ledger row; never updated after insert"""

    __tablename__ = "wallet_transactions"
    __table_args__ = (UniqueConstraint("wallet_id", "reference", name="uq_wallet_reference"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    wallet_id = Column(
        Uuid, ForeignKey("wallet_accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(String(10), nullable=False)  # credit, debit
    amount = Column(Numeric(14, 2), nullable=False)
    balance_after = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(3), default="INR", nullable=False)
    description = Column(Text, nullable=True)
    # Payment id / caller-supplied operation id; repeated references are not re-applied
    reference = Column(String(255), nullable=True)
    booking_id = Column(Uuid, nullable=True)
    status = Column(String(20), default="completed", index=True)
    metadata_ = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, server_default=func.now())

    wallet = relationship("WalletAccount", back_populates="transactions")


class Provider(Base):
    __tablename__ = "providers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    auth_user_id = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    gender = Column(String(20), nullable=True)
    specialty = Column(String(255), nullable=True)
    skills = Column(JSON, default=list)
    hourly_rate = Column(Float, default=0)
    experience_years = Column(Integer, default=0)
    experience_details = Column(Text, nullable=True)
    certifications = Column(JSON, default=list)
    languages = Column(JSON, default=list)

    verification_status = Column(String(20), default=PROVIDER_PENDING, nullable=False, index=True)
    verified = Column(Boolean, default=False, nullable=False)
    available = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default="active", nullable=False)  # active, inactive
    verified_at = Column(DateTime, nullable=True)

    rating = Column(Float, default=0)
    total_reviews = Column(Integer, default=0)

    # Admin audit trail
    rejection_reason = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String(64), nullable=True)
    blacklist_reason = Column(Text, nullable=True)
    blacklisted_at = Column(DateTime, nullable=True)
    blacklisted_by = Column(String(64), nullable=True)
    unapproved_at = Column(DateTime, nullable=True)
    unapproved_by = Column(String(64), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    verification = relationship(
        "VerificationRecord",
        back_populates="provider",
        uselist=False,
        cascade="all, delete-orphan",
    )
    bookings = relationship("Booking", back_populates="provider")


class VerificationRecord(Base):
    __tablename__ = "verification_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    provider_id = Column(
        Uuid, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    stage1 = Column(String(20), default=STAGE_PENDING, nullable=False)  # contact
    stage2 = Column(String(20), default=STAGE_PENDING, nullable=False)  # identity / background
    stage3 = Column(String(20), default=STAGE_PENDING, nullable=False)  # expertise
    stage4 = Column(String(20), default=STAGE_PENDING, nullable=False)  # behavioral
    stage_data = Column(JSON, default=dict)
    review_notes = Column(JSON, default=dict)
    email_verified = Column(Boolean, default=False, nullable=False)
    mobile_verified = Column(Boolean, default=False, nullable=False)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="verification")


class OtpCode(Base):
    __tablename__ = "otp_codes"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(
        Uuid, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    channel = Column(String(10), nullable=False)  # email, mobile
    code = Column(String(10), nullable=False)
    failed_attempts = Column(Integer, default=0, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Service(Base):
    __tablename__ = "services"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    icon = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    base_price = Column(Float, nullable=True)
    minimum_hours = Column(Float, nullable=True)
    minimum_fee = Column(Float, nullable=True)
    platform_fee_percentage = Column(Float, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider_id = Column(Uuid, ForeignKey("providers.id"), nullable=True, index=True)
    service_id = Column(Uuid, ForeignKey("services.id", ondelete="SET NULL"), nullable=True)
    service_type = Column(String(255), nullable=True)
    service_title = Column(String(255), nullable=True)
    booking_type = Column(String(50), default="scheduled")
    scheduled_date = Column(String(32), nullable=True, index=True)
    scheduled_time = Column(String(16), nullable=True)
    duration = Column(Float, nullable=True)
    status = Column(String(20), default=BOOKING_PENDING, nullable=False, index=True)

    estimated_cost = Column(Float, default=0)
    base_price = Column(Float, nullable=True)
    minimum_hours = Column(Float, nullable=True)
    minimum_fee = Column(Float, nullable=True)
    platform_fee = Column(Float, nullable=True)
    provider_payout = Column(Float, nullable=True)

    location = Column(JSON, nullable=True)
    recipient = Column(JSON, nullable=True)
    request_for = Column(String(20), default="self")
    additional_details = Column(Text, nullable=True)
    preferences = Column(JSON, default=dict)
    provider_notes = Column(Text, nullable=True)

    payment_id = Column(String(255), nullable=True)
    order_id = Column(String(255), nullable=True)
    payment_status = Column(String(20), default="pending")
    paid_amount = Column(Float, default=0)

    created_by_admin = Column(Boolean, default=False)
    admin_id = Column(String(64), nullable=True)
    previous_provider_id = Column(Uuid, nullable=True)
    reassigned_at = Column(DateTime, nullable=True)
    reassigned_by = Column(String(64), nullable=True)

    accepted_at = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    notes_updated_at = Column(DateTime, nullable=True)

    # Set once by the owning client after completion; rated_at survives review deletion
    user_rating = Column(Integer, nullable=True)
    user_review = Column(Text, nullable=True)
    rated_at = Column(DateTime, nullable=True)
    review_hidden = Column(Boolean, default=False, nullable=False)
    review_hidden_at = Column(DateTime, nullable=True)
    review_hidden_by = Column(String(64), nullable=True)
    review_hidden_reason = Column(String(500), nullable=True)

    metadata_ = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="bookings")
    provider = relationship("Provider", back_populates="bookings")
    service = relationship("Service")


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    auth_user_id = Column(String(64), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=True)
    role_name = Column(String(100), default="Super Admin")
    status = Column(String(20), default="active", nullable=False)  # active, inactive, suspended
    created_at = Column(DateTime, server_default=func.now())


class EmergencyAlert(Base):
    __tablename__ = "emergency_alerts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    booking_id = Column(Uuid, nullable=True)
    message = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    status = Column(String(20), default="active", nullable=False, index=True)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    client = relationship("Client")


class PaymentRecord(Base):
    __tablename__ = "payment_records"

    id = Column(Integer, primary_key=True, index=True)
    payment_id = Column(String(255), unique=True, nullable=False)
    order_id = Column(String(255), nullable=False)
    auth_user_id = Column(String(64), nullable=False, index=True)
    status = Column(String(20), default="success")
    created_at = Column(DateTime, server_default=func.now())


class PlatformSetting(Base):
    """Admin-editable platform switches, one JSON value per key"""

    __tablename__ = "platform_settings"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_by = Column(String(64), nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
