"""
Admin overview routes - platform counts and raw listings for the admin console
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..domain.bookings.repository import BookingRepository
from ..domain.bookings.schemas import BookingResponse
from ..domain.clients.schemas import ClientResponse
from ..domain.verification.repository import VerificationRepository
from ..errors import NotFoundError
from ..models import (
    BOOKING_COMPLETED,
    BOOKING_PENDING,
    PROVIDER_APPROVED,
    PROVIDER_PENDING,
    AdminUser,
    Booking,
    Client,
    EmergencyAlert,
    Provider,
)
from ..schemas import AdminProviderRow, ToggleStatusRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/stats")
async def get_stats(
    admin: AdminUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Headline counts for the admin dashboard"""
    total_clients = db.query(func.count(Client.id)).scalar() or 0
    total_providers = db.query(func.count(Provider.id)).scalar() or 0
    approved_providers = (
        db.query(func.count(Provider.id))
        .filter(Provider.verification_status == PROVIDER_APPROVED)
        .scalar()
        or 0
    )
    pending_providers = (
        db.query(func.count(Provider.id))
        .filter(Provider.verification_status == PROVIDER_PENDING)
        .scalar()
        or 0
    )

    total_bookings = db.query(func.count(Booking.id)).scalar() or 0
    pending_bookings = (
        db.query(func.count(Booking.id)).filter(Booking.status == BOOKING_PENDING).scalar() or 0
    )
    completed_bookings = (
        db.query(func.count(Booking.id)).filter(Booking.status == BOOKING_COMPLETED).scalar() or 0
    )

    # Revenue is the platform's cut of completed jobs
    platform_revenue = (
        db.query(func.sum(Booking.platform_fee))
        .filter(Booking.status == BOOKING_COMPLETED)
        .scalar()
        or 0
    )
    active_alerts = (
        db.query(func.count(EmergencyAlert.id)).filter(EmergencyAlert.status == "active").scalar()
        or 0
    )

    return {
        "totalClients": total_clients,
        "totalProviders": total_providers,
        "approvedProviders": approved_providers,
        "pendingProviders": pending_providers,
        "totalBookings": total_bookings,
        "pendingBookings": pending_bookings,
        "completedBookings": completed_bookings,
        "platformRevenue": round(float(platform_revenue), 2),
        "activeEmergencyAlerts": active_alerts,
    }


@router.get("/clients")
async def list_clients(
    admin: AdminUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    clients = db.query(Client).order_by(Client.created_at.desc()).all()
    return {"clients": [ClientResponse.model_validate(c) for c in clients]}


@router.get("/providers")
async def list_providers(
    status: str = Query(None, description="Filter by verification status"),
    admin: AdminUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Provider)
    if status:
        query = query.filter(Provider.verification_status == status)
    providers = query.order_by(Provider.created_at.desc()).all()
    return {"providers": [AdminProviderRow.model_validate(p) for p in providers]}


@router.get("/bookings")
async def list_bookings(
    status: str = Query(None, description="Filter by booking status"),
    limit: int = Query(200, ge=1, le=1000),
    admin: AdminUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Booking)
    if status:
        query = query.filter(Booking.status == status)
    bookings = query.order_by(Booking.created_at.desc()).limit(limit).all()
    logger.debug(f"📋 Admin {admin.email} listed {len(bookings)} bookings")
    return {"bookings": [BookingResponse.model_validate(b) for b in bookings]}


def _find_account(db: Session, user_ref: str):
    """A client or provider by row id or auth user id, with its role"""
    client = BookingRepository.get_client(db, user_ref)
    if client is not None:
        return client, "client"

    provider = VerificationRepository.get_provider(db, user_ref)
    if provider is not None:
        return provider, "provider"
    return None, None


@router.post("/toggle-status")
async def toggle_status(
    data: ToggleStatusRequest,
    admin: AdminUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Flip a client or provider account between active and inactive"""
    account, role = _find_account(db, data.userId)
    if account is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")

    account.status = "inactive" if account.status == "active" else "active"
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"🔁 Admin {admin.auth_user_id} set {role} {account.id} to {account.status}")
    return {
        "success": True,
        "user": {"id": str(account.id), "role": role, "status": account.status},
    }
