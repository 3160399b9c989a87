"""Booking router - service requests for clients, job handling for providers"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import (
    get_current_client,
    get_current_provider,
    require_admin,
    require_verified_provider,
)
from ...database import get_db
from ...models import AdminUser, Client, Provider
from .schemas import (
    AcceptJobRequest,
    AdminCreateRequest,
    BookingResponse,
    CancelRequest,
    CreateRequest,
    RateBookingRequest,
    ReassignRequest,
    UpdateJobNotesRequest,
    UpdateJobStatusRequest,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bookings"])
admin_router = APIRouter(prefix="/admin", tags=["Admin Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


# ============================================================================
# CLIENT REQUESTS
# ============================================================================


@router.post("/requests/create")
async def create_request(
    data: CreateRequest,
    client: Client = Depends(get_current_client),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.create_request(data, client)
    return {"success": True, "booking": BookingResponse.model_validate(booking)}


@router.post("/requests/cancel")
async def cancel_request(
    data: CancelRequest,
    client: Client = Depends(get_current_client),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.cancel_request(data.requestId, client)
    return {"success": True, "booking": BookingResponse.model_validate(booking)}


@router.get("/bookings/client")
async def list_client_bookings(
    client: Client = Depends(get_current_client),
    service: BookingService = Depends(get_booking_service),
):
    return {"bookings": service.list_client_bookings(client)}


@router.post("/bookings/rate")
async def rate_booking(
    data: RateBookingRequest,
    client: Client = Depends(get_current_client),
    service: BookingService = Depends(get_booking_service),
):
    """Rate a completed booking; only the owning client, only once"""
    booking = service.rate_booking(data.bookingId, client, data.rating, data.review)
    return {"success": True, "booking": BookingResponse.model_validate(booking)}


# ============================================================================
# PROVIDER JOBS
# ============================================================================


@router.get("/bookings/provider")
async def list_provider_bookings(
    provider: Provider = Depends(get_current_provider),
    service: BookingService = Depends(get_booking_service),
):
    return {"bookings": service.list_provider_bookings(provider)}


@router.get("/jobs/requests")
async def list_job_requests(
    provider: Provider = Depends(require_verified_provider),
    service: BookingService = Depends(get_booking_service),
):
    """Open requests matching the provider's specialty or skills, newest first"""
    return {"requests": service.list_job_requests(provider)}


@router.post("/jobs/accept")
async def accept_job(
    data: AcceptJobRequest,
    provider: Provider = Depends(require_verified_provider),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.accept_job(data.requestId, provider)
    return {"success": True, "booking": BookingResponse.model_validate(booking)}


@router.post("/jobs/update-status")
async def update_job_status(
    data: UpdateJobStatusRequest,
    provider: Provider = Depends(get_current_provider),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_job_status(data.jobId, data.status, data.notes, provider)
    return {"success": True, "booking": BookingResponse.model_validate(booking)}


@router.post("/jobs/update-notes")
async def update_job_notes(
    data: UpdateJobNotesRequest,
    provider: Provider = Depends(get_current_provider),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_job_notes(data.jobId, data.notes, provider)
    return {"success": True, "booking": BookingResponse.model_validate(booking)}


@router.get("/provider/earnings")
async def get_earnings(
    provider: Provider = Depends(get_current_provider),
    service: BookingService = Depends(get_booking_service),
):
    summary, completed = service.get_earnings(provider)
    return {"earnings": summary, "completedBookings": completed}


# ============================================================================
# ADMIN BOOKING MANAGEMENT
# ============================================================================


@admin_router.post("/bookings/create")
async def admin_create_booking(
    data: AdminCreateRequest,
    admin: AdminUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.admin_create_request(data, admin)
    return {"success": True, "booking": BookingResponse.model_validate(booking)}


@admin_router.get("/booking/{booking_id}")
async def get_admin_booking(
    booking_id: str,
    admin: AdminUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    return {"booking": service.get_admin_booking(booking_id)}


@admin_router.post("/booking/{booking_id}/remove-provider")
async def remove_provider(
    booking_id: str,
    admin: AdminUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.remove_provider(booking_id, admin)
    return {"success": True, "booking": BookingResponse.model_validate(booking)}


@admin_router.post("/booking/{booking_id}/reassign")
async def reassign_booking(
    booking_id: str,
    data: ReassignRequest,
    admin: AdminUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.reassign(booking_id, data.providerId, admin)
    return {"success": True, "booking": BookingResponse.model_validate(booking)}
