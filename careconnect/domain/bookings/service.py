"""Booking service - Business logic for service requests, jobs and ratings"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ...models import (
    BOOKING_ACCEPTED,
    BOOKING_CANCELLED,
    BOOKING_COMPLETED,
    BOOKING_IN_PROGRESS,
    BOOKING_PENDING,
    AdminUser,
    Booking,
    Client,
    Provider,
)
from ...shared.validators import parse_uuid, utcnow
from ..catalog.service import CatalogService, compute_payout
from ..clients.repository import ClientRepository
from ..verification.repository import VerificationRepository
from ..verification.workflow import is_fully_verified
from .lifecycle import (
    ADMIN_REASSIGN_TRANSITIONS,
    ADMIN_UNASSIGN_TRANSITIONS,
    BOOKING_STATUSES,
    CLIENT_TRANSITIONS,
    PROVIDER_TRANSITIONS,
    check_transition,
    job_matches,
)
from .repository import BookingRepository
from .schemas import (
    AdminBookingResponse,
    AdminCreateRequest,
    BookingProvider,
    BookingResponse,
    ClientBookingResponse,
    CreateRequest,
    EarningsSummary,
    ProviderBookingResponse,
)

logger = logging.getLogger(__name__)


def _provider_summary(provider: Provider) -> BookingProvider:
    return BookingProvider(
        id=provider.id,
        name=provider.name or "Unknown",
        phone=provider.phone,
        rating=provider.rating,
        reviewCount=provider.total_reviews or 0,
    )


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.catalog = CatalogService(db)

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _find_booking(self, booking_id: str) -> Booking:
        booking_uuid = parse_uuid(booking_id)
        booking = booking_uuid and self.repo.get_booking(self.db, booking_uuid)
        if not booking:
            raise NotFoundError("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    def _find_provider_job(self, job_id: str, provider: Provider) -> Booking:
        booking = self._find_booking(job_id)
        if booking.provider_id != provider.id:
            raise ForbiddenError("You can only update your own jobs", code="NOT_JOB_PROVIDER")
        return booking

    # ------------------------------------------------------------------
    # Client side
    # ------------------------------------------------------------------

    def create_request(
        self, data: CreateRequest, client: Client, admin: Optional[AdminUser] = None
    ) -> Booking:
        """Create a pending, unassigned booking priced from the catalog service when known"""
        service = self.catalog.find_service(data.serviceId or data.serviceType)

        booking = Booking(
            client_id=client.id,
            provider_id=None,
            service_id=service.id if service else None,
            service_type=data.serviceType,
            service_title=data.serviceTitle or (service.title if service else data.serviceType),
            booking_type=data.bookingType or "scheduled",
            scheduled_date=data.scheduledDate,
            scheduled_time=data.scheduledTime,
            duration=data.duration,
            status=BOOKING_PENDING,
            estimated_cost=data.estimatedCost,
            base_price=service.base_price if service else None,
            minimum_hours=service.minimum_hours if service else None,
            minimum_fee=service.minimum_fee if service else None,
            location=data.location,
            recipient=data.recipient(),
            request_for=data.requestFor or "self",
            additional_details=data.additionalDetails,
            preferences=data.preferences(),
            payment_id=data.paymentId,
            order_id=data.orderId,
            payment_status=data.paymentStatus or "pending",
            paid_amount=data.paidAmount if data.paidAmount is not None else 0,
            created_by_admin=admin is not None,
            admin_id=admin.auth_user_id if admin else None,
        )
        self.db.add(booking)
        self._commit()
        self.db.refresh(booking)
        logger.info(f"📥 Booking {booking.id} created by client {client.id} ({data.serviceType})")
        return booking

    def cancel_request(self, request_id: str, client: Client) -> Booking:
        booking = self._find_booking(request_id)
        if booking.client_id != client.id:
            raise ForbiddenError("Not your booking", code="NOT_BOOKING_OWNER")

        check_transition(booking.status, BOOKING_CANCELLED, CLIENT_TRANSITIONS)
        booking.status = BOOKING_CANCELLED
        booking.cancelled_at = utcnow()
        self._commit()
        self.db.refresh(booking)
        logger.info(f"🚫 Booking {booking.id} cancelled by client")
        return booking

    def list_client_bookings(self, client: Client) -> list[ClientBookingResponse]:
        favorites = ClientRepository.get_favorite_provider_ids(self.db, client.id)
        results = []
        for booking in self.repo.get_client_bookings(self.db, client.id):
            item = ClientBookingResponse.model_validate(booking)
            if booking.provider is not None:
                item.provider = _provider_summary(booking.provider)
                item.is_favorite = booking.provider_id in favorites
            results.append(item)
        return results

    def rate_booking(
        self, booking_id: str, client: Client, rating: int, review: Optional[str]
    ) -> Booking:
        """
        Set the rating on a completed booking exactly once.

        The write is a single conditional UPDATE; when it matches nothing the
        booking is re-read only to report why, and is left unchanged.
        """
        booking_uuid = parse_uuid(booking_id)
        updated = 0
        if booking_uuid:
            updated = self.repo.set_rating_if_allowed(
                self.db,
                booking_uuid,
                client.id,
                {"user_rating": rating, "user_review": review, "rated_at": utcnow()},
            )

        if not updated:
            self.db.rollback()
            booking = booking_uuid and self.repo.get_booking(self.db, booking_uuid)
            if not booking:
                raise NotFoundError("Booking not found", code="BOOKING_NOT_FOUND")
            if booking.client_id != client.id:
                raise ForbiddenError("Not your booking", code="NOT_BOOKING_OWNER")
            if booking.status != BOOKING_COMPLETED:
                raise ConflictError(
                    "Can only rate completed bookings", code="BOOKING_NOT_COMPLETED"
                )
            raise ConflictError("Booking has already been rated", code="ALREADY_RATED")

        booking = self.repo.get_booking(self.db, booking_uuid)
        self.db.refresh(booking)
        if booking.provider_id:
            self.repo.refresh_provider_rating(self.db, booking.provider_id)
        self._commit()
        self.db.refresh(booking)
        logger.info(f"⭐ Booking {booking.id} rated {rating}")
        return booking

    # ------------------------------------------------------------------
    # Provider side
    # ------------------------------------------------------------------

    def list_job_requests(self, provider: Provider) -> list[ProviderBookingResponse]:
        results = []
        for booking in self.repo.get_open_requests(self.db):
            if not (
                job_matches(booking.service_type, provider.specialty, provider.skills)
                or job_matches(booking.service_title, provider.specialty, provider.skills)
            ):
                continue
            item = ProviderBookingResponse.model_validate(booking)
            item.client_name = booking.client.name if booking.client else "Unknown"
            item.client_phone = booking.client.phone if booking.client else None
            results.append(item)
        return results

    def accept_job(self, request_id: str, provider: Provider) -> Booking:
        booking_uuid = parse_uuid(request_id)
        claimed = 0
        if booking_uuid:
            claimed = self.repo.claim_open_request(
                self.db,
                booking_uuid,
                provider.id,
                {Booking.status: BOOKING_ACCEPTED, Booking.accepted_at: utcnow()},
            )

        if not claimed:
            self.db.rollback()
            booking = booking_uuid and self.repo.get_booking(self.db, booking_uuid)
            if not booking:
                raise NotFoundError("Booking not found", code="BOOKING_NOT_FOUND")
            if booking.provider_id is not None:
                raise ConflictError(
                    "This request has already been accepted by another provider",
                    code="BOOKING_ALREADY_ACCEPTED",
                )
            raise ConflictError(
                f"Invalid transition from {booking.status} to {BOOKING_ACCEPTED}",
                code="INVALID_STATUS_TRANSITION",
            )

        self._commit()
        booking = self.repo.get_booking(self.db, booking_uuid)
        self.db.refresh(booking)
        logger.info(f"🤝 Booking {booking.id} accepted by provider {provider.id}")
        return booking

    def update_job_status(
        self, job_id: str, status: str, notes: Optional[str], provider: Provider
    ) -> Booking:
        if status not in BOOKING_STATUSES:
            raise ConflictError(f"Unknown status: {status}", code="INVALID_STATUS_TRANSITION")

        booking = self._find_provider_job(job_id, provider)
        if status == BOOKING_ACCEPTED:
            # Acceptance only goes through the conditional claim
            raise ConflictError(
                f"Invalid transition from {booking.status} to {status}",
                code="INVALID_STATUS_TRANSITION",
            )
        check_transition(booking.status, status, PROVIDER_TRANSITIONS)

        now = utcnow()
        booking.status = status
        if notes is not None:
            booking.provider_notes = notes
            booking.notes_updated_at = now

        if status == BOOKING_IN_PROGRESS:
            booking.started_at = booking.started_at or now
        elif status == BOOKING_COMPLETED:
            booking.completed_at = booking.completed_at or now
            fee_percentage = booking.service.platform_fee_percentage if booking.service else None
            booking.platform_fee, booking.provider_payout = compute_payout(
                booking.estimated_cost, fee_percentage
            )
        elif status == BOOKING_CANCELLED:
            booking.cancelled_at = now

        self._commit()
        self.db.refresh(booking)
        logger.info(f"🔄 Booking {booking.id} moved to {status} by provider {provider.id}")
        return booking

    def update_job_notes(self, job_id: str, notes: str, provider: Provider) -> Booking:
        booking = self._find_provider_job(job_id, provider)
        booking.provider_notes = notes
        booking.notes_updated_at = utcnow()
        self._commit()
        self.db.refresh(booking)
        return booking

    def list_provider_bookings(self, provider: Provider) -> list[ProviderBookingResponse]:
        results = []
        for booking in self.repo.get_provider_bookings(self.db, provider.id):
            item = ProviderBookingResponse.model_validate(booking)
            item.client_name = booking.client.name if booking.client else "Unknown"
            item.client_phone = booking.client.phone if booking.client else None
            results.append(item)
        return results

    def get_earnings(self, provider: Provider) -> tuple[EarningsSummary, list[BookingResponse]]:
        bookings = self.repo.get_provider_bookings(self.db, provider.id)
        completed = [b for b in bookings if b.status == BOOKING_COMPLETED]
        active = [b for b in bookings if b.status in (BOOKING_ACCEPTED, BOOKING_IN_PROGRESS)]

        total = sum(
            b.provider_payout if b.provider_payout is not None else (b.estimated_cost or 0)
            for b in completed
        )
        summary = EarningsSummary(
            totalEarnings=round(total, 2),
            platformFees=round(sum(b.platform_fee or 0 for b in completed), 2),
            completedJobs=len(completed),
            pendingEarnings=round(sum(b.estimated_cost or 0 for b in active), 2),
            activeJobs=len(active),
            averageRating=provider.rating or 0,
            totalReviews=provider.total_reviews or 0,
        )
        return summary, [BookingResponse.model_validate(b) for b in completed]

    # ------------------------------------------------------------------
    # Admin side
    # ------------------------------------------------------------------

    def admin_create_request(self, data: AdminCreateRequest, admin: AdminUser) -> Booking:
        """Book on behalf of an existing client; the request joins the job board as pending"""
        client = self.repo.get_client(self.db, data.clientId)
        if not client:
            raise NotFoundError("Client not found", code="CLIENT_NOT_FOUND")
        booking = self.create_request(data, client, admin=admin)
        logger.info(f"🛠️ Admin {admin.auth_user_id} created booking {booking.id} for client {client.id}")
        return booking

    def get_admin_booking(self, booking_id: str) -> AdminBookingResponse:
        booking_uuid = parse_uuid(booking_id)
        booking = booking_uuid and self.repo.get_booking_detail(self.db, booking_uuid)
        if not booking:
            raise NotFoundError("Booking not found", code="BOOKING_NOT_FOUND")

        item = AdminBookingResponse.model_validate(booking)
        if booking.provider is not None:
            item.provider = _provider_summary(booking.provider)
        if booking.client is not None:
            item.client_name = booking.client.name
            item.client_email = booking.client.email
            item.client_phone = booking.client.phone
        return item

    def _apply_admin_change(self, booking: Booking, values: dict) -> Booking:
        """Write ``values`` unless a provider or client changed the booking since it was read"""
        updated = self.repo.update_if_unchanged(
            self.db, booking.id, booking.status, booking.provider_id, values
        )
        if not updated:
            self.db.rollback()
            raise ConflictError(
                "Booking was changed by another request, reload and retry",
                code="BOOKING_CHANGED",
            )
        self._commit()
        self.db.refresh(booking)
        return booking

    def remove_provider(self, booking_id: str, admin: AdminUser) -> Booking:
        """Unassign the provider and put the request back on the job board"""
        booking = self._find_booking(booking_id)
        if booking.provider_id is None:
            raise ValidationError(
                "No provider assigned to this booking", code="NO_PROVIDER_ASSIGNED"
            )
        check_transition(booking.status, BOOKING_PENDING, ADMIN_UNASSIGN_TRANSITIONS)

        previous = booking.provider_id
        booking = self._apply_admin_change(
            booking,
            {
                Booking.status: BOOKING_PENDING,
                Booking.provider_id: None,
                Booking.previous_provider_id: previous,
                Booking.accepted_at: None,
                Booking.started_at: None,
                Booking.reassigned_at: utcnow(),
                Booking.reassigned_by: admin.auth_user_id,
            },
        )
        logger.info(f"↩️ Admin {admin.auth_user_id} removed provider {previous} from booking {booking.id}")
        return booking

    def reassign(self, booking_id: str, provider_ref: str, admin: AdminUser) -> Booking:
        """Hand the booking to a fully verified, active provider"""
        booking = self._find_booking(booking_id)
        provider = VerificationRepository.get_provider(self.db, provider_ref)
        if not provider:
            raise NotFoundError("Provider not found", code="PROVIDER_NOT_FOUND")
        if not is_fully_verified(provider.verification, provider) or provider.status != "active":
            raise ValidationError(
                "Provider must be approved and active", code="PROVIDER_NOT_APPROVED"
            )
        if booking.provider_id == provider.id:
            raise ConflictError(
                "Booking is already assigned to this provider", code="ALREADY_ASSIGNED"
            )
        check_transition(booking.status, BOOKING_ACCEPTED, ADMIN_REASSIGN_TRANSITIONS)

        now = utcnow()
        values = {
            Booking.status: BOOKING_ACCEPTED,
            Booking.provider_id: provider.id,
            Booking.accepted_at: now,
            Booking.reassigned_at: now,
            Booking.reassigned_by: admin.auth_user_id,
        }
        if booking.provider_id is not None:
            values[Booking.previous_provider_id] = booking.provider_id

        booking = self._apply_admin_change(booking, values)
        logger.info(f"🔀 Admin {admin.auth_user_id} assigned booking {booking.id} to provider {provider.id}")
        return booking
