"""Review service - provider review feed and admin moderation"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import NotFoundError
from ...models import AdminUser, Booking, Provider
from ...shared.validators import parse_uuid, utcnow
from ..bookings.repository import BookingRepository
from .repository import ReviewRepository
from .schemas import AdminReviewResponse, ReviewResponse

logger = logging.getLogger(__name__)


def _review_fields(booking: Booking) -> dict:
    return {
        "id": booking.id,
        "booking_id": booking.id,
        "service_title": booking.service_title or booking.service_type,
        "rating": booking.user_rating,
        "review": booking.user_review,
        "rated_at": booking.rated_at,
        "client_name": booking.client.name if booking.client else "Unknown",
    }


class ReviewService:
    """Service layer for reviews"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _find_review(self, review_id: str) -> Booking:
        booking_uuid = parse_uuid(review_id)
        booking = booking_uuid and self.repo.get_review(self.db, booking_uuid)
        if not booking:
            raise NotFoundError("Review not found", code="REVIEW_NOT_FOUND")
        return booking

    def list_provider_reviews(self, provider: Provider) -> list[ReviewResponse]:
        """Reviews on the provider's jobs, hidden ones left out"""
        return [
            ReviewResponse(**_review_fields(b))
            for b in self.repo.get_visible_for_provider(self.db, provider.id)
        ]

    def list_all_reviews(self) -> list[AdminReviewResponse]:
        return [
            AdminReviewResponse(
                **_review_fields(b),
                client_id=b.client_id,
                provider_id=b.provider_id,
                provider_name=b.provider.name if b.provider else None,
                hidden=bool(b.review_hidden),
                hidden_at=b.review_hidden_at,
                hidden_by=b.review_hidden_by,
                hidden_reason=b.review_hidden_reason,
            )
            for b in self.repo.get_all(self.db)
        ]

    def hide_review(self, review_id: str, reason: Optional[str], admin: AdminUser) -> Booking:
        """Hide from the provider feed; the rating still counts toward the provider's average"""
        booking = self._find_review(review_id)
        booking.review_hidden = True
        booking.review_hidden_at = utcnow()
        booking.review_hidden_by = admin.auth_user_id
        booking.review_hidden_reason = reason
        self._commit()
        logger.info(f"🙈 Review {booking.id} hidden by admin {admin.auth_user_id}")
        return booking

    def unhide_review(self, review_id: str, admin: AdminUser) -> Booking:
        booking = self._find_review(review_id)
        booking.review_hidden = False
        booking.review_hidden_at = None
        booking.review_hidden_by = None
        booking.review_hidden_reason = None
        self._commit()
        logger.info(f"👁️ Review {booking.id} unhidden by admin {admin.auth_user_id}")
        return booking

    def delete_review(self, review_id: str, admin: AdminUser) -> None:
        """
        Clear the rating and review text and recompute the provider's average.

        ``rated_at`` is kept, so the client cannot rate the booking again.
        """
        booking = self._find_review(review_id)
        booking.user_rating = None
        booking.user_review = None
        booking.review_hidden = False
        booking.review_hidden_at = None
        booking.review_hidden_by = None
        booking.review_hidden_reason = None
        self.db.flush()
        if booking.provider_id:
            BookingRepository.refresh_provider_rating(self.db, booking.provider_id)
        self._commit()
        logger.info(f"🗑️ Review {booking.id} deleted by admin {admin.auth_user_id}")
