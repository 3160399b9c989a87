"""Review repository - queries over rated bookings"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Booking


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def _rated(db: Session):
        return (
            db.query(Booking)
            .options(joinedload(Booking.client), joinedload(Booking.provider))
            .filter(Booking.user_rating.isnot(None))
        )

    @classmethod
    def get_all(cls, db: Session) -> list[Booking]:
        return cls._rated(db).order_by(Booking.rated_at.desc()).all()

    @classmethod
    def get_visible_for_provider(cls, db: Session, provider_id) -> list[Booking]:
        return (
            cls._rated(db)
            .filter(Booking.provider_id == provider_id, Booking.review_hidden.is_(False))
            .order_by(Booking.rated_at.desc())
            .all()
        )

    @classmethod
    def get_review(cls, db: Session, booking_id) -> Optional[Booking]:
        return cls._rated(db).filter(Booking.id == booking_id).first()
