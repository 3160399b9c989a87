"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import BOOKING_COMPLETED, BOOKING_PENDING, Booking, Client, Provider
from ...shared.validators import parse_uuid


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_client_bookings(db: Session, client_id) -> list[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.provider))
            .filter(Booking.client_id == client_id)
            .order_by(Booking.created_at.desc())
            .all()
        )

    @staticmethod
    def get_provider_bookings(db: Session, provider_id) -> list[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.client))
            .filter(Booking.provider_id == provider_id)
            .order_by(Booking.created_at.desc())
            .all()
        )

    @staticmethod
    def get_open_requests(db: Session) -> list[Booking]:
        """Pending bookings no provider has taken yet, newest first"""
        return (
            db.query(Booking)
            .options(joinedload(Booking.client))
            .filter(Booking.status == BOOKING_PENDING, Booking.provider_id.is_(None))
            .order_by(Booking.created_at.desc())
            .all()
        )

    @staticmethod
    def claim_open_request(db: Session, booking_id, provider_id, values: dict) -> int:
        """
        Assign a pending, unassigned booking to a provider in one conditional UPDATE.

        Returns the number of rows changed (0 when another provider won the race).
        """
        return (
            db.query(Booking)
            .filter(
                Booking.id == booking_id,
                Booking.status == BOOKING_PENDING,
                Booking.provider_id.is_(None),
            )
            .update({Booking.provider_id: provider_id, **values}, synchronize_session=False)
        )

    @staticmethod
    def set_rating_if_allowed(db: Session, booking_id, client_id, values: dict) -> int:
        """Rate a completed, unrated booking owned by ``client_id``; returns rows changed"""
        return (
            db.query(Booking)
            .filter(
                Booking.id == booking_id,
                Booking.client_id == client_id,
                Booking.status == BOOKING_COMPLETED,
                Booking.rated_at.is_(None),
            )
            .update(values, synchronize_session=False)
        )

    @staticmethod
    def rating_aggregate(db: Session, provider_id) -> tuple[Optional[float], int]:
        avg, count = (
            db.query(func.avg(Booking.user_rating), func.count(Booking.id))
            .filter(Booking.provider_id == provider_id, Booking.user_rating.isnot(None))
            .one()
        )
        return (float(avg) if avg is not None else None), int(count or 0)

    @staticmethod
    def get_provider(db: Session, provider_id) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.id == provider_id).first()

    @staticmethod
    def get_client(db: Session, client_ref: str) -> Optional[Client]:
        """Find a client by row id or auth user id"""
        client_uuid = parse_uuid(client_ref)
        if client_uuid:
            client = db.query(Client).filter(Client.id == client_uuid).first()
            if client:
                return client
        return db.query(Client).filter(Client.auth_user_id == client_ref).first()

    @staticmethod
    def get_booking_detail(db: Session, booking_id) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.client), joinedload(Booking.provider))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def update_if_unchanged(db: Session, booking_id, status: str, provider_id, values: dict) -> int:
        """
        Apply ``values`` only while the booking still has the status and
        provider it was read with; returns rows changed.
        """
        query = db.query(Booking).filter(Booking.id == booking_id, Booking.status == status)
        if provider_id is None:
            query = query.filter(Booking.provider_id.is_(None))
        else:
            query = query.filter(Booking.provider_id == provider_id)
        return query.update(values, synchronize_session=False)

    @classmethod
    def refresh_provider_rating(cls, db: Session, provider_id) -> None:
        """Recompute the provider's cached average and review count from rated bookings"""
        provider = cls.get_provider(db, provider_id)
        if not provider:
            return
        average, count = cls.rating_aggregate(db, provider_id)
        provider.rating = round(average, 2) if average is not None else 0
        provider.total_reviews = count
