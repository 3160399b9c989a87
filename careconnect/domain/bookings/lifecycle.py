"""Booking status machine and provider/job matching rules"""

from typing import Optional

from ...errors import ConflictError
from ...models import (
    BOOKING_ACCEPTED,
    BOOKING_CANCELLED,
    BOOKING_COMPLETED,
    BOOKING_IN_PROGRESS,
    BOOKING_PENDING,
)

BOOKING_STATUSES = (
    BOOKING_PENDING,
    BOOKING_ACCEPTED,
    BOOKING_IN_PROGRESS,
    BOOKING_COMPLETED,
    BOOKING_CANCELLED,
)

# pending -> accepted happens only through the atomic accept path
PROVIDER_TRANSITIONS = {
    BOOKING_PENDING: {BOOKING_ACCEPTED},
    BOOKING_ACCEPTED: {BOOKING_IN_PROGRESS, BOOKING_CANCELLED},
    BOOKING_IN_PROGRESS: {BOOKING_COMPLETED, BOOKING_CANCELLED},
}

CLIENT_TRANSITIONS = {
    BOOKING_PENDING: {BOOKING_CANCELLED},
}

# Admin removes the assigned provider; the request goes back on the job board
ADMIN_UNASSIGN_TRANSITIONS = {
    BOOKING_ACCEPTED: {BOOKING_PENDING},
    BOOKING_IN_PROGRESS: {BOOKING_PENDING},
}

# Admin hands the booking to a provider directly, replacing any current one
ADMIN_REASSIGN_TRANSITIONS = {
    BOOKING_PENDING: {BOOKING_ACCEPTED},
    BOOKING_ACCEPTED: {BOOKING_ACCEPTED},
}


def check_transition(current: str, new: str, transitions: dict) -> None:
    """Raise INVALID_STATUS_TRANSITION unless ``current -> new`` is allowed"""
    allowed = transitions.get(current, set())
    if new not in allowed:
        raise ConflictError(
            f"Invalid transition from {current} to {new}", code="INVALID_STATUS_TRANSITION"
        )


def job_matches(service_type: Optional[str], specialty: Optional[str], skills) -> bool:
    """
    Whether an open request fits a provider.

    Case-insensitive substring match of the provider's specialty inside the
    requested service type, or of any skill against the service type in either
    direction.
    """
    requested = (service_type or "").strip().lower()
    if not requested:
        return False

    specialty = (specialty or "").strip().lower()
    if specialty and specialty in requested:
        return True

    for skill in skills or []:
        skill = str(skill).strip().lower()
        if skill and (skill in requested or requested in skill):
            return True
    return False
