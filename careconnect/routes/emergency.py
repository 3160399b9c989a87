"""
Emergency alert routes - clients raise alerts, admins resolve them
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_client, require_admin
from ..database import get_db
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import AdminUser, Booking, Client, EmergencyAlert
from ..schemas import EmergencyAlertCreate, EmergencyAlertResponse, ResolveAlertRequest
from ..shared.validators import parse_uuid, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Emergency"])


@router.post("/emergency/alert")
async def raise_alert(
    data: EmergencyAlertCreate,
    client: Client = Depends(get_current_client),
    db: Session = Depends(get_db),
):
    booking_id = None
    if data.bookingId:
        booking_id = parse_uuid(data.bookingId)
        if booking_id is None:
            raise ValidationError("Invalid booking ID format")
        booking = (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.client_id == client.id)
            .first()
        )
        if not booking:
            raise NotFoundError("Booking not found", code="BOOKING_NOT_FOUND")

    alert = EmergencyAlert(
        client_id=client.id,
        booking_id=booking_id,
        message=data.message,
        latitude=data.latitude,
        longitude=data.longitude,
        status="active",
    )
    db.add(alert)
    db.commit()
    db.refresh(alert)

    logger.warning(f"🚨 Emergency alert {alert.id} raised by client {client.id}")
    return {"success": True, "alert": EmergencyAlertResponse.model_validate(alert)}


@router.get("/admin/emergency-alerts")
async def list_alerts(
    admin: AdminUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    alerts = (
        db.query(EmergencyAlert)
        .order_by(EmergencyAlert.status.asc(), EmergencyAlert.created_at.desc())
        .all()
    )
    return {"alerts": [EmergencyAlertResponse.model_validate(a) for a in alerts]}


@router.post("/admin/emergency-alerts/resolve")
async def resolve_alert(
    data: ResolveAlertRequest,
    admin: AdminUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    alert_id = parse_uuid(data.alertId)
    alert = db.query(EmergencyAlert).filter(EmergencyAlert.id == alert_id).first() if alert_id else None
    if not alert:
        raise NotFoundError("Emergency alert not found", code="ALERT_NOT_FOUND")
    if alert.status == "resolved":
        raise ConflictError("Emergency alert is already resolved", code="ALERT_ALREADY_RESOLVED")

    alert.status = "resolved"
    alert.resolved_at = utcnow()
    alert.resolved_by = admin.auth_user_id
    db.commit()
    db.refresh(alert)

    logger.info(f"✅ Emergency alert {alert.id} resolved by {admin.email}")
    return {"success": True, "alert": EmergencyAlertResponse.model_validate(alert)}
