"""
Checkout routes - publishes the public key and records verified payments
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import get_current_identity
from ..auth_service import AuthIdentity
from ..config import PAYMENT_KEY_ID, PAYMENT_KEY_SECRET
from ..database import get_db
from ..errors import ValidationError
from ..models import PaymentRecord
from ..payment_security import verify_checkout_signature
from ..schemas import PaymentVerifyRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payment", tags=["Payments"])


@router.get("/key")
async def get_payment_key(identity: AuthIdentity = Depends(get_current_identity)):
    if not PAYMENT_KEY_ID:
        raise ValidationError("Payment gateway is not configured", code="PAYMENT_NOT_CONFIGURED")
    return {"keyId": PAYMENT_KEY_ID}


@router.post("/verify")
async def verify_payment(
    data: PaymentVerifyRequest,
    identity: AuthIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Verify the checkout signature and record the payment.

    Re-posting an already recorded payment id returns the stored record.
    """
    if not PAYMENT_KEY_SECRET:
        raise ValidationError("Payment gateway is not configured", code="PAYMENT_NOT_CONFIGURED")

    if not verify_checkout_signature(
        PAYMENT_KEY_SECRET,
        data.razorpay_order_id,
        data.razorpay_payment_id,
        data.razorpay_signature,
    ):
        raise ValidationError("Invalid payment signature", code="INVALID_SIGNATURE")

    existing = (
        db.query(PaymentRecord)
        .filter(PaymentRecord.payment_id == data.razorpay_payment_id)
        .first()
    )
    if existing:
        logger.info(f"🔄 Payment {existing.payment_id} already recorded")
        return {"success": True, "paymentId": existing.payment_id, "duplicate": True}

    db.add(
        PaymentRecord(
            payment_id=data.razorpay_payment_id,
            order_id=data.razorpay_order_id,
            auth_user_id=identity.id,
            status="success",
        )
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return {"success": True, "paymentId": data.razorpay_payment_id, "duplicate": True}

    logger.info(f"💳 Payment {data.razorpay_payment_id} verified for {identity.id}")
    return {"success": True, "paymentId": data.razorpay_payment_id, "duplicate": False}
