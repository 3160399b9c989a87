"""Catalog service - admin-managed services and payout pricing"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import NotFoundError
from ...models import Service
from ...shared.validators import parse_uuid
from .schemas import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)

DEFAULT_SERVICES = [
    ("Heart", "Nursing Care", "Professional medical assistance and health monitoring at home"),
    ("Home", "House Cleaning", "Home cleaning and organization services"),
    ("ShoppingCart", "Grocery Shopping", "Shopping assistance and delivery of groceries and essentials"),
    ("Users", "Companionship", "Social interaction and friendly company for elderly"),
    ("Wrench", "Home Repairs", "Fix and maintenance services for your home"),
    ("Car", "Transportation", "Rides to appointments, errands, and social activities"),
    ("Utensils", "Meal Preparation", "Cooking and meal planning services"),
    ("Baby", "Personal Care", "Assistance with bathing, dressing, and daily activities"),
]

_FIELD_MAP = {
    "title": "title",
    "icon": "icon",
    "description": "description",
    "basePrice": "base_price",
    "minimumHours": "minimum_hours",
    "minimumFee": "minimum_fee",
    "platformFeePercentage": "platform_fee_percentage",
}


def compute_payout(total: float, fee_percentage: Optional[float]) -> tuple[float, float]:
    """
    Split a booking total into (platform_fee, provider_payout).

    payout = total - total * fee_percentage / 100, rounded to two decimals.
    A missing percentage means the platform takes nothing.
    """
    total = float(total or 0)
    fee = round(total * float(fee_percentage or 0) / 100, 2)
    return fee, round(total - fee, 2)


class CatalogService:
    def __init__(self, db: Session):
        self.db = db

    def list_services(self) -> list[Service]:
        return self.db.query(Service).order_by(Service.title.asc()).all()

    def find_service(self, service_ref: Optional[str]) -> Optional[Service]:
        """Resolve a catalog service by id, falling back to a case-insensitive title match"""
        if not service_ref:
            return None
        service_uuid = parse_uuid(service_ref)
        if service_uuid:
            service = self.db.query(Service).filter(Service.id == service_uuid).first()
            if service:
                return service
        return self.db.query(Service).filter(Service.title.ilike(service_ref)).first()

    def get_service(self, service_id: str) -> Service:
        service_uuid = parse_uuid(service_id)
        service = service_uuid and self.db.query(Service).filter(Service.id == service_uuid).first()
        if not service:
            raise NotFoundError("Service not found", code="SERVICE_NOT_FOUND")
        return service

    def create_service(self, data: ServiceCreate) -> Service:
        service = Service(
            **{column: getattr(data, field) for field, column in _FIELD_MAP.items()}
        )
        self.db.add(service)
        self.db.commit()
        self.db.refresh(service)
        logger.info(f"✅ Service created: {service.title}")
        return service

    def update_service(self, service_id: str, data: ServiceUpdate) -> Service:
        service = self.get_service(service_id)
        for field, column in _FIELD_MAP.items():
            value = getattr(data, field)
            if value is not None:
                setattr(service, column, value)
        self.db.commit()
        self.db.refresh(service)
        return service

    def delete_service(self, service_id: str) -> None:
        service = self.get_service(service_id)
        self.db.delete(service)
        self.db.commit()
        logger.info(f"🗑️ Service deleted: {service_id}")

    def seed_defaults(self) -> int:
        """Insert the starter catalog when it is empty; does not commit"""
        if self.db.query(Service.id).first() is not None:
            return 0
        for icon, title, description in DEFAULT_SERVICES:
            self.db.add(Service(icon=icon, title=title, description=description))
        logger.info(f"🌱 Seeded {len(DEFAULT_SERVICES)} default services")
        return len(DEFAULT_SERVICES)
