"""Provider service - public directory and provider self-service settings"""

import logging

from sqlalchemy.orm import Session

from ...config import VERIFICATION_POLL_SECONDS
from ...errors import ForbiddenError
from ...models import PROVIDER_APPROVED, Provider, Service
from ..verification import workflow
from .schemas import DashboardAccessResponse, ProviderPublic

logger = logging.getLogger(__name__)


class ProviderService:
    def __init__(self, db: Session):
        self.db = db

    def _service_titles(self) -> dict:
        return {str(s.id): s.title for s in self.db.query(Service.id, Service.title).all()}

    def list_verified_providers(self) -> list[ProviderPublic]:
        """Verified, active providers; specialty/skills stored as service ids are shown as titles"""
        titles = self._service_titles()
        providers = (
            self.db.query(Provider)
            .filter(
                Provider.verified.is_(True),
                Provider.verification_status == PROVIDER_APPROVED,
                Provider.status == "active",
            )
            .order_by(Provider.rating.desc(), Provider.name.asc())
            .all()
        )
        return [
            ProviderPublic(
                id=p.id,
                name=p.name,
                specialty=titles.get(p.specialty, p.specialty) or "General Service",
                skills=[titles.get(str(skill), str(skill)) for skill in (p.skills or [])],
                hourlyRate=p.hourly_rate or 0,
                rating=round(p.rating or 0, 1),
                reviewCount=p.total_reviews or 0,
                available=bool(p.available),
                verified=bool(p.verified),
                gender=p.gender,
                languages=p.languages or [],
                experienceYears=p.experience_years or 0,
            )
            for p in providers
        ]

    def set_availability(self, provider: Provider, available: bool) -> bool:
        if available and not workflow.is_fully_verified(provider.verification, provider):
            raise ForbiddenError(
                "Complete verification before going available", code="PROVIDER_NOT_VERIFIED"
            )
        provider.available = available
        self.db.commit()
        logger.info(f"🟢 Provider {provider.id} availability set to {available}")
        return available

    def dashboard_access(self, provider: Provider) -> DashboardAccessResponse:
        record = provider.verification
        return DashboardAccessResponse(
            providerId=str(provider.id),
            hasAccess=workflow.is_fully_verified(record, provider),
            verificationStatus=provider.verification_status,
            stages=workflow.get_stages(record),
            pollIntervalSeconds=VERIFICATION_POLL_SECONDS,
        )

