"""Provider router - public directory, availability toggle and dashboard gate"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_provider
from ...database import get_db
from ...models import Provider
from .schemas import AvailabilityRequest, DashboardAccessResponse
from .service import ProviderService

router = APIRouter(tags=["Providers"])


def get_provider_service(db: Session = Depends(get_db)) -> ProviderService:
    return ProviderService(db)


@router.get("/providers")
async def list_providers(service: ProviderService = Depends(get_provider_service)):
    return {"providers": service.list_verified_providers()}


@router.post("/provider/availability")
async def set_availability(
    data: AvailabilityRequest,
    provider: Provider = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    return {"success": True, "available": service.set_availability(provider, data.available)}


@router.get("/provider/dashboard-access", response_model=DashboardAccessResponse)
async def dashboard_access(
    provider: Provider = Depends(get_current_provider),
    service: ProviderService = Depends(get_provider_service),
):
    """Whether the provider may enter the dashboard; only fully verified providers may"""
    return service.dashboard_access(provider)
