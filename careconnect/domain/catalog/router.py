"""Catalog router - public service listing and admin service management"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import AdminUser
from .schemas import ServiceCreate, ServiceResponse, ServiceUpdate
from .service import CatalogService

router = APIRouter(tags=["Services"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


@router.get("/services")
async def list_services(service: CatalogService = Depends(get_catalog_service)):
    return {"services": [ServiceResponse.model_validate(s) for s in service.list_services()]}


@router.get("/admin/services")
async def admin_list_services(
    _admin: AdminUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return {"services": [ServiceResponse.model_validate(s) for s in service.list_services()]}


@router.post("/admin/services")
async def create_service(
    data: ServiceCreate,
    _admin: AdminUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    created = service.create_service(data)
    return {"success": True, "service": ServiceResponse.model_validate(created)}


@router.put("/admin/services/{service_id}")
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    _admin: AdminUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    updated = service.update_service(service_id, data)
    return {"success": True, "service": ServiceResponse.model_validate(updated)}


@router.delete("/admin/services/{service_id}")
async def delete_service(
    service_id: str,
    _admin: AdminUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    service.delete_service(service_id)
    return {"success": True}
