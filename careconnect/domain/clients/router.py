"""Client router - FastAPI endpoints for the client's own profile data"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_client
from ...database import get_db
from ...models import Client
from .schemas import (
    FamilyMemberCreate,
    FamilyMemberUpdate,
    FavoriteRequest,
    LocationCreate,
    LocationUpdate,
    ProfileResponse,
)
from .service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/client", tags=["Client"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    """Client profile with locations and family members; provisions the client on first call"""
    return service.get_profile(client)


# ============================================================================
# LOCATIONS
# ============================================================================


@router.get("/locations")
async def list_locations(
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    return {"locations": service.get_profile(client).locations}


@router.post("/locations")
async def add_location(
    data: LocationCreate,
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    return {"success": True, "location": service.add_location(data, client)}


@router.put("/locations/{location_id}")
async def update_location(
    location_id: str,
    data: LocationUpdate,
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    return {"success": True, "location": service.update_location(location_id, data, client)}


@router.delete("/locations/{location_id}")
async def delete_location(
    location_id: str,
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    service.delete_location(location_id, client)
    return {"success": True}


# ============================================================================
# FAMILY MEMBERS
# ============================================================================


@router.get("/family-members")
async def list_family_members(
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    return {"familyMembers": service.list_family_members(client)}


@router.post("/family-members")
async def add_family_member(
    data: FamilyMemberCreate,
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    return {"success": True, "familyMember": service.add_family_member(data, client)}


@router.put("/family-members/{member_id}")
async def update_family_member(
    member_id: str,
    data: FamilyMemberUpdate,
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    member = service.update_family_member(member_id, data, client)
    return {"success": True, "familyMember": member}


@router.delete("/family-members/{member_id}")
async def delete_family_member(
    member_id: str,
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    service.delete_family_member(member_id, client)
    return {"success": True}


# ============================================================================
# FAVORITES
# ============================================================================


@router.get("/favorites")
async def list_favorites(
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    favorites = service.list_favorites(client)
    return {"favorites": favorites, "count": len(favorites)}


@router.post("/favorites/add")
async def add_favorite(
    data: FavoriteRequest,
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    favorite = service.add_favorite(data.providerId, client)
    return {"success": True, "favorite": {"provider_id": str(favorite.provider_id)}}


@router.post("/favorites/remove")
async def remove_favorite(
    data: FavoriteRequest,
    client: Client = Depends(get_current_client),
    service: ClientService = Depends(get_client_service),
):
    removed = service.remove_favorite(data.providerId, client)
    return {"success": True, "removed": removed}
