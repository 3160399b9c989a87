"""Client service - Business logic for profile, locations, family members and favorites"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import ConflictError, NotFoundError
from ...models import Client, ClientLocation, FamilyMember, Favorite
from ...shared.validators import parse_uuid
from .repository import ClientRepository
from .schemas import (
    ClientResponse,
    FamilyMemberCreate,
    FamilyMemberResponse,
    FamilyMemberUpdate,
    FavoriteProvider,
    LocationCreate,
    LocationResponse,
    LocationUpdate,
    ProfileResponse,
)

logger = logging.getLogger(__name__)


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def get_profile(self, client: Client) -> ProfileResponse:
        return ProfileResponse(
            client=ClientResponse.model_validate(client),
            locations=[
                LocationResponse.model_validate(loc)
                for loc in self.repo.get_locations(self.db, client.id)
            ],
            familyMembers=[
                FamilyMemberResponse.model_validate(m)
                for m in self.repo.get_family_members(self.db, client.id)
            ],
        )

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    def _get_location(self, location_id: str, client: Client) -> ClientLocation:
        location_uuid = parse_uuid(location_id)
        location = location_uuid and self.repo.get_location(self.db, location_uuid, client.id)
        if not location:
            raise NotFoundError("Location not found", code="LOCATION_NOT_FOUND")
        return location

    def _make_default(self, location: ClientLocation, client: Client) -> None:
        """At most one default per client"""
        self.repo.clear_default_locations(self.db, client.id, keep_id=location.id)
        location.is_default = True
        client.default_location_id = location.id

    def add_location(self, data: LocationCreate, client: Client) -> LocationResponse:
        location = ClientLocation(
            client_id=client.id,
            label=data.resolved_label,
            address=data.address,
            latitude=data.latitude,
            longitude=data.longitude,
            is_default=False,
            metadata_=data.metadata or {},
        )
        self.db.add(location)
        self.db.flush()
        if data.resolved_default:
            self._make_default(location, client)
        self._commit()
        self.db.refresh(location)
        logger.info(f"📍 Location {location.id} added for client {client.id}")
        return LocationResponse.model_validate(location)

    def update_location(self, location_id: str, data: LocationUpdate, client: Client):
        location = self._get_location(location_id, client)

        updates = {
            "label": data.resolved_label,
            "address": data.address,
            "latitude": data.latitude,
            "longitude": data.longitude,
            "metadata_": data.metadata,
        }
        for key, value in updates.items():
            if value is not None:
                setattr(location, key, value)

        if data.resolved_default is True:
            self._make_default(location, client)
        elif data.resolved_default is False and location.is_default:
            location.is_default = False
            client.default_location_id = None

        self._commit()
        self.db.refresh(location)
        return LocationResponse.model_validate(location)

    def delete_location(self, location_id: str, client: Client) -> None:
        location = self._get_location(location_id, client)
        if client.default_location_id == location.id:
            client.default_location_id = None
        self.db.delete(location)
        self._commit()
        logger.info(f"🗑️ Location {location_id} deleted for client {client.id}")

    # ------------------------------------------------------------------
    # Family members
    # ------------------------------------------------------------------

    def list_family_members(self, client: Client) -> list[FamilyMemberResponse]:
        return [
            FamilyMemberResponse.model_validate(m)
            for m in self.repo.get_family_members(self.db, client.id)
        ]

    def _get_family_member(self, member_id: str, client: Client) -> FamilyMember:
        member_uuid = parse_uuid(member_id)
        member = member_uuid and self.repo.get_family_member(self.db, member_uuid, client.id)
        if not member:
            raise NotFoundError("Family member not found", code="FAMILY_MEMBER_NOT_FOUND")
        return member

    def add_family_member(self, data: FamilyMemberCreate, client: Client) -> FamilyMemberResponse:
        member = FamilyMember(
            client_id=client.id,
            name=data.name,
            relation=data.relationship or data.relation,
            phone=data.phone,
            dob=data.dob,
            metadata_=data.extra_metadata(),
        )
        self.db.add(member)
        self._commit()
        self.db.refresh(member)
        return FamilyMemberResponse.model_validate(member)

    def update_family_member(self, member_id: str, data: FamilyMemberUpdate, client: Client):
        member = self._get_family_member(member_id, client)

        if data.name is not None:
            member.name = data.name
        relation = data.relationship or data.relation
        if relation is not None:
            member.relation = relation
        if data.phone is not None:
            member.phone = data.phone
        if data.dob is not None:
            member.dob = data.dob

        extra = {k: v for k, v in data.extra_metadata().items() if v not in (None, "")}
        if extra:
            member.metadata_ = {**(member.metadata_ or {}), **extra}

        self._commit()
        self.db.refresh(member)
        return FamilyMemberResponse.model_validate(member)

    def delete_family_member(self, member_id: str, client: Client) -> None:
        member = self._get_family_member(member_id, client)
        self.db.delete(member)
        self._commit()

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    def list_favorites(self, client: Client) -> list[FavoriteProvider]:
        return [
            FavoriteProvider(
                provider_id=provider.id,
                name=provider.name,
                specialty=provider.specialty,
                rating=provider.rating,
                total_reviews=provider.total_reviews,
                available=provider.available,
                created_at=favorite.created_at,
            )
            for favorite, provider in self.repo.get_favorites(self.db, client.id)
        ]

    def add_favorite(self, provider_id: str, client: Client) -> Favorite:
        provider_uuid = parse_uuid(provider_id)
        provider = provider_uuid and self.repo.get_provider(self.db, provider_uuid)
        if not provider:
            raise NotFoundError("Provider not found", code="PROVIDER_NOT_FOUND")

        if self.repo.get_favorite(self.db, client.id, provider.id):
            raise ConflictError("Provider already in favorites", code="ALREADY_FAVORITE")

        favorite = Favorite(client_id=client.id, provider_id=provider.id)
        self.db.add(favorite)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Provider already in favorites", code="ALREADY_FAVORITE") from e
        self.db.refresh(favorite)
        return favorite

    def remove_favorite(self, provider_id: str, client: Client) -> bool:
        provider_uuid = parse_uuid(provider_id)
        favorite = provider_uuid and self.repo.get_favorite(self.db, client.id, provider_uuid)
        if not favorite:
            return False
        self.db.delete(favorite)
        self._commit()
        return True
