"""Client repository - Database operations for client-owned rows"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ClientLocation, FamilyMember, Favorite, Provider


class ClientRepository:
    """Every query is scoped by the owning client_id"""

    @staticmethod
    def get_locations(db: Session, client_id) -> list[ClientLocation]:
        return (
            db.query(ClientLocation)
            .filter(ClientLocation.client_id == client_id)
            .order_by(ClientLocation.created_at.desc())
            .all()
        )

    @staticmethod
    def get_location(db: Session, location_id, client_id) -> Optional[ClientLocation]:
        return (
            db.query(ClientLocation)
            .filter(ClientLocation.id == location_id, ClientLocation.client_id == client_id)
            .first()
        )

    @staticmethod
    def clear_default_locations(db: Session, client_id, keep_id=None) -> None:
        query = db.query(ClientLocation).filter(
            ClientLocation.client_id == client_id, ClientLocation.is_default.is_(True)
        )
        if keep_id is not None:
            query = query.filter(ClientLocation.id != keep_id)
        query.update({ClientLocation.is_default: False}, synchronize_session="fetch")

    @staticmethod
    def get_family_members(db: Session, client_id) -> list[FamilyMember]:
        return (
            db.query(FamilyMember)
            .filter(FamilyMember.client_id == client_id)
            .order_by(FamilyMember.created_at.desc())
            .all()
        )

    @staticmethod
    def get_family_member(db: Session, member_id, client_id) -> Optional[FamilyMember]:
        return (
            db.query(FamilyMember)
            .filter(FamilyMember.id == member_id, FamilyMember.client_id == client_id)
            .first()
        )

    @staticmethod
    def get_favorites(db: Session, client_id) -> list[tuple[Favorite, Provider]]:
        return (
            db.query(Favorite, Provider)
            .join(Provider, Provider.id == Favorite.provider_id)
            .filter(Favorite.client_id == client_id)
            .order_by(Favorite.created_at.desc())
            .all()
        )

    @staticmethod
    def get_favorite(db: Session, client_id, provider_id) -> Optional[Favorite]:
        return (
            db.query(Favorite)
            .filter(Favorite.client_id == client_id, Favorite.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def get_favorite_provider_ids(db: Session, client_id) -> set:
        rows = db.query(Favorite.provider_id).filter(Favorite.client_id == client_id).all()
        return {row[0] for row in rows}

    @staticmethod
    def get_provider(db: Session, provider_id) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.id == provider_id).first()
