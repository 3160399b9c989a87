"""
Platform settings routes - admin-editable switches and the public subset clients read
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..config import DEFAULT_CURRENCY, DEFAULT_CURRENCY_SYMBOL
from ..database import get_db
from ..models import AdminUser, PlatformSetting
from ..schemas import PlatformSettingsUpdate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Settings"])

SETTINGS_KEY = "platform"

DEFAULT_SETTINGS = {
    "currency": DEFAULT_CURRENCY,
    "currencySymbol": DEFAULT_CURRENCY_SYMBOL,
    "enableProviderSearch": True,
    "enableClientWallet": True,
    "enableProviderWallet": True,
    "mapboxAccessToken": "",
}

PUBLIC_FIELDS = ("currency", "currencySymbol", "enableProviderSearch", "mapboxAccessToken")


def load_settings(db: Session) -> dict:
    """Stored values over defaults, plus who changed them last"""
    row = db.query(PlatformSetting).filter(PlatformSetting.key == SETTINGS_KEY).first()
    settings = dict(DEFAULT_SETTINGS)
    if row:
        settings.update({k: v for k, v in (row.value or {}).items() if k in DEFAULT_SETTINGS})
        settings["updatedAt"] = row.updated_at.isoformat() if row.updated_at else None
        settings["updatedBy"] = row.updated_by
    else:
        settings["updatedAt"] = None
        settings["updatedBy"] = None
    return settings


@router.get("/admin/settings")
async def get_settings(
    _admin: AdminUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return {"settings": load_settings(db)}


@router.put("/admin/settings")
async def update_settings(
    data: PlatformSettingsUpdate,
    admin: AdminUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    row = db.query(PlatformSetting).filter(PlatformSetting.key == SETTINGS_KEY).first()
    if row is None:
        row = PlatformSetting(key=SETTINGS_KEY, value={})
        db.add(row)

    # Reassign so the JSON column is flagged dirty
    row.value = {**(row.value or {}), **changes}
    row.updated_by = admin.auth_user_id
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)

    logger.info(f"⚙️ Settings updated by admin {admin.auth_user_id}: {sorted(changes)}")
    return {"success": True, "settings": load_settings(db)}


@router.get("/settings/public")
async def get_public_settings(db: Session = Depends(get_db)):
    """Display and feature switches the apps read before sign-in"""
    settings = load_settings(db)
    return {"settings": {field: settings[field] for field in PUBLIC_FIELDS}}
