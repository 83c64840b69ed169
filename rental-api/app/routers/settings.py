import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.deps import get_db, require_admin
from app.models.user import User
from app.schemas.settings import AppSettingsOut, AppSettingsPatchIn
from app.services.settings_service import get_or_create_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=AppSettingsOut)
def get_settings(db: Session = Depends(get_db)):
    try:
        row = get_or_create_settings(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)
    return row


@router.patch("", response_model=AppSettingsOut)
def patch_settings(
    payload: AppSettingsPatchIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    try:
        row = get_or_create_settings(db)

        # Only update fields that are provided
        for field in ("cash_enabled", "credit_enabled", "items_enabled", "language"):
            value = getattr(payload, field)
            if value is not None:
                setattr(row, field, value)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(row)
    logger.info(
        f"[Settings] {admin.game_nickname} updated settings: cash={row.cash_enabled} "
        f"credit={row.credit_enabled} items={row.items_enabled} lang={row.language}"
    )
    return row
