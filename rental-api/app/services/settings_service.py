from sqlalchemy.orm import Session

from app.models.app_settings import AppSettings, SETTINGS_ROW_ID


def get_or_create_settings(db: Session) -> AppSettings:
    row = db.get(AppSettings, SETTINGS_ROW_ID)
    if row:
        return row

    row = AppSettings(id=SETTINGS_ROW_ID)
    db.add(row)
    db.flush()
    return row
