from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.dependencies import get_db
from app.models.app_settings import get_or_create_app_settings
from app.schemas.settings import AppSettingsResponse, AppSettingsUpdate

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=AppSettingsResponse)
def get_settings(db: Session = Depends(get_db)):
    return get_or_create_app_settings(db)


@router.patch("", response_model=AppSettingsResponse)
def update_settings(update: AppSettingsUpdate, db: Session = Depends(get_db)):
    app_settings = get_or_create_app_settings(db)
    if update.auto_realize_past_due_items is not None:
        app_settings.update_auto_realize(update.auto_realize_past_due_items)
    if update.past_due_lookback_days is not None:
        app_settings.update_past_due_lookback_days(update.past_due_lookback_days)
    db.commit()
    db.refresh(app_settings)
    return app_settings
