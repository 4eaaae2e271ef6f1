"""App settings model - persisted singleton holding runtime auto-realize options."""

from sqlalchemy import Column, Integer, Boolean, DateTime
from sqlalchemy.sql import func

from app.config import settings as config
from app.database import Base
from app.exceptions import DomainError

MIN_LOOKBACK_DAYS = 1
MAX_LOOKBACK_DAYS = 365


class AppSettings(Base):
    """
    Runtime settings stored in database.
    Singleton pattern - only one row with id=1.
    """
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, default=1)

    auto_realize_past_due_items = Column(Boolean, default=False, nullable=False)
    past_due_lookback_days = Column(Integer, default=30, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def update_auto_realize(self, enabled: bool) -> None:
        self.auto_realize_past_due_items = enabled

    def update_past_due_lookback_days(self, days: int) -> None:
        if days < MIN_LOOKBACK_DAYS or days > MAX_LOOKBACK_DAYS:
            raise DomainError(
                f"Lookback days must be between {MIN_LOOKBACK_DAYS} and {MAX_LOOKBACK_DAYS}."
            )
        self.past_due_lookback_days = days


def get_or_create_app_settings(db) -> AppSettings:
    """Get the singleton app settings, creating from config defaults if needed."""
    app_settings = db.query(AppSettings).filter(AppSettings.id == 1).first()
    if not app_settings:
        app_settings = AppSettings(
            id=1,
            auto_realize_past_due_items=config.auto_realize_default_enabled,
            past_due_lookback_days=config.auto_realize_default_lookback_days,
        )
        db.add(app_settings)
        db.commit()
        db.refresh(app_settings)
    return app_settings
