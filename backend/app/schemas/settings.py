from pydantic import BaseModel, Field
from typing import Optional


class AppSettingsResponse(BaseModel):
    auto_realize_past_due_items: bool
    past_due_lookback_days: int

    class Config:
        from_attributes = True


class AppSettingsUpdate(BaseModel):
    auto_realize_past_due_items: Optional[bool] = None
    past_due_lookback_days: Optional[int] = Field(None, description="1..365")
