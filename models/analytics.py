from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Timeframe = Literal["1d", "7d", "30d"]
TIMEFRAMES = ("1d", "7d", "30d")
DEFAULT_TIMEFRAME = "7d"


class AnalyticsTrack(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    event_type: str = Field(default="page_view", min_length=1, max_length=100)
    event_data: Dict[str, Any] = Field(default_factory=dict)
    page_url: Optional[str] = None
    referrer: Optional[str] = None


class AnalyticsQuery(BaseModel):
    timeframe: Timeframe = DEFAULT_TIMEFRAME

    @field_validator("timeframe", mode="before")
    @classmethod
    def unknown_timeframe_is_default(cls, value):
        return value if value in TIMEFRAMES else DEFAULT_TIMEFRAME


class AnalyticsEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_type: str
    event_data: Optional[str] = None
    page_url: Optional[str] = None
    referrer: Optional[str] = None
    session_id: Optional[str] = None
    created_at: datetime
