from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, Optional


class ActivityResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="extra_data")
    created_at: datetime

    class Config:
        from_attributes = True
        populate_by_name = True
