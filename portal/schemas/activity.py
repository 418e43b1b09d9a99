from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from portal.schemas.base import either_case


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    details: str = ""
    user: str
    user_id: Optional[int] = Field(default=None, validation_alias=either_case("user_id"))
    timestamp: Optional[datetime] = None
