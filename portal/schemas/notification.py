from datetime import datetime
from typing import Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from portal.schemas.base import either_case


class NotificationCreate(BaseModel):
    # No company means broadcast to every company
    company_id: Optional[int] = Field(default=None, validation_alias=either_case("company_id"))
    subject: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int = Field(validation_alias=either_case("company_id"))
    subject: str
    message: str
    read: bool = Field(default=False, validation_alias=AliasChoices("read", "is_read"))
    sent_at: Optional[datetime] = Field(default=None, validation_alias=either_case("sent_at"))
    read_at: Optional[datetime] = Field(default=None, validation_alias=either_case("read_at"))
