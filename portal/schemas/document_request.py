from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from portal.models.document_request import RequestStatus
from portal.schemas.base import either_case


class DocumentRequestCreate(BaseModel):
    doc_type: str = Field(min_length=1, max_length=200, validation_alias=either_case("doc_type"))
    description: str = ""


class DocumentRequestUpdate(BaseModel):
    status: RequestStatus


class DocumentRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int = Field(validation_alias=either_case("company_id"))
    doc_type: str = Field(validation_alias=either_case("doc_type"))
    description: str = ""
    status: RequestStatus
    requested_at: Optional[datetime] = Field(default=None, validation_alias=either_case("requested_at"))
    completed_at: Optional[datetime] = Field(default=None, validation_alias=either_case("completed_at"))
