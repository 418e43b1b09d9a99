from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from portal.models.file import FileCategory
from portal.schemas.base import either_case


class FileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: str
    size: int
    category: FileCategory
    company_id: int = Field(validation_alias=either_case("company_id"))
    storage_path: str = Field(validation_alias=either_case("storage_path"))
    uploaded_by: Optional[str] = Field(default=None, validation_alias=either_case("uploaded_by"))
    uploaded_at: Optional[datetime] = Field(default=None, validation_alias=either_case("uploaded_at"))
    expiry_date: Optional[date] = Field(default=None, validation_alias=either_case("expiry_date"))
    read_by: List[int] = Field(default_factory=list, validation_alias=either_case("read_by"))


class UploadFailure(BaseModel):
    name: str
    error: str


class UploadResult(BaseModel):
    uploaded: List[FileResponse] = Field(default_factory=list)
    failed: List[UploadFailure] = Field(default_factory=list)


class SignedUrl(BaseModel):
    url: str
    expires_in: int
