from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ErrorInfo(BaseModel):
    msg: str
    field: Optional[str] = None
    code: Optional[str] = None


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every JSON endpoint: ``{success, data?, message?}``."""

    success: bool
    data: Optional[T] = None
    message: Optional[str] = None
    errors: Optional[List[ErrorInfo]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with JSON-serializable values."""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "ApiResponse[T]":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, message: str, errors: Optional[List[ErrorInfo]] = None) -> "ApiResponse[T]":
        return cls(success=False, message=message, errors=errors)
