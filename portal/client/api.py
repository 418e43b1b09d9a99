"""
Async REST client for the portal API.

Every call attaches the bearer token held by the session, unwraps the
``{success, data, message}`` envelope and normalizes entity payloads into the
canonical schemas. Failures are terminal: nothing is retried.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel

from portal.schemas.activity import ActivityResponse
from portal.schemas.auth import LoginData, UserResponse
from portal.schemas.company import CompanyResponse
from portal.schemas.document_request import DocumentRequestResponse
from portal.schemas.file import FileResponse, SignedUrl, UploadResult
from portal.schemas.notification import NotificationResponse

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DEFAULT_TIMEOUT = 30.0


class PortalAPIError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, payload: Optional[dict] = None):
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(message)


class PortalAPI:
    """
    Thin wrapper over ``httpx.AsyncClient``.

    ``base_url`` points at the API prefix, e.g. ``http://localhost:8000/api``.
    Pass ``transport`` to run against an in-process app or a mock.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._client = httpx.AsyncClient(base_url=self.base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "PortalAPI":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            response = await self._client.request(method, endpoint, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"API Error: {method} {endpoint}: {e}")
            raise PortalAPIError(str(e) or e.__class__.__name__) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        # 207 carries partial upload results and is handled by the caller
        if response.is_error:
            message = data.get("message") if isinstance(data, dict) else None
            logger.error(f"API Error: {method} {endpoint} -> {response.status_code}: {message}")
            raise PortalAPIError(message or "Request failed", status_code=response.status_code, payload=data)
        return data

    @staticmethod
    def _one(model: Type[M], body: Dict[str, Any]) -> M:
        return model.model_validate(body.get("data"))

    @staticmethod
    def _many(model: Type[M], body: Dict[str, Any]) -> List[M]:
        return [model.model_validate(item) for item in body.get("data") or []]

    # ---------------------------------------------------------------- auth
    async def login(self, email: str, password: str) -> LoginData:
        body = await self.request("POST", "/auth/login", json={"email": email, "password": password})
        login = self._one(LoginData, body)
        self.token = login.session.access_token
        return login

    async def logout(self) -> None:
        try:
            await self.request("POST", "/auth/logout")
        finally:
            self.token = None

    async def me(self) -> UserResponse:
        return self._one(UserResponse, await self.request("GET", "/auth/me"))

    async def change_password(self, current_password: str, new_password: str) -> str:
        body = await self.request(
            "POST",
            "/auth/change-password",
            json={"current_password": current_password, "new_password": new_password},
        )
        return body.get("message", "")

    # ----------------------------------------------------------- companies
    async def list_companies(self) -> List[CompanyResponse]:
        return self._many(CompanyResponse, await self.request("GET", "/companies"))

    async def create_company(self, name: str, email: str, password: str, phone: Optional[str] = None) -> CompanyResponse:
        payload = {"name": name, "email": email, "password": password, "phone": phone}
        return self._one(CompanyResponse, await self.request("POST", "/companies", json=payload))

    async def update_company(self, company_id: int, **changes) -> CompanyResponse:
        return self._one(CompanyResponse, await self.request("PUT", f"/companies/{company_id}", json=changes))

    async def delete_company(self, company_id: int) -> None:
        await self.request("DELETE", f"/companies/{company_id}")

    # --------------------------------------------------------------- files
    async def list_files(self, **filters) -> List[FileResponse]:
        params = {k: v for k, v in filters.items() if v is not None}
        return self._many(FileResponse, await self.request("GET", "/files", params=params))

    async def upload_files(
        self,
        company_id: int,
        category: str,
        files: Iterable[Tuple[str, bytes, str]],
        expiry_date: Optional[str] = None,
    ) -> UploadResult:
        """``files`` holds ``(filename, content, content_type)`` tuples."""
        form = {"company_id": str(company_id), "category": category}
        if expiry_date:
            form["expiry_date"] = expiry_date
        multipart = [("files", (name, content, content_type)) for name, content, content_type in files]
        body = await self.request("POST", "/files/upload", data=form, files=multipart)
        return self._one(UploadResult, body)

    async def delete_file(self, file_id: int) -> None:
        await self.request("DELETE", f"/files/{file_id}")

    async def mark_file_read(self, file_id: int) -> FileResponse:
        return self._one(FileResponse, await self.request("POST", f"/files/{file_id}/mark-read"))

    async def file_url(self, file_id: int) -> SignedUrl:
        return self._one(SignedUrl, await self.request("GET", f"/files/{file_id}/url"))

    # ------------------------------------------------------- notifications
    async def list_notifications(self, unread_only: bool = False) -> List[NotificationResponse]:
        params = {"unread_only": "true"} if unread_only else None
        return self._many(NotificationResponse, await self.request("GET", "/notifications", params=params))

    async def send_notification(self, subject: str, message: str, company_id: Optional[int] = None) -> List[NotificationResponse]:
        payload = {"subject": subject, "message": message, "company_id": company_id}
        return self._many(NotificationResponse, await self.request("POST", "/notifications", json=payload))

    async def acknowledge_notification(self, notification_id: int) -> NotificationResponse:
        return self._one(NotificationResponse, await self.request("POST", f"/notifications/{notification_id}/read"))

    async def mark_all_notifications_read(self) -> None:
        await self.request("POST", "/notifications/mark-all-read")

    # ------------------------------------------------------------ requests
    async def list_requests(self) -> List[DocumentRequestResponse]:
        return self._many(DocumentRequestResponse, await self.request("GET", "/requests"))

    async def create_request(self, doc_type: str, description: str = "") -> DocumentRequestResponse:
        payload = {"doc_type": doc_type, "description": description}
        return self._one(DocumentRequestResponse, await self.request("POST", "/requests", json=payload))

    async def complete_request(self, request_id: int) -> DocumentRequestResponse:
        body = await self.request("PUT", f"/requests/{request_id}", json={"status": "completed"})
        return self._one(DocumentRequestResponse, body)

    # ------------------------------------------------------------ activity
    async def list_activity(self, limit: int = 100) -> List[ActivityResponse]:
        return self._many(ActivityResponse, await self.request("GET", "/activity", params={"limit": limit}))

    async def clear_activity(self) -> None:
        await self.request("DELETE", "/activity")
