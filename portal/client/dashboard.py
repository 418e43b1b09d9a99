"""
Dashboard controller: loads collections into the store and runs user actions.

Every action validates its input locally, calls the API, then refetches the
affected collection wholesale. Dashboard loads fan out concurrently and fail
soft per collection.
"""
import asyncio
import logging
import time
from typing import Callable, Dict, Iterable, Optional, Tuple

from portal.client.api import PortalAPI, PortalAPIError
from portal.client.session import SessionManager
from portal.client.store import PortalStore, Resource
from portal.core.config import FILE_CATEGORIES
from portal.models.user import UserRole
from portal.schemas.auth import LoginData
from portal.schemas.file import SignedUrl, UploadResult

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

ProgressCallback = Callable[[int, float], None]

ADMIN_RESOURCES = (
    Resource.COMPANIES,
    Resource.FILES,
    Resource.NOTIFICATIONS,
    Resource.ACTIVITY,
    Resource.REQUESTS,
)
COMPANY_RESOURCES = (Resource.FILES, Resource.NOTIFICATIONS, Resource.REQUESTS)


class ClientValidationError(ValueError):
    """Input rejected before any request was sent."""


class SessionExpiredError(PortalAPIError):
    def __init__(self):
        super().__init__("Session expired. Please login again.", status_code=401)


def _fetch(api: PortalAPI, resource: Resource):
    if resource == Resource.COMPANIES:
        return api.list_companies()
    if resource == Resource.FILES:
        return api.list_files()
    if resource == Resource.NOTIFICATIONS:
        return api.list_notifications()
    if resource == Resource.REQUESTS:
        return api.list_requests()
    return api.list_activity()


class PortalController:
    def __init__(
        self,
        api: PortalAPI,
        store: Optional[PortalStore] = None,
        session: Optional[SessionManager] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.clock = clock
        self.store = store or PortalStore()
        self.session = session or SessionManager()
        if self.session.on_expire is None:
            self.session.on_expire = self.logout

    @property
    def is_admin(self) -> bool:
        user = self.session.current_user
        return user is not None and user.role == UserRole.ADMIN

    # ------------------------------------------------------------ session
    async def login(self, email: str, password: str) -> LoginData:
        email = email.strip()
        if not email or not password:
            raise ClientValidationError("Please enter email and password")
        login = await self.api.login(email, password)
        self.session.start(login)
        self.store.reset()
        await self.load_dashboard()
        return login

    def resume(self) -> bool:
        """Pick up a persisted session after a restart."""
        if not self.session.restore():
            return False
        self.api.token = self.session.access_token
        return True

    async def logout(self) -> None:
        try:
            await self.api.logout()
        except PortalAPIError as e:
            logger.error(f"Logout error: {e.message}")
        finally:
            self.session.end()
            self.store.reset()

    async def _guard(self) -> None:
        """Count the action as user activity, unless the session already timed out."""
        if self.session.check():
            self.api.token = None
            self.store.reset()
            raise SessionExpiredError()
        self.session.touch()

    # ------------------------------------------------------------ loading
    async def refresh(self, resource: Resource) -> Optional[PortalAPIError]:
        """Refetch one collection; the error is returned, not raised."""
        try:
            items = await _fetch(self.api, resource)
        except PortalAPIError as e:
            logger.error(f"Load {resource.value} error: {e.message}")
            return e
        self.store.dispatch(resource, items)
        return None

    async def load_dashboard(self) -> Dict[Resource, PortalAPIError]:
        """
        Fetch every collection the current role can see, concurrently.
        Returns the failures by resource; the other panels still populate.
        """
        resources = ADMIN_RESOURCES if self.is_admin else COMPANY_RESOURCES
        results = await asyncio.gather(*(self.refresh(resource) for resource in resources))
        failures = {resource: error for resource, error in zip(resources, results) if error is not None}
        if failures:
            logger.warning(f"Some data failed to load: {sorted(r.value for r in failures)}")
        return failures

    # ---------------------------------------------------------- companies
    async def add_company(self, name: str, email: str, password: str, phone: Optional[str] = None):
        await self._guard()
        if not name.strip() or not email.strip():
            raise ClientValidationError("Company name and email are required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ClientValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        company = await self.api.create_company(name.strip(), email.strip(), password, (phone or "").strip() or None)
        await self.refresh(Resource.COMPANIES)
        return company

    async def edit_company(self, company_id: int, name: str, email: str, phone: Optional[str] = None, password: Optional[str] = None):
        await self._guard()
        changes = {"name": name.strip(), "email": email.strip(), "phone": (phone or "").strip()}
        # A short password in the edit form means "leave unchanged"
        if password and len(password) >= MIN_PASSWORD_LENGTH:
            changes["password"] = password
        company = await self.api.update_company(company_id, **changes)
        await self.refresh(Resource.COMPANIES)
        return company

    async def delete_company(self, company_id: int) -> None:
        await self._guard()
        await self.api.delete_company(company_id)
        await asyncio.gather(self.refresh(Resource.COMPANIES), self.refresh(Resource.FILES))

    # -------------------------------------------------------------- files
    async def upload_files(
        self,
        company_id: Optional[int],
        category: Optional[str],
        files: Iterable[Tuple[str, bytes, str]],
        expiry_date: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """
        ``on_progress(percent, elapsed_seconds)`` receives an estimate: 0 once
        the input is accepted, 50 while the request is in flight, 100 when the
        server has answered.
        """
        await self._guard()
        files = list(files)
        if not company_id:
            raise ClientValidationError("Please select a company")
        if category not in FILE_CATEGORIES:
            raise ClientValidationError("Please select a category")
        if not files:
            raise ClientValidationError("Please select files to upload")

        started = self.clock()
        report = on_progress or (lambda percent, elapsed: None)
        report(0, 0.0)
        report(50, self.clock() - started)
        result = await self.api.upload_files(company_id, category, files, expiry_date=expiry_date)
        elapsed = self.clock() - started
        report(100, elapsed)
        logger.info(f"Uploaded {len(result.uploaded)} file(s), {len(result.failed)} failed in {elapsed:.1f}s")
        await self.refresh(Resource.FILES)
        return result

    async def delete_file(self, file_id: int) -> None:
        await self._guard()
        await self.api.delete_file(file_id)
        await self.refresh(Resource.FILES)

    async def open_file(self, file_id: int) -> SignedUrl:
        """Signed URL for a file; company viewers are added to its read-set first."""
        await self._guard()
        if not self.is_admin:
            try:
                await self.api.mark_file_read(file_id)
            except PortalAPIError as e:
                logger.error(f"Mark as read error: {e.message}")
        url = await self.api.file_url(file_id)
        if not self.is_admin:
            await self.refresh(Resource.FILES)
        return url

    # ------------------------------------------------------ notifications
    async def send_notification(self, subject: str, message: str, company_id: Optional[int] = None):
        await self._guard()
        if not subject.strip() or not message.strip():
            raise ClientValidationError("Please enter subject and message")
        sent = await self.api.send_notification(subject.strip(), message.strip(), company_id)
        await self.refresh(Resource.NOTIFICATIONS)
        return sent

    async def acknowledge_notification(self, notification_id: int):
        await self._guard()
        notification = await self.api.acknowledge_notification(notification_id)
        await self.refresh(Resource.NOTIFICATIONS)
        return notification

    async def acknowledge_all_notifications(self) -> None:
        await self._guard()
        await self.api.mark_all_notifications_read()
        await self.refresh(Resource.NOTIFICATIONS)

    # ----------------------------------------------------------- requests
    async def request_document(self, doc_type: str, description: str = ""):
        await self._guard()
        if not doc_type.strip():
            raise ClientValidationError("Please choose a document type")
        created = await self.api.create_request(doc_type.strip(), description.strip())
        await self.refresh(Resource.REQUESTS)
        return created

    async def complete_request(self, request_id: int):
        await self._guard()
        updated = await self.api.complete_request(request_id)
        await self.refresh(Resource.REQUESTS)
        return updated

    # ----------------------------------------------------------- activity
    async def clear_activity(self) -> None:
        await self._guard()
        await self.api.clear_activity()
        await self.refresh(Resource.ACTIVITY)

    # ----------------------------------------------------------- security
    async def change_password(self, current_password: str, new_password: str, confirm_password: str) -> str:
        await self._guard()
        if new_password != confirm_password:
            raise ClientValidationError("Passwords do not match")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ClientValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return await self.api.change_password(current_password, new_password)
