"""Python client for the portal API: session, state store and view models."""
from portal.client.api import PortalAPI, PortalAPIError
from portal.client.dashboard import ClientValidationError, PortalController, SessionExpiredError
from portal.client.session import SessionManager
from portal.client.store import PortalStore, Resource

__all__ = [
    "PortalAPI",
    "PortalAPIError",
    "PortalController",
    "ClientValidationError",
    "SessionExpiredError",
    "SessionManager",
    "PortalStore",
    "Resource",
]
