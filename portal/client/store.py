"""
Client-side state container.

Holds the last fetched copy of each resource collection. Collections are only
ever replaced wholesale through ``dispatch``; readers get immutable tuples.
This is a cache of what the server returned, never an authorization source.
"""
import enum
import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Tuple

from portal.schemas.activity import ActivityResponse
from portal.schemas.company import CompanyResponse
from portal.schemas.document_request import DocumentRequestResponse
from portal.schemas.file import FileResponse
from portal.schemas.notification import NotificationResponse

logger = logging.getLogger(__name__)


class Resource(str, enum.Enum):
    COMPANIES = "companies"
    FILES = "files"
    NOTIFICATIONS = "notifications"
    REQUESTS = "requests"
    ACTIVITY = "activity"


SCHEMAS = {
    Resource.COMPANIES: CompanyResponse,
    Resource.FILES: FileResponse,
    Resource.NOTIFICATIONS: NotificationResponse,
    Resource.REQUESTS: DocumentRequestResponse,
    Resource.ACTIVITY: ActivityResponse,
}

Listener = Callable[["PortalStore", Resource], None]


class PortalStore:
    def __init__(self):
        self._state: Dict[Resource, Tuple] = {resource: () for resource in Resource}
        self._listeners: Dict[Resource, List[Listener]] = defaultdict(list)

    # Read-only views
    @property
    def companies(self) -> Tuple[CompanyResponse, ...]:
        return self._state[Resource.COMPANIES]

    @property
    def files(self) -> Tuple[FileResponse, ...]:
        return self._state[Resource.FILES]

    @property
    def notifications(self) -> Tuple[NotificationResponse, ...]:
        return self._state[Resource.NOTIFICATIONS]

    @property
    def requests(self) -> Tuple[DocumentRequestResponse, ...]:
        return self._state[Resource.REQUESTS]

    @property
    def activity(self) -> Tuple[ActivityResponse, ...]:
        return self._state[Resource.ACTIVITY]

    def get(self, resource: Resource) -> Tuple:
        return self._state[Resource(resource)]

    def dispatch(self, resource: Resource, items: Iterable) -> None:
        """
        Replace one collection and notify its subscribers.

        Items are normalized into the resource's schema, so raw dicts with
        legacy camelCase keys are accepted as well as parsed models.
        """
        resource = Resource(resource)
        schema = SCHEMAS[resource]
        self._state[resource] = tuple(
            item if isinstance(item, schema) else schema.model_validate(item)
            for item in items
        )
        for listener in list(self._listeners[resource]):
            listener(self, resource)

    def subscribe(self, resource: Resource, listener: Listener) -> Callable[[], None]:
        """Register a render callback; returns a function that unsubscribes it."""
        resource = Resource(resource)
        self._listeners[resource].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[resource]:
                self._listeners[resource].remove(listener)
        return unsubscribe

    def reset(self) -> None:
        for resource in Resource:
            self.dispatch(resource, ())
