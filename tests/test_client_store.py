from portal.client.store import PortalStore, Resource
from portal.schemas.file import FileResponse

LEGACY_FILE = {
    "id": 1,
    "name": "report.pdf",
    "type": "application/pdf",
    "size": 2048,
    "category": "Tax",
    "companyId": 3,
    "storagePath": "3/Tax/abc-report.pdf",
    "uploadedAt": "2024-04-01T10:00:00",
    "readBy": [7],
}


def test_dispatch_normalizes_legacy_keys():
    store = PortalStore()
    store.dispatch(Resource.FILES, [LEGACY_FILE])

    file = store.files[0]
    assert isinstance(file, FileResponse)
    assert file.company_id == 3
    assert file.storage_path == "3/Tax/abc-report.pdf"
    assert file.read_by == [7]


def test_dispatch_replaces_collection():
    store = PortalStore()
    store.dispatch(Resource.ACTIVITY, [{"id": 1, "action": "login", "user": "a@x.com"}])
    store.dispatch(Resource.ACTIVITY, [{"id": 2, "action": "upload", "user": "a@x.com"}])
    assert [e.id for e in store.activity] == [2]
    assert isinstance(store.activity, tuple)


def test_subscribers_are_notified_per_resource():
    store = PortalStore()
    seen = []
    unsubscribe = store.subscribe(Resource.NOTIFICATIONS, lambda s, r: seen.append((r, len(s.notifications))))

    store.dispatch(Resource.NOTIFICATIONS, [{"id": 1, "company_id": 3, "subject": "Hi", "message": "Hello", "is_read": True}])
    store.dispatch(Resource.FILES, [])
    assert seen == [(Resource.NOTIFICATIONS, 1)]
    assert store.notifications[0].read is True

    unsubscribe()
    store.dispatch(Resource.NOTIFICATIONS, [])
    assert len(seen) == 1


def test_reset_clears_everything():
    store = PortalStore()
    store.dispatch(Resource.FILES, [LEGACY_FILE])
    store.dispatch(Resource.REQUESTS, [{"id": 1, "companyId": 3, "docType": "GST", "status": "pending"}])
    store.reset()
    for resource in Resource:
        assert store.get(resource) == ()
