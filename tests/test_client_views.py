from datetime import date

from portal.client import views
from portal.client.store import PortalStore, Resource
from portal.schemas.activity import ActivityResponse


def _file(id, name="report.pdf", company_id=1, category="Tax", read_by=(), expiry_date=None, type="application/pdf"):
    return {
        "id": id,
        "name": name,
        "type": type,
        "size": 1536,
        "category": category,
        "company_id": company_id,
        "storage_path": f"{company_id}/{category}/{id}-{name}",
        "read_by": list(read_by),
        "expiry_date": expiry_date,
    }


def test_format_file_size():
    assert views.format_file_size(0) == "0 Bytes"
    assert views.format_file_size(500) == "500 Bytes"
    assert views.format_file_size(1536) == "1.5 KB"
    assert views.format_file_size(1024 * 1024) == "1 MB"
    assert views.format_file_size(5 * 1024 ** 3) == "5 GB"


def test_file_icon():
    assert views.file_icon("application/pdf") == "file-pdf"
    assert views.file_icon("image/png") == "file-image"
    assert views.file_icon("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet") == "file-excel"
    assert views.file_icon("text/plain") == "file"


def test_expiring_soon():
    today = date(2024, 6, 1)
    assert views.is_expiring_soon(date(2024, 6, 5), today) is True
    assert views.is_expiring_soon(date(2024, 7, 1), today) is False
    assert views.is_expiring_soon(None, today) is False


def test_password_strength():
    assert views.password_strength("abc") == "Weak"
    assert views.password_strength("abcdef1") == "Weak"
    assert views.password_strength("Abcdef12") == "Medium"
    assert views.password_strength("Abcdef1234!") == "Strong"


def test_file_cards_mark_unread_files_new():
    store = PortalStore()
    store.dispatch(Resource.FILES, [_file(1, read_by=[7]), _file(2, name="new.pdf")])

    cards = views.file_cards(store.files, viewer_id=7, today=date(2024, 6, 1))
    assert [(c.name, c.is_new) for c in cards] == [("report.pdf", False), ("new.pdf", True)]
    assert cards[0].size == "1.5 KB"
    assert cards[0].icon == "file-pdf"

    # Admin listings carry no NEW badge
    assert not any(c.is_new for c in views.file_cards(store.files))


def test_filter_files():
    store = PortalStore()
    store.dispatch(Resource.FILES, [
        _file(1, "Annual Report.pdf", company_id=1, category="Tax"),
        _file(2, "ledger.csv", company_id=1, category="GST"),
        _file(3, "report-2.pdf", company_id=2, category="Tax"),
    ])
    assert [f.id for f in views.filter_files(store.files, query="report")] == [1, 3]
    assert [f.id for f in views.filter_files(store.files, company_id=1)] == [1, 2]
    assert [f.id for f in views.filter_files(store.files, query="REPORT", category="Tax", company_id=2)] == [3]


def test_company_stats():
    store = PortalStore()
    store.dispatch(Resource.FILES, [_file(1, read_by=[7]), _file(2), _file(3)])
    store.dispatch(Resource.NOTIFICATIONS, [
        {"id": 1, "company_id": 1, "subject": "a", "message": "a", "read": True},
        {"id": 2, "company_id": 1, "subject": "b", "message": "b"},
    ])
    store.dispatch(Resource.REQUESTS, [
        {"id": 1, "company_id": 1, "doc_type": "GST", "status": "pending"},
        {"id": 2, "company_id": 1, "doc_type": "Tax", "status": "completed"},
    ])

    stats = views.company_stats(store, viewer_id=7)
    assert stats == views.CompanyStats(files=3, unread_files=2, unread_notifications=1, pending_requests=1)


def test_admin_stats():
    store = PortalStore()
    store.dispatch(Resource.COMPANIES, [{"id": 1, "name": "Acme", "email": "c@acme.com"}])
    store.dispatch(Resource.FILES, [_file(1), _file(2)])
    stats = views.admin_stats(store)
    assert stats == views.AdminStats(companies=1, files=2, notifications=0, pending_requests=0)


def test_company_name_fallback():
    store = PortalStore()
    store.dispatch(Resource.COMPANIES, [{"id": 1, "name": "Acme", "email": "c@acme.com"}])
    assert views.company_name(store, 1) == "Acme"
    assert views.company_name(store, 99) == "Deleted Company"


def test_login_history():
    entries = [
        ActivityResponse(id=i, action="login", user="c@acme.com", user_id=7) for i in range(10, 3, -1)
    ] + [
        ActivityResponse(id=3, action="logout", user="c@acme.com", user_id=7),
        ActivityResponse(id=1, action="login", user="a@x.com", user_id=1),
    ]
    history = views.login_history(entries, user_id=7)
    assert [e.id for e in history] == [10, 9, 8, 7, 6]


def test_filter_companies_by_name_or_email():
    store = PortalStore()
    store.dispatch(Resource.COMPANIES, [
        {"id": 1, "name": "Acme", "email": "c@acme.com"},
        {"id": 2, "name": "Globex", "email": "info@globex.com"},
        {"id": 3, "name": "Initech", "email": "hello@acme-partners.com"},
    ])
    assert [c.id for c in views.filter_companies(store.companies, "ACME")] == [1, 3]
    assert [c.id for c in views.filter_companies(store.companies, "info@")] == [2]
    assert [c.id for c in views.filter_companies(store.companies, "  ")] == [1, 2, 3]
    assert views.filter_companies(store.companies, "umbrella") == []


def test_request_rows():
    store = PortalStore()
    store.dispatch(Resource.COMPANIES, [{"id": 1, "name": "Acme", "email": "c@acme.com"}])
    store.dispatch(Resource.REQUESTS, [
        {"id": 5, "company_id": 1, "doc_type": "GST", "description": "Q1", "status": "pending"},
        {"id": 4, "company_id": 9, "doc_type": "Tax", "status": "completed", "completed_at": "2024-05-01T09:00:00"},
    ])

    rows = views.request_rows(store)
    assert [(r.id, r.company, r.doc_type, r.status) for r in rows] == [
        (5, "Acme", "GST", "pending"),
        (4, "Deleted Company", "Tax", "completed"),
    ]
    assert rows[0].description == "Q1"
    assert rows[0].completed_at is None
    assert rows[1].completed_at is not None


def test_notification_rows():
    store = PortalStore()
    store.dispatch(Resource.COMPANIES, [{"id": 1, "name": "Acme", "email": "c@acme.com"}])
    store.dispatch(Resource.NOTIFICATIONS, [
        {"id": 2, "company_id": 1, "subject": "Deadline", "message": "Upload GST", "is_read": False},
        {"id": 1, "company_id": 1, "subject": "Welcome", "message": "Hi", "read": True},
    ])

    rows = views.notification_rows(store)
    assert [(n.subject, n.company, n.read) for n in rows] == [
        ("Deadline", "Acme", False),
        ("Welcome", "Acme", True),
    ]
