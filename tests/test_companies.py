import csv
import io

from portal.models.activity import ActivityLogEntry
from portal.models.company import Company
from portal.models.file import File
from portal.models.user import User, UserRole
from portal.services import auth as auth_service

PDF = ("report.pdf", b"%PDF-1.4 test", "application/pdf")


def test_create_company(client, db_session, admin_headers):
    response = client.post(
        "/api/companies",
        headers=admin_headers,
        json={"name": "Acme", "email": "c@acme.com", "password": "pass123", "phone": "555-0100"},
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Acme"
    assert data["file_count"] == 0
    assert "password" not in data

    login = db_session.query(User).filter(User.email == "c@acme.com").one()
    assert login.role == UserRole.COMPANY
    assert login.company_id == data["id"]
    assert login.hashed_password != "pass123"
    assert auth_service.verify_password("pass123", login.hashed_password)


def test_created_company_can_log_in(client, admin_headers):
    client.post(
        "/api/companies",
        headers=admin_headers,
        json={"name": "Acme", "email": "c@acme.com", "password": "pass123"},
    )
    response = client.post("/api/auth/login", json={"email": "c@acme.com", "password": "pass123"})
    assert response.status_code == 200
    assert response.json()["data"]["user"]["company_name"] == "Acme"


def test_create_company_rejects_weak_password(client, db_session, admin_headers):
    companies_before = db_session.query(Company).count()
    users_before = db_session.query(User).count()

    response = client.post(
        "/api/companies",
        headers=admin_headers,
        json={"name": "Weak Co", "email": "w@weak.com", "password": "123"},
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "password"
    assert db_session.query(Company).count() == companies_before
    assert db_session.query(User).count() == users_before


def test_create_company_duplicate_email(client, company, admin_headers):
    response = client.post(
        "/api/companies",
        headers=admin_headers,
        json={"name": "Acme Again", "email": "c@acme.com", "password": "pass123"},
    )
    assert response.status_code == 409
    assert response.json()["success"] is False


def test_company_email_cannot_reuse_admin_login(client, admin_headers):
    response = client.post(
        "/api/companies",
        headers=admin_headers,
        json={"name": "Sneaky", "email": "a@x.com", "password": "pass123"},
    )
    assert response.status_code == 409


def test_company_user_cannot_manage_companies(client, company, company_headers):
    assert client.get("/api/companies", headers=company_headers).status_code == 403
    response = client.post(
        "/api/companies",
        headers=company_headers,
        json={"name": "Other", "email": "o@other.com", "password": "pass123"},
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Access denied"
    assert client.delete(f"/api/companies/{company.id}", headers=company_headers).status_code == 403


def test_list_companies_with_file_counts(client, company, other_company, admin_headers, upload):
    upload(company.id, [PDF, ("b.txt", b"hello", "text/plain")])

    response = client.get("/api/companies", headers=admin_headers)
    assert response.status_code == 200
    counts = {c["name"]: c["file_count"] for c in response.json()["data"]}
    assert counts == {"Acme": 2, "Globex": 0}


def test_update_company(client, db_session, company, admin_headers):
    response = client.put(
        f"/api/companies/{company.id}",
        headers=admin_headers,
        json={"name": "Acme Ltd", "email": "info@acme.com", "password": "fresh123"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Acme Ltd"
    assert response.json()["data"]["email"] == "info@acme.com"

    login = client.post("/api/auth/login", json={"email": "info@acme.com", "password": "fresh123"})
    assert login.status_code == 200
    assert login.json()["data"]["user"]["company_id"] == company.id


def test_update_company_partial(client, company, admin_headers):
    response = client.put(f"/api/companies/{company.id}", headers=admin_headers, json={"phone": "555-9999"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["phone"] == "555-9999"
    assert data["name"] == "Acme"
    # Password untouched
    login = client.post("/api/auth/login", json={"email": "c@acme.com", "password": "pass123"})
    assert login.status_code == 200


def test_update_company_email_conflict(client, company, other_company, admin_headers):
    response = client.put(f"/api/companies/{company.id}", headers=admin_headers, json={"email": "g@globex.com"})
    assert response.status_code == 409


def test_update_missing_company(client, admin_headers):
    response = client.put("/api/companies/9999", headers=admin_headers, json={"name": "Ghost"})
    assert response.status_code == 404
    assert response.json()["message"] == "Company not found"


def test_delete_company_cascades(client, db_session, storage, company, other_company, admin_headers, upload, auth_headers, company_user):
    uploaded = upload(company.id, [PDF]).json()["data"]["uploaded"]
    upload(other_company.id, [("keep.pdf", b"%PDF", "application/pdf")])
    file_id = uploaded[0]["id"]
    storage_path = uploaded[0]["storage_path"]
    client.post(f"/api/files/{file_id}/mark-read", headers=auth_headers(company_user))
    client.post("/api/notifications", headers=admin_headers, json={"company_id": company.id, "subject": "Hi", "message": "Hello"})
    client.post("/api/requests", headers=auth_headers(company_user), json={"doc_type": "Tax Return"})

    response = client.delete(f"/api/companies/{company.id}", headers=admin_headers)
    assert response.status_code == 200

    db_session.expire_all()
    assert db_session.get(Company, company.id) is None
    assert db_session.query(User).filter(User.email == "c@acme.com").first() is None
    assert db_session.query(File).filter(File.company_id == company.id).count() == 0
    assert not storage.exists(storage_path)

    remaining = client.get("/api/files", headers=admin_headers).json()["data"]
    assert [f["name"] for f in remaining] == ["keep.pdf"]
    assert client.get("/api/notifications", headers=admin_headers).json()["data"] == []
    assert client.get("/api/requests", headers=admin_headers).json()["data"] == []


def test_deleted_company_cannot_log_in(client, company, admin_headers):
    client.delete(f"/api/companies/{company.id}", headers=admin_headers)
    response = client.post("/api/auth/login", json={"email": "c@acme.com", "password": "pass123"})
    assert response.status_code == 401


def test_delete_missing_company(client, admin_headers):
    assert client.delete("/api/companies/9999", headers=admin_headers).status_code == 404


def test_export_companies(client, db_session, company, other_company, admin_headers):
    response = client.get("/api/companies/export", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["Name", "Email", "Phone", "Files", "Created"]
    assert [row[0] for row in rows[1:]] == ["Acme", "Globex"]
    assert "pass123" not in response.text

    assert db_session.query(ActivityLogEntry).filter(ActivityLogEntry.action == "export").count() == 1
