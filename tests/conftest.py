import os
import tempfile

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="portal-storage-")
os.environ.pop("ADMIN_EMAIL", None)
os.environ.pop("ADMIN_PASSWORD", None)

from portal.database import Base, get_db
from portal.main import app
from portal.models.company import Company
from portal.models.user import User, UserRole
from portal.services import auth as auth_service
from portal.services.storage import LocalObjectStore, get_storage
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_EMAIL = "a@x.com"
ADMIN_PASSWORD = "secret1"
COMPANY_PASSWORD = "pass123"


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def storage(tmp_path):
    return LocalObjectStore(str(tmp_path / "objects"))


def _create_company(db_session, name, email, password=COMPANY_PASSWORD):
    company = Company(name=name, email=email, phone="555-0100")
    db_session.add(company)
    db_session.flush()
    db_session.add(User(
        email=email,
        hashed_password=auth_service.get_password_hash(password),
        role=UserRole.COMPANY,
        company_id=company.id,
        is_active=True,
    ))
    db_session.commit()
    return company


@pytest.fixture(scope="function")
def admin_user(db_session):
    user = User(
        email=ADMIN_EMAIL,
        hashed_password=auth_service.get_password_hash(ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope="function")
def company(db_session):
    return _create_company(db_session, "Acme", "c@acme.com")


@pytest.fixture(scope="function")
def other_company(db_session):
    return _create_company(db_session, "Globex", "g@globex.com")


@pytest.fixture(scope="function")
def company_user(db_session, company):
    return db_session.query(User).filter(User.company_id == company.id).one()


@pytest.fixture(scope="function")
def other_company_user(db_session, other_company):
    return db_session.query(User).filter(User.company_id == other_company.id).one()


@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens for a user."""
    def _get_token(user):
        return auth_service.create_access_token(data=auth_service.build_token_claims(user))
    return _get_token


@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {get_token(user)}"}
    return _auth_headers


@pytest.fixture(scope="function")
def admin_headers(admin_user, auth_headers):
    return auth_headers(admin_user)


@pytest.fixture(scope="function")
def company_headers(company_user, auth_headers):
    return auth_headers(company_user)


@pytest.fixture(scope="function")
def client(db_session, storage):
    """TestClient wired to the test database session and a temporary object store."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def upload(client, admin_headers):
    """Upload files as admin: upload(company_id, [(name, bytes, type)], category=...)."""
    def _upload(company_id, files, category="Tax", expiry_date=None, headers=None):
        data = {"company_id": str(company_id), "category": category}
        if expiry_date:
            data["expiry_date"] = expiry_date
        return client.post(
            "/api/files/upload",
            headers=headers or admin_headers,
            data=data,
            files=[("files", f) for f in files],
        )
    return _upload
