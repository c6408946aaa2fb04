import os
import tempfile
import pytest
from fastapi.testclient import TestClient

# Point the app at a throwaway SQLite file before anything imports khscrm.database
_db_fd, _DB_PATH = tempfile.mkstemp(prefix="test_khscrm_", suffix=".db")
os.close(_db_fd)
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_PATH}"

from khscrm.database import Base, SessionLocal, engine, get_db
from khscrm.main import app
from khscrm.sessions import InMemorySessionStore

ADMIN_EMAIL = "admin@khscrm.com"
ADMIN_PASSWORD = "admin123"


def pytest_sessionfinish(session, exitstatus):
    engine.dispose()
    try:
        os.remove(_DB_PATH)
    except FileNotFoundError:
        pass


@pytest.fixture()
def db_session():
    # Fresh schema per test
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def session_store():
    return InMemorySessionStore(ttl_seconds=3600)


@pytest.fixture()
def client(db_session, session_store):
    # Override the dependency to use the test session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_store = session_store
    # Entering the client runs startup: create_all (no-op) and seeding
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(client):
    resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}
