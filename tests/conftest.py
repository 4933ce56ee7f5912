import os
import tempfile

import httpx
import pytest

# Settings are read at import time, so the environment goes first
_TMP = tempfile.mkdtemp(prefix="fieldportal-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["MASTER_PASSWORD"] = "Sup3rSecret!"
os.environ["APPROVED_EMAILS"] = "mario.rossi@example.com,Giulia.Bianchi@example.com"
os.environ.pop("BLOB_UPLOAD_URL", None)

from fastapi.testclient import TestClient  # noqa: E402

from fieldportal.db.base import Base  # noqa: E402
from fieldportal.db.seed import seed_defaults  # noqa: E402
from fieldportal.db.session import engine, SessionLocal, init_models  # noqa: E402
from fieldportal.main import app  # noqa: E402

MASTER_PASSWORD = "Sup3rSecret!"
ADMIN_EMAIL = "admin@example.com"
STAFF_EMAIL = "mario.rossi@example.com"

# 1x1 transparent PNG
PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
PNG_DATA_URL = f"data:image/png;base64,{PNG_B64}"


@pytest.fixture
def db():
    init_models()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    seed_defaults(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    return TestClient(app)


def _login(client, email):
    r = client.post("/api/login", json={"email": email, "password": MASTER_PASSWORD})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return _login(client, ADMIN_EMAIL)


@pytest.fixture
def staff_headers(client):
    return _login(client, STAFF_EMAIL)


@pytest.fixture
def site(client, staff_headers):
    r = client.post(
        "/api/sites",
        json={"name": "Rho Deposito", "client": "ACME", "coordinates": [45.5283, 9.0400]},
        headers=staff_headers,
    )
    assert r.status_code == 201, r.text
    return r.json()


class FakeBlobService:
    """Stands in for the blob upload endpoint behind ``BLOB_UPLOAD_URL``."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.body = None  # None: answer with a CDN url for the uploaded name

    def handler(self, request):
        self.requests.append(request)
        body = self.body
        if body is None:
            body = {"url": f"https://cdn.example.com/{request.url.path.rsplit('/', 1)[-1]}"}
        return httpx.Response(self.status_code, json=body)


@pytest.fixture
def blob_service(monkeypatch):
    from fieldportal.core.config import settings

    service = FakeBlobService()
    real_client = httpx.AsyncClient

    def _client(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(service.handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(settings, "blob_upload_url", "https://blob.example.com/api")
    monkeypatch.setattr(settings, "blob_token", "blob-token")
    monkeypatch.setattr(httpx, "AsyncClient", _client)
    return service
