import importlib
import io
import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="docshare-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from docshare.core.database import DATABASE_URL, Base
from docshare.core.storage import StorageError, StorageProvider, UploadResult, get_storage
from docshare.main import app

auth_routes = importlib.import_module("docshare.routes.auth")

PASSWORD = "Secret#123"

sync_engine = create_engine(DATABASE_URL.replace("+aiosqlite", ""))


class InMemoryStorage(StorageProvider):
    def __init__(self):
        self.objects = {}

    def initialize(self):
        pass

    def upload(self, data, length, metadata):
        path = f"{metadata.user_id}/{metadata.file_name}"
        self.objects[path] = data.read()
        return UploadResult(file_path=path)

    def delete(self, file_path):
        self.objects.pop(file_path, None)

    def open(self, file_path):
        if file_path not in self.objects:
            raise StorageError(f"Object {file_path} is not available")
        return io.BytesIO(self.objects[file_path])

    def size(self, file_path):
        if file_path not in self.objects:
            raise StorageError(f"Object {file_path} is not available")
        return len(self.objects[file_path])


@pytest.fixture(autouse=True)
def database():
    # fresh schema per test
    Base.metadata.drop_all(sync_engine)
    Base.metadata.create_all(sync_engine)
    yield


@pytest.fixture
def storage():
    fake = InMemoryStorage()
    app.dependency_overrides[get_storage] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
def sent_emails(monkeypatch):
    outbox = []

    async def fake_send_email(to_email, subject, body):
        outbox.append({"to": to_email, "subject": subject, "body": body})
        return True

    monkeypatch.setattr(auth_routes, "send_email", fake_send_email)
    return outbox


@pytest.fixture
def client(storage):
    return TestClient(app)


def register(client, email="owner@example.com", password=PASSWORD, name="Olivia Owner"):
    res = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


def upload(client, headers, name="report.pdf", content=b"%PDF-1.4 quarterly numbers", content_type="application/pdf"):
    res = client.post("/api/documents/upload", files={"file": (name, content, content_type)}, headers=headers)
    assert res.status_code == 200, res.text
    return res.json()["document"]


def create_link(client, headers, document_id, **fields):
    payload = {"documentId": document_id, "isPublic": True}
    payload.update(fields)
    res = client.post("/api/links", json=payload, headers=headers)
    assert res.status_code == 200, res.text
    return res.json()["link"]


@pytest.fixture
def auth_headers(client):
    """Register the document owner and return an Authorization header."""
    return register(client)


@pytest.fixture
def document(client, auth_headers):
    return upload(client, auth_headers)
