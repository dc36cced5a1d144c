"""
Shared pytest fixtures: in-memory SQLite, fake OCR / AI collaborators,
FastAPI TestClient.
"""
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.deps import get_structuring_client, get_text_extractor, get_upload_storage
from app.main import app
from app.models import ReceiptModel  # noqa: F401  register model
from app.storage import StoredUpload, UploadStorage
from app.store import ReceiptStore

# StaticPool ensures all connections share the same in-memory database
_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)

CAFE_TEXT = "Coffee 3.50\nBagel 2.00\nTotal 5.50"
CAFE_JSON = (
    '{"storeName":"Cafe X","date":"2024-05-01","items":['
    '{"name":"Coffee","price":3.50,"quantity":1},'
    '{"name":"Bagel","price":2.00,"quantity":1}],"totalAmount":5.50}'
)


class FakeExtractor:
    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def extract(self, image_path):
        self.calls.append(image_path)
        if self.error is not None:
            raise self.error
        return self.text


class FakeStructuringClient:
    def __init__(self, output="", error=None):
        self.output = output
        self.error = error
        self.calls = []

    def structure(self, raw_text, prompt_template=None):
        self.calls.append(raw_text)
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture()
def db():
    session = _Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db):
    return ReceiptStore(db)


@pytest.fixture()
def upload(tmp_path):
    path = tmp_path / "1714550400000-receipt.jpg"
    path.write_bytes(b"not really a jpeg")
    return StoredUpload(
        path=str(path), url="/uploads/1714550400000-receipt.jpg", filename=path.name
    )


@pytest.fixture()
def extractor():
    return FakeExtractor(text=CAFE_TEXT)


@pytest.fixture()
def structuring_client():
    return FakeStructuringClient(output=CAFE_JSON)


@pytest.fixture()
def today():
    return date(2024, 6, 15)


@pytest.fixture()
def client(db, tmp_path, extractor, structuring_client):
    def _override():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override
    app.dependency_overrides[get_text_extractor] = lambda: extractor
    app.dependency_overrides[get_structuring_client] = lambda: structuring_client
    app.dependency_overrides[get_upload_storage] = lambda: UploadStorage(str(tmp_path / "uploads"))
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
