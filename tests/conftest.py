import os

os.environ.setdefault("RATE_LIMIT_REQUESTS", "100000")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("PROVIDER_TIMEZONE", "UTC")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from muabook.db.session import get_db
from muabook.dependencies import get_blob_store
from muabook.main import app
from muabook.db.base import Base
from muabook.services.blob_store import S3BlobStore


class FakeS3Client:
    """Records uploads and hands out predictable presigned URLs."""

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.presigned: list[dict] = []

    def put_object(self, *, Bucket, Key, Body, ContentType):
        self.objects[Key] = (Body, ContentType)
        return {"ETag": '"fake"'}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        self.presigned.append({"operation": operation, "params": Params, "expires": ExpiresIn})
        return f"https://s3.test/{Params['Bucket']}/{Params['Key']}?X-Amz-Expires={ExpiresIn}"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture()
def db(session_factory):
    """Service-level session; do not mix with ``client`` in one test."""

    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture()
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture()
def blob_store(s3_client) -> S3BlobStore:
    return S3BlobStore(
        s3_client,
        "storage",
        public_base_url="https://cdn.test",
        presign_expiration_seconds=3600,
    )


@pytest.fixture()
def client(session_factory, blob_store):
    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
