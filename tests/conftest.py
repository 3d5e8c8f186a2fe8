from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
import sys

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from awards.api.deps import get_db_session, get_image_service
from awards.api.routes.auth import refresh_token_store
from awards.core.config import get_settings
from awards.db.session import enable_sqlite_foreign_keys
from awards.main import app
from awards.models import Base
from awards.services.images import ParticipantImageService


class InMemoryS3Client:
    """Simple in-memory S3 stub used by the image upload service during tests."""

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, bytes]] = {}
        self.metadata: dict[str, dict[str, str]] = {}

    def head_bucket(self, *, Bucket: str) -> None:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")

    def create_bucket(self, *, Bucket: str, **_: object) -> None:
        self._buckets.setdefault(Bucket, {})

    def put_object(
        self,
        *,
        Bucket: str,
        Key: str,
        Body: bytes,
        ContentType: str | None = None,
        Metadata: dict[str, str] | None = None,
        **_: object,
    ) -> dict[str, str]:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "NoSuchBucket"}}, "PutObject")
        self._buckets[Bucket][Key] = Body
        self.metadata[Key] = dict(Metadata or {})
        return {"ETag": "in-memory"}

    @property
    def buckets(self) -> dict[str, dict[str, bytes]]:
        return self._buckets


DATABASE_URL = "sqlite+pysqlite://"


engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

ADMIN_EMAIL = "admin@example.com"
VOTER_EMAIL = "voter@example.com"


def identity_token(email: str, **claims: object) -> str:
    """Sign an identity provider token the way the sign-in page would."""

    settings = get_settings()
    payload = {"email": email, "name": email.split("@", 1)[0], **claims}
    return jwt.encode(
        payload,
        settings.identity_provider_secret,
        algorithm=settings.identity_provider_algorithm,
    )


@pytest.fixture(autouse=True)
def reset_refresh_store() -> Iterator[None]:
    refresh_token_store.reset()
    yield
    refresh_token_store.reset()


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture()
def s3_client() -> InMemoryS3Client:
    return InMemoryS3Client()


@pytest.fixture()
def image_service(s3_client: InMemoryS3Client) -> ParticipantImageService:
    return ParticipantImageService(settings=get_settings(), s3_client_factory=lambda: s3_client)


@pytest.fixture()
def client(db_session: Session, image_service: ParticipantImageService) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_image_service] = lambda: image_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def sign_in(client: TestClient) -> Callable[[str], dict[str, str]]:
    def _sign_in(email: str) -> dict[str, str]:
        response = client.post("/api/auth/callback", json={"id_token": identity_token(email)})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _sign_in


@pytest.fixture()
def admin_headers(sign_in: Callable[[str], dict[str, str]]) -> dict[str, str]:
    return sign_in(ADMIN_EMAIL)


@pytest.fixture()
def voter_headers(sign_in: Callable[[str], dict[str, str]]) -> dict[str, str]:
    return sign_in(VOTER_EMAIL)
