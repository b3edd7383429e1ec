from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from roundbook.core.cache import ReferenceCache, get_reference_cache
from roundbook.db.base import Base
from roundbook.db.dependencies import get_db_session
import roundbook.models.entities  # noqa: F401
from roundbook.main import create_app
from roundbook.services.blob_storage import BlobStorage, get_blob_storage


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def reference_cache(clock: FakeClock) -> Generator[ReferenceCache, None, None]:
    cache = get_reference_cache()
    cache.clear()
    original_clock = cache.clock
    cache.clock = clock
    yield cache
    cache.clock = original_clock
    cache.clear()


@pytest.fixture()
def blob_storage(tmp_path) -> BlobStorage:
    return BlobStorage(tmp_path / "uploads", max_bytes=2048 * 1024)


@pytest.fixture()
def client(db_session: Session, blob_storage: BlobStorage) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    app.dependency_overrides[get_blob_storage] = lambda: blob_storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

