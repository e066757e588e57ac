import os

# Keep the application off the default SQLite file while testing
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base
from app.api.deps import get_product_store
from app.services.product_service import ProductStore
from app.utils.storage import MemoryStorage


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def storage():
    """Fresh in-memory key-value storage."""
    return MemoryStorage()


@pytest.fixture(scope="function")
def store(storage):
    """Loaded product store with the default page size."""
    product_store = ProductStore(storage=storage)
    product_store.load()
    return product_store


@pytest.fixture(scope="function")
def client(store):
    """Create test client bound to a fresh product store for each test."""
    app.dependency_overrides[get_product_store] = lambda: store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db_session_factory():
    """Session factory over a fresh in-memory database."""
    Base.metadata.create_all(bind=engine)

    yield TestingSessionLocal

    Base.metadata.drop_all(bind=engine)
