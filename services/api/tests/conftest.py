import os

# Must be set before the app (and its settings) are imported
os.environ["AI_MODE"] = "mock"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AI_IMAGES_ENABLED"] = "false"
os.environ["RESURRECT_ARCHIVED_ON_CREATE"] = "false"

import json
import sqlite3

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cookbook.main import app
from cookbook.db import Base, create_schema, get_db
from cookbook.deps import get_storage
from cookbook.infra import redis_client
from cookbook.services.storage import LocalStorage

# --- Test Database Setup ---

@compiles(JSONB, 'sqlite')
def compile_jsonb(element, compiler, **kw):
    return "JSON"

# Register adapters for SQLite to handle list/dict as JSON
sqlite3.register_adapter(list, json.dumps)
sqlite3.register_adapter(dict, json.dumps)

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool  # one shared connection, so every session sees the same in-memory DB
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    create_schema(engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def mock_redis():
    redis_client._redis_sync = fakeredis.FakeRedis(decode_responses=True)
    yield
    redis_client._redis_sync = None


@pytest.fixture
def media_store(tmp_path):
    return LocalStorage(tmp_path / "media")


@pytest.fixture
def client(media_store):
    """Test client with DB and blob store overrides."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: media_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup and assertions."""
    session = TestingSessionLocal()
    yield session
    session.close()


def group_headers(group_id: str) -> dict:
    return {"x-group-id": group_id}


@pytest.fixture
def as_group(client):
    """Call an endpoint as a given group: ``as_group("a", "recipesGet", {"id": ...})``."""
    def _call(group_id, endpoint, body=None):
        return client.post(f"/api/{endpoint}", json=body or {}, headers=group_headers(group_id))
    return _call


@pytest.fixture
def make_recipe(as_group):
    def _make(group_id="group-a", **overrides):
        body = {
            "name": "Tomato Soup",
            "description": "A warm tomato soup",
            "servings": 2,
            "ingredients": [{"ingredientId": "tomato", "quantity": 4, "unit": "piece"}],
            "steps": [{"text": "Chop"}, {"text": "Simmer"}],
            "tags": ["soup"],
            "categories": ["dinner"],
        }
        body.update(overrides)
        resp = as_group(group_id, "recipesCreate", body)
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make
