# hermes/conftest.py
import os
import pytest


@pytest.fixture(scope="session")
def db_url():
    """
    DATABASE URL for tests.

    TEST_DATABASE_URL wins when set; otherwise an in-memory SQLite database
    shared across sessions (StaticPool) is used.
    """
    return os.getenv("TEST_DATABASE_URL") or "sqlite://"


@pytest.fixture(scope="session", autouse=True)
def engine(db_url):
    """Bind the engine once per test session and create all tables."""
    from hermes.core.database import init_engine, create_all_tables

    engine = init_engine(db_url)
    create_all_tables()
    yield engine
    engine.dispose()


@pytest.fixture(scope="function", autouse=True)
def reset_db(engine):
    """Drop and recreate all tables so every test starts empty."""
    from hermes.core.database import reset_database

    reset_database()
    yield


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from hermes.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
