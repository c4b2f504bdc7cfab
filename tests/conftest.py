import os

# keep the app's own engine off disk while tests import it
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.pop("APP_ORIGIN", None)

import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import auth
import crud
from catalog import CatalogRegistry
from db import Base, get_db, make_engine
from main import app
from tests.fakes import FakeClock, FakeHttp


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(auth, "pwd_context", CryptContext(schemes=["bcrypt"], bcrypt__rounds=4))


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def fake_http():
    return FakeHttp()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(engine, fake_http, clock):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    previous = app.state.catalogs
    app.state.catalogs = CatalogRegistry(http=fake_http, clock=clock)
    yield TestClient(app)
    app.state.catalogs = previous
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(username="alice", password="secret", is_admin=False):
        return crud.create_user(db, username, auth.get_password_hash(password), is_admin)
    return _make_user


@pytest.fixture
def login(client):
    def _login(username, password):
        resp = client.post("/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["user"]
    return _login
