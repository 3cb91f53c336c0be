import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

from socialnet import database, models, schemas
from socialnet.api.deps import get_credential_service, get_password_hasher
from socialnet.main import app
from socialnet.services.accounts import AccountService

PASSWORD = "Secret1!pass"


def account_data(username, **overrides) -> schemas.AccountCreate:
    fields = {
        "name": username.capitalize(),
        "email": f"{username}@example.com",
        "password": PASSWORD,
        "username": username,
        "gender": "other",
        "mobile": "+91-9876543210",
    }
    fields.update(overrides)
    return schemas.AccountCreate(**fields)


@pytest.fixture(autouse=True)
def reset_db():
    models.Base.metadata.drop_all(bind=database.engine)
    models.Base.metadata.create_all(bind=database.engine)
    yield


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def accounts(db):
    return AccountService(db, get_password_hasher(), get_credential_service())


@pytest.fixture
def register(client):
    """Register through the API and return (user_id, auth headers)."""
    def _register(username, **overrides):
        payload = account_data(username, **overrides).model_dump(mode="json")
        res = client.post("/api/v1/users/register", json=payload)
        assert res.status_code == 201, res.text
        body = res.json()
        return body["user"]["user_id"], {"Authorization": f"Bearer {body['token']}"}
    return _register
