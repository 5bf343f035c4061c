import os

import pytest

# Configuración antes de importar la aplicación: SQLite en memoria
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["COOKIE_SECURE"] = "false"

from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from app.main import app  # noqa: E402
from app.models.database import create_db_and_tables, engine  # noqa: E402
from app.models.product import Product  # noqa: E402
from app.models.user import User  # noqa: E402

PASSWORD = "secreto123"


@pytest.fixture(autouse=True)
def db_schema():
    create_db_and_tables()
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture()
def db_session():
    with Session(engine) as session:
        yield session


@pytest.fixture()
def client():
    return TestClient(app)


def signup(client, email, full_name="Ana Souza", password=PASSWORD):
    return client.post(
        "/auth/registro",
        json={
            "email": email,
            "password": password,
            "confirm_password": password,
            "full_name": full_name,
        },
    )


def login_headers(client, email, password=PASSWORD) -> dict:
    response = client.post("/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
def make_user(client):
    """Registra un usuario y devuelve (cabeceras de autenticación, sesión)."""

    def _make_user(email="ana@example.com", full_name="Ana Souza"):
        response = signup(client, email, full_name)
        assert response.status_code == 201, response.text
        return login_headers(client, email), response.json()

    return _make_user


@pytest.fixture()
def auth_headers(make_user):
    headers, _ = make_user()
    return headers


@pytest.fixture()
def create_product(client, auth_headers):
    def _create_product(**overrides):
        payload = {
            "name": "Galaxy S24",
            "category": "smartphone",
            "minimum_stock": 10,
            "current_stock": 0,
            "unit_price": "1999.90",
        }
        payload.update(overrides)
        response = client.post("/productos/", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create_product


@pytest.fixture()
def actor(db_session):
    user = User(email="almacen@example.com", passwd="x")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def product(db_session):
    product = Product(name="MacBook Air", category="notebook", minimum_stock=10)
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product
