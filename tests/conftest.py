"""
Fixtures compartidas: BD SQLite en memoria, cliente HTTP y datos base.
"""
import os
import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Settings requeridos antes de importar la aplicación
os.environ.setdefault("DATABASE_URL", "sqlite:///./test-unused.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("OUTBOX_ENABLED", "false")
os.environ.setdefault("CACHE_BACKEND", "memory")

from app.core.deps import get_db  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base, Listing, User, UserRole  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(
        first_name="Ana",
        last_name="Pérez",
        role=UserRole.BUYER,
        email=None,
        password_hash="sin-hash",
        is_active=True,
    ):
        user = User(
            email=email or f"{uuid.uuid4().hex[:10]}@example.com",
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_listing(db):
    def _make(seller, title="Excavadora CAT 320", price=Decimal("150000.00")):
        listing = Listing(
            seller_id=seller.id,
            title=title,
            price=price,
            images=["https://cdn.example.com/excavadora.jpg"],
        )
        db.add(listing)
        db.commit()
        db.refresh(listing)
        return listing

    return _make


@pytest.fixture
def seller(make_user):
    return make_user(first_name="Sergio", last_name="Vendedor", role=UserRole.SELLER)


@pytest.fixture
def buyer(make_user):
    return make_user(first_name="Beatriz", last_name="Compradora")


@pytest.fixture
def listing(make_listing, seller):
    return make_listing(seller)


def _auth_headers(user) -> dict:
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return _auth_headers


@pytest.fixture
def send_message(client):
    """Enviar un mensaje por HTTP y retornar el JSON de respuesta."""

    def _send(sender, receiver, listing, content="¿Sigue disponible?", **extra):
        body = {
            "receiver_id": str(receiver.id),
            "listing_id": str(listing.id),
            "content": content,
        }
        body.update(extra)
        response = client.post("/api/v1/messages", json=body, headers=_auth_headers(sender))
        assert response.status_code == 201, response.text
        return response.json()

    return _send
