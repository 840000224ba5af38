"""Pytest fixtures: test client, test DB (in-memory SQLite), tokens and row factories."""
import os
import time

import pytest
from fastapi.testclient import TestClient

# In-memory SQLite and test secrets; must be set before the app is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test")
os.environ.setdefault("STRIPE_SECRET_KEY", "")
# Low enough for the rate limit test, limiter storage is reset per test
os.environ.setdefault("RATE_LIMIT_LOOKUP_PER_MINUTE", "5")

from jose import jwt
from sqlmodel import Session, SQLModel

from discfinder.core.database import engine
from discfinder.core.rate_limit import limiter
from discfinder.main import app
from discfinder.models import (
    Disc,
    OrderStatus,
    Profile,
    QRCode,
    StickerOrder,
    StickerOrderItem,
)
from discfinder.services.storage import ObjectStorage, get_storage


@pytest.fixture(autouse=True)
def _fresh_state():
    """Every test starts with empty tables and an empty rate limit window."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    limiter.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client():
    """TestClient; lifespan creates the tables on the shared in-memory DB."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    with Session(engine) as session:
        yield session


@pytest.fixture
def storage(tmp_path):
    store = ObjectStorage(tmp_path / "storage")
    app.dependency_overrides[get_storage] = lambda: store
    return store


@pytest.fixture
def make_token():
    def _make(sub: str = "user-1", email: str | None = "user1@example.com", **overrides) -> str:
        claims = {"sub": sub, "aud": "authenticated", "exp": int(time.time()) + 3600}
        if email:
            claims["email"] = email
        claims.update(overrides)
        return jwt.encode(claims, os.environ["JWT_SECRET"], algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token):
    """Authorization header for user-1."""
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def headers_for(make_token):
    def _headers(sub: str) -> dict:
        return {"Authorization": f"Bearer {make_token(sub=sub, email=f'{sub}@example.com')}"}

    return _headers


@pytest.fixture
def make_order(db):
    counter = {"n": 0}

    def _make(
        status: OrderStatus | str = OrderStatus.PAID,
        quantity: int = 3,
        user_id: str = "user-1",
        session_id: str | None = None,
    ) -> StickerOrder:
        counter["n"] += 1
        n = counter["n"]
        order = StickerOrder(
            order_number=f"DF-20240101-{n:06d}",
            user_id=user_id,
            quantity=quantity,
            unit_price_cents=100,
            total_price_cents=100 * quantity,
            status=OrderStatus(status).value,
            stripe_checkout_session_id=session_id or f"cs_test_{n}",
            printer_token=f"printer-token-{n}",
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make


@pytest.fixture
def make_disc(db):
    def _make(owner_id: str | None = "user-1", mold: str = "Destroyer", **fields) -> Disc:
        disc = Disc(owner_id=owner_id, name=mold, mold=mold, **fields)
        db.add(disc)
        db.commit()
        db.refresh(disc)
        return disc

    return _make


@pytest.fixture
def make_code(db):
    def _make(short_code: str, status: str = "generated", assigned_to: str | None = "user-1", order: StickerOrder | None = None) -> QRCode:
        qr = QRCode(short_code=short_code, status=status, assigned_to=assigned_to)
        db.add(qr)
        db.commit()
        db.refresh(qr)
        if order is not None:
            db.add(StickerOrderItem(order_id=order.id, qr_code_id=qr.id))
            db.commit()
        return qr

    return _make


@pytest.fixture
def make_profile(db):
    def _make(user_id: str, **fields) -> Profile:
        profile = Profile(id=user_id, **fields)
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make
