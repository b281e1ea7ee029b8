import os

# baza w pamieci i bez redisa, zanim cokolwiek z shop sie zaimportuje
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ORDER_SEQUENCE_BACKEND"] = "count"
os.environ["CHECKOUT_LOCK_ENABLED"] = "0"
os.environ["LOG_JSON"] = "0"

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import shop.data.models  # noqa: F401
from shop.api import create_app
from shop.api.providers import get_lock_service, get_payment_verifier, get_sequence_allocator
from shop.data.database import Base, SessionLocal, engine, get_db
from shop.data.models import ProductModel, UserModel
from shop.domain.ports import VerificationResult
from shop.repos.order_repo import OrderRepo
from shop.services.cart_service import CartService
from shop.services.order_number import CountingSequence
from shop.services.order_service import OrderService

# 12:00 w Seulu -> numery ORD250115xxxx
START = datetime(2025, 1, 15, 3, 0, 0, tzinfo=timezone.utc)

ADDRESS = {
    "recipient_name": "Kim Minji",
    "phone": "010-1234-5678",
    "address": {"zip_code": "06236", "main_address": "Teheran-ro 123, Gangnam-gu", "detail_address": "5F"},
}


class FakeClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class StubVerifier:
    def __init__(self, success: bool = True, message: str | None = None):
        self.success = success
        self.message = message
        self.calls = []

    def verify(self, imp_uid: str, merchant_uid: str) -> VerificationResult:
        self.calls.append((imp_uid, merchant_uid))
        if self.success:
            return VerificationResult(success=True, data={"status": "paid", "merchant_uid": merchant_uid})
        return VerificationResult(success=False, message=self.message or "Payment is not completed")


class FakeRedis:
    """Tyle redisa, ile uzywaja LockService i RedisSequence."""

    def __init__(self):
        self.store = {}
        self.ttl = {}

    def get(self, name):
        return self.store.get(name)

    def set(self, name, value, nx=False, ex=None):
        if nx and name in self.store:
            return None
        self.store[name] = str(value)
        if ex is not None:
            self.ttl[name] = ex
        return True

    def incr(self, name):
        self.store[name] = str(int(self.store.get(name, 0)) + 1)
        return int(self.store[name])

    def delete(self, name):
        return 1 if self.store.pop(name, None) is not None else 0

    def eval(self, script, numkeys, key, token):
        # odpowiednik skryptu porownaj-i-usun
        if self.store.get(key) == token:
            return self.delete(key)
        return 0


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def verifier():
    return StubVerifier()


@pytest.fixture
def make_user(db):
    def _make(user_id: int, user_type: str = "customer") -> UserModel:
        user = UserModel(id=user_id, name=f"user-{user_id}", email=f"user{user_id}@example.com", user_type=user_type)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(price="10000", stock=5, status="on_sale", name=None) -> ProductModel:
        counter["n"] += 1
        product = ProductModel(
            sku=f"SKU-{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            price=Decimal(price),
            category="top",
            image="/images/p.jpg",
            stock=stock,
            status=status,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def cart_service(db, clock):
    return CartService(db, clock=clock)


@pytest.fixture
def order_service(db, clock, verifier):
    return OrderService(db, verifier=verifier, sequence=CountingSequence(OrderRepo(db)), clock=clock)


@pytest.fixture
def stock_of(db):
    def _stock(product_id: int) -> int:
        db.expire_all()
        return db.get(ProductModel, product_id).stock

    return _stock


@pytest.fixture
def address():
    return {**ADDRESS, "address": dict(ADDRESS["address"])}


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(db, verifier):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_payment_verifier] = lambda: verifier
    app.dependency_overrides[get_lock_service] = lambda: None
    app.dependency_overrides[get_sequence_allocator] = lambda: CountingSequence(OrderRepo(db))
    with TestClient(app) as c:
        yield c
