import os
import tempfile
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

_DB_DIR = tempfile.mkdtemp(prefix="food-order-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}")
os.environ.setdefault("JWT_SECRET", "test-secret")


@pytest.fixture(scope="session")
def app_and_engine():
    import importlib
    main_mod = importlib.import_module("app.main")

    app = main_mod.app

    from app.database import engine
    from app.models import Base

    Base.metadata.create_all(bind=engine)

    return app, engine


@pytest.fixture()
def client(app_and_engine):
    app, _ = app_and_engine
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clean_db(app_and_engine):
    _, engine = app_and_engine

    with engine.begin() as conn:
        conn.execute(text("DELETE FROM records"))


@pytest.fixture()
def db(app_and_engine):
    from app.database import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db):
    from app.store import RecordStore

    return RecordStore(db)


@pytest.fixture()
def customer():
    from app.auth import Principal

    return Principal(id="user-1", is_admin=False, name="Alice")


@pytest.fixture()
def other_customer():
    from app.auth import Principal

    return Principal(id="user-2", is_admin=False, name="Bob")


@pytest.fixture()
def admin():
    from app.auth import Principal

    return Principal(id="admin-1", is_admin=True, name="Admin")


def bearer(principal) -> dict:
    from app.auth import create_access_token

    return {"Authorization": f"Bearer {create_access_token(principal)}"}


@pytest.fixture()
def customer_headers(customer):
    return bearer(customer)


@pytest.fixture()
def other_headers(other_customer):
    return bearer(other_customer)


@pytest.fixture()
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture()
def make_food(store, admin):
    from app.catalog import FoodCatalog

    catalog = FoodCatalog(store)

    def _make(name="Pho", popular=False, **extra):
        food = catalog.create_food(admin, name, f"{name} bowl", 45000, "noodles", **extra)
        if popular:
            food = catalog.update_food(admin, food["id"], {"popular": True})
        return food

    return _make


@pytest.fixture()
def food(make_food):
    return make_food()


ORDER_PAYLOAD = {
    "items": [{"food_id": "f-1", "name": "Pho", "quantity": 2, "price": 45000}],
    "total_amount": 90000,
    "address": "12 Hang Bac",
    "phone": "0900000000",
    "payment_method": "cash",
}
