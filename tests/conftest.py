"""
Shared fixtures: the app runs in process over httpx.ASGITransport against an
in-memory SQLite database that is rebuilt for every test.
"""
import os

os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("IDEMPOTENCY_ENABLED", "false")
os.environ.setdefault("METRICS_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("OPT_LOCK_BASE_DELAY_MS", "1")
os.environ.setdefault("OPT_LOCK_MAX_DELAY_MS", "2")
os.environ.setdefault("OPT_LOCK_JITTER_MS", "0")

import httpx
import pytest_asyncio

from foojra.core.security import hash_password
from foojra.db.database import AsyncSessionLocal, Base, engine
from foojra.main import app
from foojra.models.user import User, UserRole

PASSWORD = "Secret123!"


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def insert(*objects):
    async with AsyncSessionLocal() as session:
        session.add_all(objects)
        await session.commit()
    return objects[0] if len(objects) == 1 else objects


async def fetch(model, pk):
    async with AsyncSessionLocal() as session:
        return await session.get(model, pk)


@pytest_asyncio.fixture
async def client():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


# ─── Factories ─────────────────────────────────────────────────────────────────

async def register_user(client, email: str, role: str = "customer", name: str = "Test User") -> dict:
    r = await client.post(
        "/api/users",
        json={"name": name, "email": email, "password": PASSWORD, "role": role, "phone": "03001234567"},
    )
    assert r.status_code == 201, r.text
    return r.json()


async def login(client, email: str) -> str:
    r = await client.post("/api/users/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def shop_payload(name: str = "Gojra Tikka House", **overrides) -> dict:
    payload = {
        "name": name,
        "description": "Charcoal grilled tikka and karahi",
        "phone": "03001234567",
        "cuisine": "Pakistani",
        "category": "Restaurant",
        "address": {"street": "Jhang Road", "area": "Civil Lines", "postal_code": "56000"},
        "business_info": {
            "business_name": name,
            "owner_name": "Ali Raza",
            "owner_cnic": "33303-1234567-1",
        },
        "images": ["https://img.foojra.pk/shops/tikka.jpg"],
    }
    payload.update(overrides)
    return payload


def menu_payload(name: str = "Chicken Tikka", price: str = "250", **overrides) -> dict:
    payload = {
        "name": name,
        "description": "Half chicken, marinated overnight",
        "base_price": price,
        "category": "BBQ",
        "variations": [{"name": "Full", "price": "200"}],
        "add_ons": [{"name": "Raita", "price": "30"}, {"name": "Naan", "price": "20"}],
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def admin_token(client):
    await insert(User(
        name="Site Admin",
        email="admin@foojra.pk",
        hashed_password=hash_password(PASSWORD),
        role=UserRole.ADMIN,
    ))
    return await login(client, "admin@foojra.pk")


@pytest_asyncio.fixture
async def customer(client):
    return await register_user(client, "ayesha@foojra.pk", name="Ayesha")


@pytest_asyncio.fixture
async def other_customer(client):
    return await register_user(client, "bilal@foojra.pk", name="Bilal")


async def open_shop(client, admin_token: str, email: str, name: str) -> dict:
    """Register an owner and a shop, approve it, and return owner + shop."""
    owner = await register_user(client, email, role="shopOwner", name=f"{name} Owner")
    r = await client.post("/api/shops/register", json=shop_payload(name), headers=auth(owner["access_token"]))
    assert r.status_code == 201, r.text
    shop = r.json()
    r = await client.put(f"/api/shops/admin/{shop['id']}/approve", json={}, headers=auth(admin_token))
    assert r.status_code == 200, r.text
    return {"owner": owner, "token": owner["access_token"], "shop": r.json()}


async def add_item(client, token: str, **kwargs) -> dict:
    r = await client.post("/api/menu", json=menu_payload(**kwargs), headers=auth(token))
    assert r.status_code == 201, r.text
    return r.json()


@pytest_asyncio.fixture
async def shop(client, admin_token):
    return await open_shop(client, admin_token, "owner@foojra.pk", "Gojra Tikka House")


@pytest_asyncio.fixture
async def item(client, shop):
    return await add_item(client, shop["token"])


def order_payload(*lines, **overrides) -> dict:
    payload = {
        "order_items": [
            line if isinstance(line, dict) else {"menu_item_id": line, "quantity": 1} for line in lines
        ],
        "delivery_address": {
            "full_name": "Ayesha Khan",
            "phone": "03011234567",
            "address": "House 12, Street 4",
            "area": "Model Town",
        },
        "payment_method": "Cash on Delivery",
    }
    payload.update(overrides)
    return payload


async def place_order(client, token: str, *lines, **overrides) -> dict:
    r = await client.post("/api/orders", json=order_payload(*lines, **overrides), headers=auth(token))
    assert r.status_code == 201, r.text
    return r.json()


async def deliver(client, shop_token: str, order_id: str) -> dict:
    r = await client.put(f"/api/orders/{order_id}/status", json={"status": "Delivered"}, headers=auth(shop_token))
    assert r.status_code == 200, r.text
    return r.json()
