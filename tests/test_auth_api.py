"""
Identity: registration, login, token enforcement and role guards.
"""
import pytest

from foojra.core.security import create_access_token

from conftest import PASSWORD, auth, menu_payload, register_user


@pytest.mark.asyncio
async def test_register_returns_token_and_profile(client):
    user = await register_user(client, "Sana@Foojra.pk", name="Sana")
    assert user["email"] == "sana@foojra.pk"
    assert user["role"] == "customer"
    assert user["token_type"] == "bearer"

    r = await client.get("/api/users/profile", headers=auth(user["access_token"]))
    assert r.status_code == 200
    assert r.json()["id"] == user["id"]


@pytest.mark.asyncio
async def test_duplicate_email_conflicts(client, customer):
    r = await client.post(
        "/api/users", json={"name": "Again", "email": "ayesha@foojra.pk", "password": PASSWORD}
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_admin_cannot_self_register(client):
    r = await client.post(
        "/api/users", json={"name": "Mallory", "email": "m@foojra.pk", "password": PASSWORD, "role": "admin"}
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, customer):
    r = await client.post("/api/users/login", json={"email": "ayesha@foojra.pk", "password": "nope-nope"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_protected_route_without_token(client):
    r = await client.get("/api/orders/myorders")
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_protected_route_with_tampered_token(client, customer):
    r = await client.get("/api/orders/myorders", headers=auth(customer["access_token"] + "x"))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_token_for_unknown_user(client):
    token = create_access_token({"sub": "ghost", "role": "customer"})
    r = await client.get("/api/users/profile", headers=auth(token))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_public_routes_need_no_token(client, shop, item):
    assert (await client.get(f"/api/shops/{shop['shop']['id']}")).status_code == 200
    assert (await client.get(f"/api/menu/{item['id']}")).status_code == 200
    assert (await client.get(f"/api/menu/shop/{shop['shop']['id']}")).status_code == 200
    assert (await client.get("/api/menu/my-items")).status_code == 401
    assert (await client.get("/api/shops/my-shop")).status_code == 401


@pytest.mark.asyncio
async def test_role_guards(client, customer, shop, admin_token):
    token = customer["access_token"]
    assert (await client.get("/api/users/admin/all", headers=auth(token))).status_code == 401
    assert (await client.get("/api/orders/shop", headers=auth(token))).status_code == 401
    r = await client.post("/api/menu", json=menu_payload(), headers=auth(token))
    assert r.status_code == 401

    r = await client.get("/api/users/admin/all", headers=auth(admin_token))
    assert r.status_code == 200
    assert r.json()["pagination"]["total"] == 3


@pytest.mark.asyncio
async def test_deactivated_user_is_locked_out(client, customer, admin_token):
    r = await client.put(f"/api/users/admin/{customer['id']}/toggle-status", headers=auth(admin_token))
    assert r.json()["is_active"] is False

    r = await client.get("/api/users/profile", headers=auth(customer["access_token"]))
    assert r.status_code == 401
    r = await client.post("/api/users/login", json={"email": "ayesha@foojra.pk", "password": PASSWORD})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_admin_changes_role(client, customer, admin_token):
    r = await client.put(
        f"/api/users/admin/{customer['id']}/role", json={"role": "shopOwner"}, headers=auth(admin_token)
    )
    assert r.status_code == 200
    assert r.json()["role"] == "shopOwner"
    r = await client.get("/api/shops/my-shop", headers=auth(customer["access_token"]))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_profile_update(client, customer):
    r = await client.put(
        "/api/users/profile",
        json={"name": "Ayesha K", "address": {"street": "Canal Road", "area": "Satellite Town"}},
        headers=auth(customer["access_token"]),
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Ayesha K"
    assert r.json()["address"]["city"] == "Gojra"


@pytest.mark.asyncio
async def test_admin_reads_a_single_user(client, customer, admin_token):
    r = await client.get(f"/api/users/admin/{customer['id']}", headers=auth(admin_token))
    assert r.status_code == 200
    assert r.json()["email"] == "ayesha@foojra.pk"
    assert "password" not in r.json() and "hashed_password" not in r.json()

    assert (await client.get("/api/users/admin/no-such-user", headers=auth(admin_token))).status_code == 404
    r = await client.get(f"/api/users/admin/{customer['id']}", headers=auth(customer["access_token"]))
    assert r.status_code == 401
