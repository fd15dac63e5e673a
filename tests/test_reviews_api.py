"""
Review eligibility and rating aggregation for shops and menu items.
"""
from decimal import Decimal

import pytest

from foojra.models.menu_item import MenuItem
from foojra.models.review import ShopReview
from foojra.models.shop import Shop
from foojra.services import ratings

from conftest import add_item, auth, deliver, fetch, place_order


async def delivered_order(client, customer, shop, *item_ids):
    order = await place_order(client, customer["access_token"], *item_ids)
    return await deliver(client, shop["token"], order["id"])


def shop_review(shop, order, rating=5, comment="Great tikka, arrived hot"):
    return {"shop_id": shop["shop"]["id"], "order_id": order["id"], "rating": rating, "comment": comment}


# ─── Eligibility ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_undelivered_order_cannot_be_reviewed(client, customer, shop, item):
    order = await place_order(client, customer["access_token"], item["id"])
    r = await client.post("/api/reviews", json=shop_review(shop, order), headers=auth(customer["access_token"]))
    assert r.status_code == 400
    assert "not eligible" in r.json()["detail"]


@pytest.mark.asyncio
async def test_only_the_ordering_customer_may_review(client, customer, other_customer, shop, item):
    order = await delivered_order(client, customer, shop, item["id"])
    r = await client.post("/api/reviews", json=shop_review(shop, order), headers=auth(other_customer["access_token"]))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_second_review_for_the_same_order_conflicts(client, customer, shop, item):
    token = customer["access_token"]
    order = await delivered_order(client, customer, shop, item["id"])
    r = await client.post("/api/reviews", json=shop_review(shop, order), headers=auth(token))
    assert r.status_code == 201
    r = await client.post("/api/reviews", json=shop_review(shop, order, rating=1), headers=auth(token))
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_eligible_orders_lists_unreviewed_deliveries(client, customer, shop, item):
    token = customer["access_token"]
    reviewed = await delivered_order(client, customer, shop, item["id"])
    pending_review = await delivered_order(client, customer, shop, item["id"])
    await place_order(client, token, item["id"])
    await client.post("/api/reviews", json=shop_review(shop, reviewed), headers=auth(token))

    r = await client.get("/api/reviews/eligible-orders", headers=auth(token))
    assert [o["id"] for o in r.json()] == [pending_review["id"]]


# ─── Shop rating aggregation ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_shop_rating_is_recomputed_on_every_write(client, customer, shop, item):
    token = customer["access_token"]
    shop_id = shop["shop"]["id"]
    assert (await fetch(Shop, shop_id)).rating == 4.0

    review_ids = []
    for rating in (5, 5, 4):
        order = await delivered_order(client, customer, shop, item["id"])
        r = await client.post("/api/reviews", json=shop_review(shop, order, rating), headers=auth(token))
        assert r.status_code == 201, r.text
        review_ids.append(r.json()["id"])

    stored = await fetch(Shop, shop_id)
    assert (stored.rating, stored.total_reviews) == (4.7, 3)

    r = await client.put(f"/api/reviews/{review_ids[2]}", json={"rating": 2}, headers=auth(token))
    assert r.status_code == 200
    assert (await fetch(Shop, shop_id)).rating == 4.0

    for review_id in review_ids:
        r = await client.delete(f"/api/reviews/{review_id}", headers=auth(token))
        assert r.status_code == 200
    stored = await fetch(Shop, shop_id)
    assert (stored.rating, stored.total_reviews) == (4.0, 0)


@pytest.mark.asyncio
async def test_public_shop_reviews_are_paginated(client, customer, shop, item):
    token = customer["access_token"]
    for rating in (3, 4):
        order = await delivered_order(client, customer, shop, item["id"])
        await client.post("/api/reviews", json=shop_review(shop, order, rating), headers=auth(token))

    r = await client.get(f"/api/reviews/shop/{shop['shop']['id']}?limit=1")
    assert r.status_code == 200
    body = r.json()
    assert len(body["reviews"]) == 1
    assert body["pagination"] == {
        "current_page": 1, "total_pages": 2, "total": 2, "has_next_page": True, "has_prev_page": False,
    }


@pytest.mark.asyncio
async def test_reviews_belong_to_their_author(client, customer, other_customer, shop, item):
    order = await delivered_order(client, customer, shop, item["id"])
    r = await client.post("/api/reviews", json=shop_review(shop, order), headers=auth(customer["access_token"]))
    review_id = r.json()["id"]
    r = await client.delete(f"/api/reviews/{review_id}", headers=auth(other_customer["access_token"]))
    assert r.status_code == 401


# ─── Menu item reviews ─────────────────────────────────────────────────────────

def item_review(item, order_id, rating, **extra):
    return {"menu_item_id": item["id"], "order_id": order_id, "rating": rating, "comment": "Tasty", **extra}


@pytest.mark.asyncio
async def test_item_must_be_part_of_the_order(client, customer, shop, item):
    other_item = await add_item(client, shop["token"], name="Seekh Kabab")
    order = await delivered_order(client, customer, shop, item["id"])
    r = await client.post(
        "/api/menu-item-reviews", json=item_review(other_item, order["id"], 5), headers=auth(customer["access_token"])
    )
    assert r.status_code == 400
    assert "not part of this order" in r.json()["detail"]


@pytest.mark.asyncio
async def test_item_rating_aspects_and_recommendation(client, customer, shop, item):
    token = customer["access_token"]
    bodies = [
        item_review(item, None, 5, aspects={"taste": 5, "presentation": 4}),
        item_review(item, None, 4, aspects={"taste": 4}),
        item_review(item, None, 2, aspects={"taste": 2, "value_for_money": 3}, would_recommend=False),
    ]
    for body in bodies:
        order = await delivered_order(client, customer, shop, item["id"])
        body["order_id"] = order["id"]
        r = await client.post("/api/menu-item-reviews", json=body, headers=auth(token))
        assert r.status_code == 201, r.text

    r = await client.post("/api/menu-item-reviews", json=body, headers=auth(token))
    assert r.status_code == 409

    stored = await fetch(MenuItem, item["id"])
    assert stored.rating == 3.7
    assert stored.review_count == 3
    assert stored.aspect_ratings == {
        "taste": 3.7, "presentation": 4.0, "portion_size": None, "value_for_money": 3.0,
    }
    assert stored.recommendation_rate == 67

    r = await client.get(f"/api/menu-item-reviews/item/{item['id']}")
    assert r.json()["pagination"]["total"] == 3
    r = await client.get("/api/menu-item-reviews/my-reviews", headers=auth(token))
    assert len(r.json()) == 3


# ─── Full lifecycle ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_paid_order_delivered_and_reviewed(client, customer, shop, item):
    token = customer["access_token"]
    naan = await add_item(client, shop["token"], name="Garlic Naan", price="100")
    order = await place_order(
        client, token,
        {"menu_item_id": item["id"], "quantity": 1},
        {"menu_item_id": naan["id"], "quantity": 2},
    )
    assert Decimal(order["items_price"]) == Decimal("450")

    r = await client.put(f"/api/orders/{order['id']}/pay", json={}, headers=auth(token))
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "Confirmed"
    assert r.json()["paid_at"] is not None

    for step in ("Preparing", "Ready for Pickup", "Out for Delivery", "Delivered"):
        r = await client.put(
            f"/api/orders/{order['id']}/status", json={"status": step}, headers=auth(shop["token"]),
        )
        assert r.status_code == 200, r.text
    delivered = r.json()
    assert delivered["delivered_at"] is not None
    assert [h["status"] for h in delivered["status_history"]] == [
        "Pending", "Confirmed", "Preparing", "Ready for Pickup", "Out for Delivery", "Delivered",
    ]

    r = await client.post("/api/reviews", json=shop_review(shop, delivered, rating=3), headers=auth(token))
    assert r.status_code == 201, r.text
    stored = await fetch(Shop, shop["shop"]["id"])
    assert (stored.rating, stored.total_reviews) == (3.0, 1)


@pytest.mark.asyncio
async def test_failed_aggregation_keeps_the_review(client, monkeypatch, customer, shop, item):
    token = customer["access_token"]
    shop_id = shop["shop"]["id"]
    original = ratings.summarize_ratings
    calls = []

    def broken_once(values):
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("aggregation unavailable")
        return original(values)

    monkeypatch.setattr(ratings, "summarize_ratings", broken_once)

    first = await delivered_order(client, customer, shop, item["id"])
    r = await client.post("/api/reviews", json=shop_review(shop, first, rating=2), headers=auth(token))
    assert r.status_code == 201, r.text
    assert await fetch(ShopReview, r.json()["id"]) is not None
    stale = await fetch(Shop, shop_id)
    assert (stale.rating, stale.total_reviews) == (4.0, 0)

    # The next write recomputes from every stored review
    second = await delivered_order(client, customer, shop, item["id"])
    r = await client.post("/api/reviews", json=shop_review(shop, second, rating=5), headers=auth(token))
    assert r.status_code == 201
    healed = await fetch(Shop, shop_id)
    assert (healed.rating, healed.total_reviews) == (3.5, 2)
