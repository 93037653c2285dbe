"""
HTTP tests for order, order item and checkout routes.
"""


def latte_body(seed, quantity=2):
    return {
        "items": [{"id": seed.latte_id, "quantity": quantity, "options": [{"id": seed.oat_id}], "notes": "hot"}],
        "notes": "window seat",
    }


class TestAuthentication:

    async def test_bad_token(self, client):
        resp = await client.get("/api/orders", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    async def test_inactive_user(self, client, seed, auth):
        resp = await client.get("/api/orders", headers=auth(seed.inactive_id))
        assert resp.status_code == 401

    async def test_unknown_user(self, client, seed, auth):
        resp = await client.get("/api/orders", headers=auth(123456))
        assert resp.status_code == 401


class TestCreateOrder:

    async def test_create_order(self, client, seed, auth):
        resp = await client.post("/api/orders", json=latte_body(seed), headers=auth(seed.alice_id))

        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "PENDING"
        assert body["order_number"].startswith("ORD-")
        assert body["total_amount"] == 9.0
        assert body["notes"] == "window seat"
        assert body["items"][0]["unit_price"] == 4.0
        assert body["items"][0]["options"][0]["option_name"] == "Oat Milk"
        assert body["payment"] is None

    async def test_empty_items(self, client, seed, auth):
        resp = await client.post("/api/orders", json={"items": []}, headers=auth(seed.alice_id))
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_order_input"

        listing = await client.get("/api/orders", headers=auth(seed.alice_id))
        assert listing.json()["total"] == 0

    async def test_missing_items_field(self, client, seed, auth):
        resp = await client.post("/api/orders", json={"notes": "x"}, headers=auth(seed.alice_id))
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"

    async def test_unavailable_item(self, client, seed, auth):
        body = {"items": [{"id": seed.pumpkin_id, "quantity": 1}]}
        resp = await client.post("/api/orders", json=body, headers=auth(seed.alice_id))

        assert resp.status_code == 400
        assert resp.json() == {
            "error": "item_unavailable",
            "message": "Item Pumpkin Spice Latte is currently unavailable",
        }

    async def test_missing_item(self, client, seed, auth):
        body = {"items": [{"id": 9999, "quantity": 1}]}
        resp = await client.post("/api/orders", json=body, headers=auth(seed.alice_id))
        assert resp.status_code == 400
        assert resp.json()["message"] == "Item with ID 9999 not found"


class TestCheckout:

    async def test_checkout_from_cart(self, client, seed, auth):
        headers = auth(seed.alice_id)
        added = await client.post(
            "/api/cart/items",
            json={"item_id": seed.latte_id, "quantity": 2, "option_ids": [seed.oat_id]},
            headers=headers,
        )
        assert added.status_code == 201

        resp = await client.post("/api/orders/checkout", json={}, headers=headers)
        assert resp.status_code == 201
        assert resp.json()["total_amount"] == 9.0

        cart = await client.get("/api/cart", headers=headers)
        assert cart.json()["items"] == []

    async def test_checkout_empty_cart(self, client, seed, auth):
        resp = await client.post("/api/orders/checkout", json={}, headers=auth(seed.alice_id))
        assert resp.status_code == 400


class TestOrderAccess:

    async def test_listing_is_scoped(self, client, seed, auth):
        await client.post("/api/orders", json=latte_body(seed), headers=auth(seed.alice_id))
        await client.post("/api/orders", json=latte_body(seed, 1), headers=auth(seed.bob_id))

        mine = await client.get("/api/orders", headers=auth(seed.alice_id))
        everyone = await client.get("/api/orders", headers=auth(seed.admin_id))

        assert mine.json()["total"] == 1
        assert everyone.json()["total"] == 2

    async def test_total_counts_beyond_page(self, client, seed, auth):
        for _ in range(3):
            await client.post("/api/orders", json=latte_body(seed, 1), headers=auth(seed.alice_id))

        resp = await client.get("/api/orders?page=2&per_page=2", headers=auth(seed.alice_id))

        assert resp.status_code == 200
        assert len(resp.json()["orders"]) == 1
        assert resp.json()["total"] == 3

    async def test_other_users_order_is_404(self, client, seed, auth):
        created = await client.post("/api/orders", json=latte_body(seed), headers=auth(seed.alice_id))
        order_id = created.json()["id"]

        resp = await client.get(f"/api/orders/{order_id}", headers=auth(seed.bob_id))
        assert resp.status_code == 404
        assert resp.json()["error"] == "order_not_found"

    async def test_staff_status_write(self, client, seed, auth):
        created = await client.post("/api/orders", json=latte_body(seed), headers=auth(seed.alice_id))
        order_id = created.json()["id"]

        resp = await client.put(
            f"/api/orders/{order_id}", json={"status": "READY"}, headers=auth(seed.staff_id)
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "READY"

    async def test_unknown_status_rejected(self, client, seed, auth):
        created = await client.post("/api/orders", json=latte_body(seed), headers=auth(seed.alice_id))
        resp = await client.put(
            f"/api/orders/{created.json()['id']}", json={"status": "BREWING"}, headers=auth(seed.admin_id)
        )
        assert resp.status_code == 400


class TestOrderItems:

    async def test_delete_item_forbidden_after_pending(self, client, seed, auth):
        created = await client.post("/api/orders", json=latte_body(seed), headers=auth(seed.alice_id))
        order = created.json()
        item_id = order["items"][0]["id"]

        await client.put(f"/api/orders/{order['id']}", json={"status": "PREPARING"}, headers=auth(seed.admin_id))

        resp = await client.delete(f"/api/order-items/{item_id}", headers=auth(seed.alice_id))
        assert resp.status_code == 403
        assert resp.json()["error"] == "forbidden"

        resp = await client.delete(f"/api/order-items/{item_id}", headers=auth(seed.admin_id))
        assert resp.status_code == 200

    async def test_item_and_option_reads(self, client, seed, auth):
        created = await client.post("/api/orders", json=latte_body(seed), headers=auth(seed.alice_id))
        item = created.json()["items"][0]
        option_row_id = item["options"][0]["id"]

        resp = await client.get(f"/api/order-items/{item['id']}", headers=auth(seed.alice_id))
        assert resp.json()["item_name"] == "Latte"

        resp = await client.get(f"/api/order-item-options/{option_row_id}", headers=auth(seed.bob_id))
        assert resp.status_code == 404

        resp = await client.delete(f"/api/order-item-options/{option_row_id}", headers=auth(seed.alice_id))
        assert resp.status_code == 200

        order = await client.get(f"/api/orders/{created.json()['id']}", headers=auth(seed.alice_id))
        assert order.json()["total_amount"] == 8.0
