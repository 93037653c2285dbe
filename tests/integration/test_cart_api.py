"""
HTTP tests for cart routes.
"""


class TestCartRoutes:

    async def test_add_update_remove(self, client, seed, auth):
        headers = auth(seed.alice_id)

        resp = await client.post(
            "/api/cart/items",
            json={"item_id": seed.latte_id, "quantity": 1, "option_ids": [seed.shot_id]},
            headers=headers,
        )
        assert resp.status_code == 201
        line_id = resp.json()["items"][0]["id"]
        assert resp.json()["subtotal"] == 4.75

        resp = await client.put(f"/api/cart/items/{line_id}", json={"quantity": 2}, headers=headers)
        assert resp.json()["subtotal"] == 9.5

        resp = await client.delete(f"/api/cart/items/{line_id}", headers=headers)
        assert resp.json()["items"] == []

    async def test_unavailable_item_rejected(self, client, seed, auth):
        resp = await client.post(
            "/api/cart/items", json={"item_id": seed.pumpkin_id}, headers=auth(seed.alice_id)
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "item_unavailable"

    async def test_admin_lists_all_carts(self, client, seed, auth):
        await client.post("/api/cart/items", json={"item_id": seed.latte_id}, headers=auth(seed.alice_id))
        await client.post("/api/cart/items", json={"item_id": seed.espresso_id}, headers=auth(seed.bob_id))

        resp = await client.get("/api/cart", params={"all": "true"}, headers=auth(seed.admin_id))
        assert resp.status_code == 200
        assert len(resp.json()) == 2

        resp = await client.get("/api/cart", params={"all": "true"}, headers=auth(seed.alice_id))
        assert resp.status_code == 403

    async def test_other_users_cart_line_is_404(self, client, seed, auth):
        resp = await client.post("/api/cart/items", json={"item_id": seed.latte_id}, headers=auth(seed.alice_id))
        line_id = resp.json()["items"][0]["id"]

        resp = await client.delete(f"/api/cart/items/{line_id}", headers=auth(seed.bob_id))
        assert resp.status_code == 404
