"""Tests for the Flask HTTP surface."""

from decimal import Decimal

from storefront.common.models import ShippingZone


def _add(client, headers, **body):
    return client.post("/api/cart", json=body, headers=headers)


class TestAuth:
    def test_cart_requires_user(self, client):
        response = client.get("/api/cart")
        assert response.status_code == 401
        assert response.get_json()["error"] == "unauthorized"

    def test_admin_routes_require_admin(self, client, headers):
        response = client.get("/api/orders", headers=headers)
        assert response.status_code == 403


class TestCartApi:
    def test_absent_cart_is_404(self, client, headers):
        response = client.get("/api/cart", headers=headers)
        assert response.status_code == 404
        assert response.get_json()["error"] == "not_found"

    def test_add_ignores_client_price(self, client, headers):
        response = _add(client, headers, productId="p-flat", quantity=2, price=0.01)
        assert response.status_code == 201
        data = response.get_json()
        assert data["items"][0]["price"] == 5.0
        assert data["totalAmount"] == 10.0

    def test_add_requires_product_id(self, client, headers):
        response = _add(client, headers, quantity=1)
        assert response.status_code == 400
        assert response.get_json()["field"] == "productId"

    def test_add_unknown_product(self, client, headers):
        assert _add(client, headers, productId="nope").status_code == 404

    def test_add_over_stock_reports_available(self, client, headers):
        response = _add(client, headers, productId="p-var", size="S", quantity=3)
        assert response.status_code == 400
        body = response.get_json()
        assert body["error"] == "insufficient_stock"
        assert body["available"] == 2

    def test_add_huge_quantity_is_rejected(self, client, headers):
        response = _add(client, headers, productId="p-unbounded", quantity=10**20)
        assert response.status_code == 400
        assert response.get_json()["field"] == "quantity"

    def test_add_without_variant_selection(self, client, headers):
        response = _add(client, headers, productId="p-var")
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_selection"

    def test_update_remove_flow(self, client, headers):
        cart = _add(client, headers, productId="p-flat", quantity=1).get_json()
        item_id = cart["items"][0]["id"]

        response = client.put(f"/api/cart/items/{item_id}", json={"quantity": 0}, headers=headers)
        assert response.status_code == 400

        response = client.put(f"/api/cart/items/{item_id}", json={"quantity": 4}, headers=headers)
        assert response.status_code == 200
        assert response.get_json()["itemsPrice"] == 20.0

        response = client.delete(f"/api/cart/items/{item_id}", headers=headers)
        assert response.status_code == 200
        assert response.get_json()["cart"] is None
        assert client.get("/api/cart", headers=headers).status_code == 404

    def test_remove_unknown_line(self, client, headers):
        _add(client, headers, productId="p-flat")
        assert client.delete("/api/cart/items/nope", headers=headers).status_code == 404

    def test_clear(self, client, headers):
        assert client.delete("/api/cart/clear", headers=headers).status_code == 404
        _add(client, headers, productId="p-flat")
        response = client.delete("/api/cart/clear", headers=headers)
        assert response.status_code == 200
        assert response.get_json() == {"message": "Cart cleared successfully", "cart": None}


class TestOrderApi:
    def _checkout(self, client, headers, **extra):
        body = {
            "shippingLocationId": "z-city",
            "paymentMethod": "cash",
            "shippingAddress": {"name": "Ada", "city": "Accra"},
            "taxPrice": 5,
        }
        body.update(extra)
        return client.post("/api/orders", json=body, headers=headers)

    def test_checkout_clears_cart(self, client, headers):
        _add(client, headers, productId="p-flat", quantity=10)
        response = self._checkout(client, headers)
        assert response.status_code == 201
        order = response.get_json()
        assert order["totalPrice"] == 63.0
        assert order["status"] == "pending"
        assert client.get("/api/cart", headers=headers).status_code == 404

    def test_empty_cart(self, client, headers):
        response = self._checkout(client, headers)
        assert response.status_code == 400
        assert response.get_json()["error"] == "empty_cart"

    def test_invalid_zone(self, client, headers):
        _add(client, headers, productId="p-flat")
        assert self._checkout(client, headers, shippingLocationId="z-closed").status_code == 400
        assert self._checkout(client, headers, shippingLocationId="nope").status_code == 404

    def test_idempotency_key(self, client, headers):
        _add(client, headers, productId="p-flat")
        keyed = dict(headers, **{"Idempotency-Key": "abc"})
        first = self._checkout(client, keyed)
        second = self._checkout(client, keyed)
        assert first.status_code == 201
        assert second.status_code == 200
        assert second.get_json()["id"] == first.get_json()["id"]

    def test_zone_change_does_not_touch_placed_order(self, catalog, client, headers):
        _add(client, headers, productId="p-flat", quantity=10)
        order = self._checkout(client, headers).get_json()
        with catalog() as session:
            session.get(ShippingZone, "z-city").delivery_charge = Decimal("15.00")
        fetched = client.get(f"/api/orders/{order['id']}", headers=headers).get_json()
        assert fetched["shippingPrice"] == 8.0
        assert fetched["totalPrice"] == 63.0

    def test_order_visibility(self, client, headers, admin_headers):
        _add(client, headers, productId="p-flat")
        order = self._checkout(client, headers).get_json()
        assert client.get(f"/api/orders/{order['id']}", headers={"X-User-Id": "u2"}).status_code == 403
        assert client.get(f"/api/orders/{order['id']}", headers=admin_headers).status_code == 200
        assert client.get("/api/orders/missing", headers=headers).status_code == 404
        mine = client.get("/api/orders/mine", headers=headers).get_json()
        assert [o["id"] for o in mine] == [order["id"]]

    def test_admin_lifecycle(self, client, headers, admin_headers):
        _add(client, headers, productId="p-flat")
        order = self._checkout(client, headers).get_json()
        url = f"/api/orders/{order['id']}/status"

        response = client.put(url, json={"status": "shipped"}, headers=admin_headers)
        assert response.status_code == 400
        body = response.get_json()
        assert body["error"] == "illegal_transition"
        assert (body["current"], body["requested"]) == ("pending", "shipped")

        response = client.put(f"/api/orders/{order['id']}/pay", json={"id": "pay-1"}, headers=headers)
        assert response.status_code == 200
        assert response.get_json()["status"] == "processing"

        assert client.put(url, json={"status": "shipped"}, headers=admin_headers).status_code == 200
        delivered = client.put(url, json={"status": "delivered"}, headers=admin_headers).get_json()
        assert delivered["isDelivered"] is True

        listing = client.get("/api/orders", headers=admin_headers).get_json()
        assert listing["total"] == 1

    def test_status_requires_admin(self, client, headers):
        _add(client, headers, productId="p-flat")
        order = self._checkout(client, headers).get_json()
        response = client.put(f"/api/orders/{order['id']}/status", json={"status": "processing"}, headers=headers)
        assert response.status_code == 403

    def test_status_missing_or_unknown(self, client, headers, admin_headers):
        _add(client, headers, productId="p-flat")
        order = self._checkout(client, headers).get_json()
        url = f"/api/orders/{order['id']}/status"
        assert client.put(url, json={}, headers=admin_headers).status_code == 400
        assert client.put(url, json={"status": "refunded"}, headers=admin_headers).status_code == 400
        assert client.put("/api/orders/missing/status", json={"status": "processing"}, headers=admin_headers).status_code == 404

    def test_pay_cancelled_order(self, client, headers):
        _add(client, headers, productId="p-flat")
        order = self._checkout(client, headers).get_json()
        assert client.put(f"/api/orders/{order['id']}/cancel", headers=headers).status_code == 200
        response = client.put(f"/api/orders/{order['id']}/pay", json={}, headers=headers)
        assert response.status_code == 400
        assert response.get_json()["error"] == "illegal_payment_state"


class TestCatalogApi:
    def test_product_and_zones(self, client):
        product = client.get("/api/products/p-var").get_json()
        assert product["price"] is None
        assert [v["size"] for v in product["variants"]] == ["S", "M"]
        zones = client.get("/api/shipping").get_json()
        assert [z["id"] for z in zones] == ["z-city"]
        assert client.get("/api/products/nope").status_code == 404
