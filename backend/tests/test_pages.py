# Overview: Pytest coverage for the authorization gate, login and page loads.

"""
Page and Auth Gate Tests

SECURITY TESTS: every page except /login redirects anonymous visitors, and
each page only ever shows the caller's own store.
"""

import json
from decimal import Decimal

import pytest

from quickpos.services.catalog_service import delete_product
from quickpos.state import STORAGE_KEY


class TestAuthGate:

    @pytest.mark.parametrize("method, path", [
        ("get", "/"),
        ("get", "/sales"),
        ("get", "/cart"),
        ("post", "/actions/createProduct"),
        ("post", "/actions/processSale"),
        ("post", "/actions/logout"),
        ("post", "/cart/add"),
        ("post", "/cart/checkout"),
    ])
    def test_anonymous_redirected_to_login(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code == 303
        assert response.headers["Location"].endswith("/login")

    def test_unknown_token_redirected(self, client):
        response = client.get("/", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 303

    def test_bearer_token_accepted(self, client, auth_backend, user_a):
        session = auth_backend.sign_in(user_a.email, "Password123!")
        response = client.get("/", headers={"Authorization": f"Bearer {session.access_token}"})
        assert response.status_code == 200

    def test_user_without_store_is_forbidden(self, client, login_as, orphan_user):
        login_as(orphan_user.email)
        response = client.get("/")
        assert response.status_code == 403
        assert response.get_json() == {
            "success": False,
            "error": "User is not a member of any store",
        }

    def test_membership_lookup_failure(self, auth_client, query_backend):
        query_backend.fail("select", "store_memberships", "connection refused")
        response = auth_client.get("/")
        assert response.status_code == 502
        assert response.get_json() == {"success": False, "error": "connection refused"}


class TestLogin:

    def test_login_page_is_public(self, client):
        response = client.get("/login")
        assert response.status_code == 200
        assert response.get_json() == {"page": "login"}

    def test_login_page_bounces_authenticated(self, auth_client):
        response = auth_client.get("/login")
        assert response.status_code == 303
        assert response.headers["Location"].endswith("/")

    def test_bad_credentials(self, login_as, user_a):
        response = login_as(user_a.email, "wrong-password")
        assert response.status_code == 400
        assert response.get_json() == {"success": False, "error": "Invalid login credentials"}

    def test_missing_fields(self, client):
        response = client.post("/login", data={"email": ""})
        assert response.status_code == 400

    def test_success_sets_http_only_cookie(self, app, login_as, user_a):
        response = login_as(user_a.email)
        assert response.status_code == 303
        cookie = next(
            h for h in response.headers.getlist("Set-Cookie")
            if h.startswith(app.config["AUTH_COOKIE_NAME"] + "=")
        )
        assert "HttpOnly" in cookie


class TestProductsPage:

    def test_lists_own_store_products_only(self, auth_client, store_a, store_b, make_product):
        mine = make_product(store_a, name="Café", stock=5)
        make_product(store_b, name="Café da Loja B", stock=5)

        body = auth_client.get("/").get_json()

        assert [p["id"] for p in body["products"]] == [mine["id"]]
        assert body["offline"] is False
        assert body["user"]["email"] == "caixa@loja-a.com"
        assert body["cart"] == {"items": [], "total": "0", "item_count": 0}

    def test_deleted_and_out_of_stock(self, auth_client, query_backend, store_a, make_product):
        gone = make_product(store_a, name="Chá", stock=5)
        empty = make_product(store_a, name="Suco", stock=0)
        kept = make_product(store_a, name="Café", stock=5)
        delete_product(query_backend, store_a["id"], gone["id"])

        body = auth_client.get("/").get_json()

        assert {p["id"] for p in body["products"]} == {kept["id"], empty["id"]}
        assert [p["id"] for p in body["available"]] == [kept["id"]]

    def test_search(self, auth_client, store_a, make_product):
        make_product(store_a, name="Café Expresso")
        make_product(store_a, name="Pão de Queijo")

        body = auth_client.get("/", query_string={"q": "CAFÉ"}).get_json()

        assert body["search"] == "CAFÉ"
        assert [p["name"] for p in body["products"]] == ["Café Expresso"]

    def test_falls_back_to_saved_snapshot(self, app, auth_client, query_backend, store_a, make_product, tmp_path):
        app.config["CATALOG_STORAGE_DIR"] = str(tmp_path)
        product = make_product(store_a, name="Café", stock=5)
        assert auth_client.get("/").get_json()["offline"] is False
        assert (tmp_path / f"{STORAGE_KEY}.json").exists()

        query_backend.fail("select", "products", "timeout")
        response = auth_client.get("/")

        assert response.status_code == 200
        body = response.get_json()
        assert body["offline"] is True
        assert [p["id"] for p in body["products"]] == [product["id"]]

    def test_snapshot_shared_between_stores(
        self, app, client, login_as, query_backend, store_a, store_b, user_a, user_b, make_product, tmp_path,
    ):
        app.config["CATALOG_STORAGE_DIR"] = str(tmp_path)
        tea = make_product(store_b, name="Chá Verde")
        make_product(store_a, name="Café")

        login_as(user_b.email)
        assert client.get("/").get_json()["offline"] is False
        login_as(user_a.email)
        assert client.get("/").get_json()["offline"] is False

        stored = json.loads((tmp_path / f"{STORAGE_KEY}.json").read_text(encoding="utf-8"))
        assert {item["store_id"] for item in stored} == {store_a["id"], store_b["id"]}

        query_backend.fail("select", "products", "timeout")
        login_as(user_b.email)
        body = client.get("/").get_json()
        assert body["offline"] is True
        assert [p["id"] for p in body["products"]] == [tea["id"]]

    def test_unreadable_snapshot_file(self, app, auth_client, query_backend, tmp_path):
        app.config["CATALOG_STORAGE_DIR"] = str(tmp_path)
        (tmp_path / f"{STORAGE_KEY}.json").write_bytes(b"\xff\xfe[garbage")

        query_backend.fail("select", "products", "timeout")
        response = auth_client.get("/")

        assert response.status_code == 200
        assert response.get_json()["products"] == []

    def test_backend_failure_without_snapshot(self, auth_client, query_backend):
        query_backend.fail("select", "products", "timeout")
        body = auth_client.get("/").get_json()
        assert body["offline"] is True
        assert body["products"] == []


class TestSalesPage:

    def sell(self, client, product, quantity, total):
        items = json.dumps([{"product": {"id": product["id"], "price": str(product["price"])}, "quantity": quantity}])
        response = client.post("/actions/processSale", data={"items": items, "total": total})
        assert response.status_code == 201
        return response.get_json()["sale"]

    def test_history_with_display_totals(self, auth_client, store_a, make_product):
        product = make_product(store_a, name="P1", price="100", stock=10)
        self.sell(auth_client, product, 2, "200")

        body = auth_client.get("/sales?period=today").get_json()

        assert body["period"] == "today"
        assert body["total"] == "200.00"
        assert body["total_display"] == "R$\u00a0200,00"
        sale = body["sales"][0]
        assert sale["total_display"] == "R$\u00a0200,00"
        assert sale["sale_items"][0]["product"] == {"name": "P1"}
        assert Decimal(sale["sale_items"][0]["price_at_sale"]) == Decimal("100")

    def test_default_period_is_all(self, auth_client):
        body = auth_client.get("/sales").get_json()
        assert body["period"] == "all"
        assert body["sales"] == []
        assert body["total_display"] == "R$\u00a00,00"

    def test_invalid_period(self, auth_client):
        response = auth_client.get("/sales?period=year")
        assert response.status_code == 400

    def test_backend_failure_shows_empty_history(self, auth_client, query_backend):
        query_backend.fail("select", "sales")
        response = auth_client.get("/sales")
        assert response.status_code == 200
        assert response.get_json()["sales"] == []


class TestHealth:

    def test_healthy(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_unhealthy(self, client, query_backend):
        query_backend.fail("select", "stores")
        response = client.get("/health")
        assert response.status_code == 503
        assert response.get_json()["checks"]["backend"]["error"] == "Backend error"
