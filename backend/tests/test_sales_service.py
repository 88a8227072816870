# Overview: Pytest coverage for the sale transaction sequence and sales history.

"""
Sale Sequence Tests

process_sale() writes header -> line items -> stock, one product at a time,
with no rollback. These tests pin down exactly what is left behind at each
failure point.
"""

import json
from decimal import Decimal

import pytest

from quickpos.services.sales_service import (
    InvalidSaleInput,
    LineItemInsertFailed,
    NoStoreMembership,
    NotAuthenticated,
    SaleCreateFailed,
    StockUpdateFailed,
    list_sales,
    process_sale,
)


def sale_items(*pairs):
    """pairs of (product_row, quantity) -> items JSON as the form posts it."""
    return json.dumps([
        {"product": {"id": row["id"], "price": str(row["price"])}, "quantity": qty}
        for row, qty in pairs
    ])


def stock_of(query_backend, row):
    return query_backend.single("products", {"id": row["id"]})["stock"]


class TestProcessSale:

    def test_single_item_sale(self, query_backend, store_a, user_a, make_product):
        p1 = make_product(store_a, name="P1", price="100", stock=10)

        sale = process_sale(query_backend, user_id=user_a.id, items=sale_items((p1, 2)), total="200")

        assert sale["total"] == Decimal("200.00")
        assert sale["store_id"] == store_a["id"]
        items = query_backend.select("sale_items", {"sale_id": sale["id"]})
        assert len(items) == 1
        assert items[0]["product_id"] == p1["id"]
        assert items[0]["quantity"] == 2
        assert items[0]["price_at_sale"] == Decimal("100.00")
        assert items[0]["store_id"] == store_a["id"]
        assert stock_of(query_backend, p1) == 8

    def test_items_accepted_as_list(self, query_backend, store_a, user_a, make_product):
        p1 = make_product(store_a, price="2.50", stock=3)
        items = [{"product": {"id": p1["id"], "price": "2.50"}, "quantity": 3}]

        sale = process_sale(query_backend, user_id=user_a.id, items=items, total="7.50")

        assert sale["total"] == Decimal("7.50")
        assert stock_of(query_backend, p1) == 0

    def test_oversell_clamps_stock_at_zero(self, query_backend, store_a, user_a, make_product):
        p1 = make_product(store_a, price="1.00", stock=2)

        process_sale(query_backend, user_id=user_a.id, items=sale_items((p1, 5)), total="5.00")

        assert stock_of(query_backend, p1) == 0

    def test_not_authenticated(self, query_backend):
        with pytest.raises(NotAuthenticated) as exc:
            process_sale(query_backend, user_id=None, items="[]", total="0")
        assert exc.value.code == "NOT_AUTHENTICATED"
        assert query_backend.calls == []

    @pytest.mark.parametrize("items, total", [
        (None, "10"),
        ("", "10"),
        ("not json", "10"),
        ("[]", "0"),
        ('[{"product": {"id": "x", "price": "1"}, "quantity": 1}]', None),
        ('[{"product": {"id": "x", "price": "1"}, "quantity": 1}]', "abc"),
        ('[{"product": {"id": "x", "price": "1"}, "quantity": 0}]', "0"),
        ('[{"product": {"price": "1"}, "quantity": 1}]', "1"),
    ])
    def test_invalid_input_makes_no_backend_calls(self, query_backend, user_a, items, total):
        query_backend.calls.clear()
        with pytest.raises(InvalidSaleInput) as exc:
            process_sale(query_backend, user_id=user_a.id, items=items, total=total)
        assert exc.value.code == "INVALID_INPUT"
        assert query_backend.calls == []

    def test_total_mismatch_rejected(self, query_backend, store_a, user_a, make_product):
        p1 = make_product(store_a, price="100", stock=10)
        query_backend.calls.clear()

        with pytest.raises(InvalidSaleInput) as exc:
            process_sale(query_backend, user_id=user_a.id, items=sale_items((p1, 2)), total="199.99")

        assert "does not match" in str(exc.value)
        assert query_backend.calls == []
        assert stock_of(query_backend, p1) == 10

    def test_no_store_membership(self, query_backend, store_a, orphan_user, make_product):
        p1 = make_product(store_a, price="1", stock=1)

        with pytest.raises(NoStoreMembership) as exc:
            process_sale(query_backend, user_id=orphan_user.id, items=sale_items((p1, 1)), total="1")

        assert exc.value.code == "NO_STORE_MEMBERSHIP"
        assert query_backend.select("sales") == []

    def test_two_memberships_is_not_a_store(self, query_backend, store_a, store_b, user_a, make_product):
        query_backend.insert("store_memberships", [{"user_id": user_a.id, "store_id": store_b["id"]}])
        p1 = make_product(store_a, price="1", stock=1)

        with pytest.raises(NoStoreMembership):
            process_sale(query_backend, user_id=user_a.id, items=sale_items((p1, 1)), total="1")

    def test_membership_lookup_failure(self, query_backend, store_a, user_a, make_product):
        p1 = make_product(store_a, price="1", stock=1)
        query_backend.fail("select", "store_memberships", "connection reset")

        with pytest.raises(NoStoreMembership) as exc:
            process_sale(query_backend, user_id=user_a.id, items=sale_items((p1, 1)), total="1")

        assert str(exc.value) == "connection reset"

    def test_sale_create_failure(self, query_backend, store_a, user_a, make_product):
        p1 = make_product(store_a, price="1", stock=1)
        query_backend.fail("insert", "sales", "insert failed")

        with pytest.raises(SaleCreateFailed) as exc:
            process_sale(query_backend, user_id=user_a.id, items=sale_items((p1, 1)), total="1")

        assert str(exc.value) == "insert failed"
        assert query_backend.calls_to("insert", "sale_items") == []
        assert stock_of(query_backend, p1) == 1

    def test_line_item_failure_leaves_header(self, query_backend, store_a, user_a, make_product):
        p1 = make_product(store_a, price="3", stock=5)
        query_backend.fail("insert", "sale_items", "fk violation")

        with pytest.raises(LineItemInsertFailed) as exc:
            process_sale(query_backend, user_id=user_a.id, items=sale_items((p1, 1)), total="3")

        sales = query_backend.select("sales")
        assert len(sales) == 1
        assert exc.value.sale_id == sales[0]["id"]
        assert exc.value.details == {"sale_id": sales[0]["id"]}
        assert query_backend.select("sale_items") == []
        assert stock_of(query_backend, p1) == 5

    def test_stock_failure_mid_sequence(self, query_backend, store_a, user_a, make_product):
        p1 = make_product(store_a, name="P1", price="1", stock=10)
        p2 = make_product(store_a, name="P2", price="2", stock=10)
        p3 = make_product(store_a, name="P3", price="3", stock=10)
        query_backend.fail(
            "update", "products", "stock update failed",
            when=lambda filters: filters.get("id") == p2["id"],
        )

        with pytest.raises(StockUpdateFailed) as exc:
            process_sale(
                query_backend,
                user_id=user_a.id,
                items=sale_items((p1, 1), (p2, 2), (p3, 3)),
                total="14",
            )

        assert exc.value.code == "STOCK_UPDATE_FAILED"
        assert exc.value.item_index == 1
        assert exc.value.details["product_id"] == p2["id"]
        # No rollback: header and every line item stay, item 0 keeps its decrement
        assert len(query_backend.select("sales")) == 1
        assert len(query_backend.select("sale_items")) == 3
        assert stock_of(query_backend, p1) == 9
        assert stock_of(query_backend, p2) == 10
        assert stock_of(query_backend, p3) == 10
        assert all(c[2]["id"] != p3["id"] for c in query_backend.calls_to("update", "products"))

    def test_steps_run_in_order(self, query_backend, store_a, user_a, make_product):
        p1 = make_product(store_a, price="1", stock=10)
        p2 = make_product(store_a, price="1", stock=10)
        query_backend.calls.clear()

        process_sale(query_backend, user_id=user_a.id, items=sale_items((p1, 1), (p2, 1)), total="2")

        writes = [(op, table) for op, table, _ in query_backend.calls if op != "select"]
        assert writes == [
            ("insert", "sales"),
            ("insert", "sale_items"),
            ("update", "products"),
            ("update", "products"),
        ]


class TestListSales:

    def test_history_with_items_and_names(self, query_backend, store_a, user_a, make_product):
        p1 = make_product(store_a, name="Café", price="4.50", stock=10)
        process_sale(query_backend, user_id=user_a.id, items=sale_items((p1, 2)), total="9")
        process_sale(query_backend, user_id=user_a.id, items=sale_items((p1, 1)), total="4.50")

        history = list_sales(query_backend, store_a["id"])

        assert history["period"] == "all"
        assert history["total"] == Decimal("13.50")
        assert len(history["sales"]) == 2
        for sale in history["sales"]:
            assert [i["product"]["name"] for i in sale["sale_items"]] == ["Café"]

    def test_newest_first(self, query_backend, store_a):
        query_backend.insert("sales", [
            {"store_id": store_a["id"], "total": Decimal("1"), "created_at": "2026-01-01T10:00:00.000000Z"},
            {"store_id": store_a["id"], "total": Decimal("2"), "created_at": "2026-01-02T10:00:00.000000Z"},
        ])
        history = list_sales(query_backend, store_a["id"])
        assert [s["total"] for s in history["sales"]] == [Decimal("2"), Decimal("1")]

    def test_period_filter(self, query_backend, store_a):
        query_backend.insert("sales", [
            {"store_id": store_a["id"], "total": Decimal("50"), "created_at": "2020-01-01T00:00:00.000000Z"},
        ])
        query_backend.insert("sales", [{"store_id": store_a["id"], "total": Decimal("10")}])

        assert list_sales(query_backend, store_a["id"], period="today")["total"] == Decimal("10")
        assert list_sales(query_backend, store_a["id"], period="month")["total"] == Decimal("10")
        assert list_sales(query_backend, store_a["id"], period="all")["total"] == Decimal("60")

    def test_unknown_period(self, query_backend, store_a):
        with pytest.raises(ValueError):
            list_sales(query_backend, store_a["id"], period="year")

    def test_deleted_product_name_still_resolves(self, query_backend, store_a, user_a, make_product):
        from quickpos.services.catalog_service import delete_product

        p1 = make_product(store_a, name="Bolo", price="7.50", stock=3)
        process_sale(query_backend, user_id=user_a.id, items=sale_items((p1, 1)), total="7.50")
        delete_product(query_backend, store_a["id"], p1["id"])

        sale = list_sales(query_backend, store_a["id"])["sales"][0]
        assert sale["sale_items"][0]["product"]["name"] == "Bolo"

    def test_scoped_to_store(self, query_backend, store_a, store_b, user_a, user_b, make_product):
        pa = make_product(store_a, price="1", stock=5)
        pb = make_product(store_b, price="2", stock=5)
        process_sale(query_backend, user_id=user_a.id, items=sale_items((pa, 1)), total="1")
        process_sale(query_backend, user_id=user_b.id, items=sale_items((pb, 1)), total="2")

        history = list_sales(query_backend, store_a["id"])
        assert history["total"] == Decimal("1.00")
        assert {s["store_id"] for s in history["sales"]} == {store_a["id"]}

    def test_empty(self, query_backend, store_a):
        assert list_sales(query_backend, store_a["id"]) == {
            "sales": [], "period": "all", "total": Decimal("0"),
        }
