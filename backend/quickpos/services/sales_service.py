# Overview: Service-layer operations for sales; the sale transaction sequence and sales history.

"""
Sales Service

process_sale() runs a fixed, strictly sequential series of backend writes:

    1. validate the payload              (no backend calls)
    2. resolve the caller's store        (read only)
    3. insert the sale header
    4. insert every line item            (one insert call)
    5. decrement stock, item by item

There is NO transaction across steps and NO automatic retry. Partial
failures are left exactly as they happened:

- step 4 fails: the header from step 3 stays persisted
- step 5 fails at item i: items 0..i-1 keep their decremented stock,
  items i+1.. are never touched

Each failure surfaces as a SaleError subclass carrying a stable code.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from ..backend import BackendError, QueryBackend
from ..validation import ValidationError, parse_sale_payload
from .catalog_service import decrement_stock
from .membership_service import AuthError, NoStoreMembershipError, resolve_store_id
from quickpos.time_utils import period_start

logger = logging.getLogger(__name__)


class SaleError(Exception):
    """Raised for sale operation errors."""
    code = "SALE_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InvalidSaleInput(SaleError):
    code = "INVALID_INPUT"


class NotAuthenticated(SaleError):
    code = "NOT_AUTHENTICATED"


class NoStoreMembership(SaleError):
    code = "NO_STORE_MEMBERSHIP"


class SaleCreateFailed(SaleError):
    code = "SALE_CREATE_FAILED"


class LineItemInsertFailed(SaleError):
    code = "LINE_ITEM_INSERT_FAILED"

    def __init__(self, message: str, sale_id: str, details: dict | None = None):
        super().__init__(message, details={"sale_id": sale_id, **(details or {})})
        self.sale_id = sale_id


class StockUpdateFailed(SaleError):
    code = "STOCK_UPDATE_FAILED"

    def __init__(self, message: str, item_index: int, sale_id: str, details: dict | None = None):
        super().__init__(
            message,
            details={"item_index": item_index, "sale_id": sale_id, **(details or {})},
        )
        self.item_index = item_index
        self.sale_id = sale_id


def process_sale(
    backend: QueryBackend,
    *,
    user_id: str | None,
    items: Any,
    total: Any,
) -> dict:
    """
    Record a sale and decrement stock.

    Args:
        backend: query backend
        user_id: authenticated user (None when there is no session)
        items: JSON string (or decoded list) of {"product": {"id", "price"}, "quantity"}
        total: client-computed total; must equal the recomputed one

    Returns:
        The created sale header row. Clearing the cart is the caller's job.

    Raises:
        SaleError subclass; see module docstring for what is left behind.
    """
    if not user_id:
        raise NotAuthenticated("User not authenticated")

    try:
        lines, checked_total = parse_sale_payload(items, total)
    except ValidationError as e:
        raise InvalidSaleInput(str(e))

    try:
        store_id = resolve_store_id(backend, user_id)
    except NoStoreMembershipError as e:
        raise NoStoreMembership(str(e))
    except AuthError as e:
        raise NotAuthenticated(str(e))
    except BackendError as e:
        raise NoStoreMembership(str(e))

    try:
        sale = backend.insert("sales", [{"total": checked_total, "store_id": store_id}])[0]
    except BackendError as e:
        logger.error("Error creating sale: %s", e)
        raise SaleCreateFailed(str(e))

    sale_items = [
        {
            "sale_id": sale["id"],
            "product_id": line.product_id,
            "quantity": line.quantity,
            "price_at_sale": line.price,
            "store_id": store_id,
        }
        for line in lines
    ]
    try:
        backend.insert("sale_items", sale_items)
    except BackendError as e:
        # Header stays: no compensating delete
        logger.error("Error creating sale items for sale %s: %s", sale["id"], e)
        raise LineItemInsertFailed(str(e), sale_id=sale["id"])

    for index, line in enumerate(lines):
        try:
            decrement_stock(backend, store_id, line.product_id, line.quantity)
        except BackendError as e:
            logger.error(
                "Error updating stock for product %s (item %d of sale %s): %s",
                line.product_id, index, sale["id"], e,
            )
            raise StockUpdateFailed(
                str(e),
                item_index=index,
                sale_id=sale["id"],
                details={"product_id": line.product_id},
            )

    return sale


def list_sales(backend: QueryBackend, store_id: str, *, period: str = "all") -> dict:
    """
    Sales history for one store, newest first.

    Each sale carries its line items, and each line item the product name
    (deleted products still resolve). Also returns the period revenue.

    Raises ValueError for an unknown period, BackendError unchanged.
    """
    filters: dict[str, Any] = {"store_id": store_id}
    start = period_start(period)
    if start is not None:
        filters["created_at__gte"] = start

    sales = backend.select("sales", filters, order_by="created_at", desc=True)
    sale_ids = [s["id"] for s in sales]

    items = backend.select("sale_items", {"sale_id__in": sale_ids}) if sale_ids else []
    product_ids = sorted({i["product_id"] for i in items})
    products = (
        backend.select("products", {"id__in": product_ids, "store_id": store_id})
        if product_ids else []
    )
    names = {p["id"]: p["name"] for p in products}

    by_sale: dict[str, list[dict]] = {sid: [] for sid in sale_ids}
    for item in items:
        by_sale[item["sale_id"]].append({**item, "product": {"name": names.get(item["product_id"])}})

    total = sum((Decimal(str(s["total"])) for s in sales), Decimal("0"))
    return {
        "sales": [{**s, "sale_items": by_sale[s["id"]]} for s in sales],
        "period": period,
        "total": total,
    }
