# Overview: Service-layer operations for products; tenant-scoped catalog reads and writes.

"""
Catalog Service

MULTI-TENANT: Every read and write is filtered by store_id; callers resolve
the store through membership_service first.

SOFT DELETE: delete_product() stamps deleted_at. No product row is ever
removed, and every listing filters deleted_at IS NULL.
"""

from __future__ import annotations

import logging

from ..backend import BackendError, QueryBackend
from ..state import CatalogStorage, Product, ProductCatalog
from quickpos.time_utils import to_utc_z, utcnow

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"name", "price", "stock"}


class ProductNotFoundError(Exception):
    """Raised when a product id does not resolve inside the caller's store."""


def list_products(backend: QueryBackend, store_id: str) -> list[dict]:
    """Non-deleted products of the store, newest first."""
    return backend.select(
        "products",
        {"store_id": store_id, "deleted_at": None},
        order_by="created_at",
        desc=True,
    )


def get_product(backend: QueryBackend, store_id: str, product_id: str) -> dict:
    rows = backend.select("products", {"id": product_id, "store_id": store_id, "deleted_at": None})
    if not rows:
        raise ProductNotFoundError("Product not found")
    return rows[0]


def create_product(backend: QueryBackend, store_id: str, patch: dict) -> dict:
    """
    Insert a product with one timestamp for created_at and updated_at.

    Raises BackendError unchanged.
    """
    now = to_utc_z(utcnow())
    row = {k: v for k, v in patch.items() if k in PRODUCT_MUTABLE_FIELDS}
    row.update({
        "store_id": store_id,
        "created_at": now,
        "updated_at": now,
        "deleted_at": None,
    })
    return backend.insert("products", [row])[0]


def update_product(backend: QueryBackend, store_id: str, product_id: str, patch: dict) -> dict:
    changes = {k: v for k, v in patch.items() if k in PRODUCT_MUTABLE_FIELDS}
    changes["updated_at"] = to_utc_z(utcnow())
    rows = backend.update(
        "products",
        changes,
        {"id": product_id, "store_id": store_id, "deleted_at": None},
    )
    if not rows:
        raise ProductNotFoundError("Product not found")
    return rows[0]


def delete_product(backend: QueryBackend, store_id: str, product_id: str) -> dict:
    """Soft-delete. Deleting an already deleted product refreshes deleted_at."""
    now = to_utc_z(utcnow())
    rows = backend.update(
        "products",
        {"deleted_at": now, "updated_at": now},
        {"id": product_id, "store_id": store_id},
    )
    if not rows:
        raise ProductNotFoundError("Product not found")
    return rows[0]


def decrement_stock(backend: QueryBackend, store_id: str, product_id: str, quantity: int) -> dict:
    """
    stock = max(0, stock - quantity) for one product.

    Reads the current row and writes the clamped value: two backend calls,
    not atomic across concurrent sales.
    """
    product = backend.single("products", {"id": product_id, "store_id": store_id})
    rows = backend.update(
        "products",
        {"stock": max(0, int(product["stock"]) - quantity), "updated_at": to_utc_z(utcnow())},
        {"id": product_id, "store_id": store_id},
    )
    if not rows:
        raise BackendError(f"Product {product_id} disappeared during stock update")
    return rows[0]


def load_catalog(
    backend: QueryBackend,
    store_id: str,
    *,
    storage: CatalogStorage | None = None,
    search: str = "",
) -> tuple[ProductCatalog, bool]:
    """
    Build a ProductCatalog for the page load.

    On success this store's rows in the stored snapshot are replaced (other
    stores' rows are kept). On a backend failure the last stored snapshot
    for this store is served instead, or an empty catalog when there is none.

    Returns (catalog, from_fallback).
    """
    try:
        rows = list_products(backend, store_id)
    except BackendError as e:
        logger.error("Error loading products for store %s: %s", store_id, e)
        products = [p for p in storage.load() if p.store_id == store_id] if storage else []
        catalog = ProductCatalog(products)
        catalog.set_search(search)
        return catalog, True

    catalog = ProductCatalog(Product.from_dict(r) for r in rows)
    if storage is not None:
        others = [p for p in storage.load() if p.store_id != store_id]
        storage.save([*others, *catalog.snapshot()])
    catalog.set_search(search)
    return catalog, False
