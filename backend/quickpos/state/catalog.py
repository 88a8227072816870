# Overview: Product Catalog State: id-keyed arena with soft-delete tombstones and search.

"""
Product Catalog State.

The snapshot is a read-only mapping id -> Product in display order (newest
first). Soft-deleted products stay in the mapping with deleted_at set and
are filtered out of every view.

Views:
- list():      not deleted, name contains the search query (case-insensitive)
- available(): list() restricted to stock > 0

update() and decrement_stock() on an unknown id are silent no-ops; callers
that need to know whether a product exists use get().
"""

from __future__ import annotations

import dataclasses
import uuid
from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, Mapping

from quickpos.time_utils import utcnow
from .observable import Derived, Observable
from .persistence import CatalogStorage
from .product import Product

IMMUTABLE_FIELDS = {"id", "created_at"}


def filter_products(products: Iterable[Product], query: str) -> tuple[Product, ...]:
    needle = (query or "").casefold()
    return tuple(
        p for p in products
        if not p.is_deleted and needle in p.name.casefold()
    )


def available_products(products: Iterable[Product]) -> tuple[Product, ...]:
    return tuple(p for p in products if p.stock > 0)


def _arena(products: Iterable[Product]) -> Mapping[str, Product]:
    return MappingProxyType({p.id: p for p in products})


class ProductCatalog(Observable[Mapping[str, Product]]):

    def __init__(self, products: Iterable[Product] = (), *, search: Observable[str] | None = None):
        super().__init__(_arena(products))
        self.search = search if search is not None else Observable("")
        self.filtered = Derived([self, self.search], lambda records, q: filter_products(records.values(), q))
        self.available_view = Derived([self.filtered], available_products)

    @classmethod
    def from_storage(
        cls,
        storage: CatalogStorage,
        *,
        seed: Iterable[Product] = (),
        search: Observable[str] | None = None,
    ) -> "ProductCatalog":
        """Load from storage (seed when empty) and save back after every change."""
        catalog = cls(storage.load() or list(seed), search=search)
        catalog.subscribe(lambda records: storage.save(records.values()))
        return catalog

    # -- views --------------------------------------------------------------

    def snapshot(self) -> tuple[Product, ...]:
        """Every record, tombstones included, in collection order."""
        return tuple(self.get().values())

    def get_product(self, product_id: str) -> Product | None:
        return self.get().get(product_id)

    def list(self) -> tuple[Product, ...]:
        return self.filtered.get()

    def available(self) -> tuple[Product, ...]:
        return self.available_view.get()

    def set_search(self, query: str) -> None:
        self.search.set(query or "")

    # -- mutations ----------------------------------------------------------

    def replace(self, products: Iterable[Product]) -> None:
        self.set(_arena(products))

    def add(self, *, name: str, price, stock: int, store_id: str | None = None) -> Product:
        if stock < 0:
            raise ValueError("stock must be >= 0")
        now = utcnow()
        product = Product(
            id=str(uuid.uuid4()),
            name=name,
            price=Decimal(str(price)),
            stock=stock,
            store_id=store_id,
            created_at=now,
            updated_at=now,
        )
        self.set(MappingProxyType({product.id: product, **self.get()}))
        return product

    def _replace_one(self, product_id: str, **changes) -> None:
        records = self.get()
        current = records.get(product_id)
        if current is None:
            return
        updated = dataclasses.replace(current, updated_at=utcnow(), **changes)
        self.set(MappingProxyType({**records, product_id: updated}))

    def update(self, product_id: str, **fields) -> None:
        blocked = IMMUTABLE_FIELDS.intersection(fields)
        if blocked:
            raise ValueError(f"Cannot update field(s): {', '.join(sorted(blocked))}")
        # updated_at is always stamped by the store itself
        fields.pop("updated_at", None)
        if "stock" in fields and fields["stock"] < 0:
            raise ValueError("stock must be >= 0")
        if "price" in fields:
            fields["price"] = Decimal(str(fields["price"]))
        self._replace_one(product_id, **fields)

    def soft_delete(self, product_id: str) -> None:
        self._replace_one(product_id, deleted_at=utcnow())

    def decrement_stock(self, product_id: str, quantity: int) -> None:
        current = self.get().get(product_id)
        if current is None:
            return
        self._replace_one(product_id, stock=max(0, current.stock - quantity))
