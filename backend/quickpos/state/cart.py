# Overview: Cart State: ordered (product snapshot, quantity) pairs with derived totals.

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping

from .observable import Derived, Observable
from .product import Product


@dataclass(frozen=True)
class CartItem:
    product: Product
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity


def cart_total(items: Iterable[CartItem]) -> Decimal:
    return sum((item.line_total for item in items), Decimal("0"))


def cart_item_count(items: Iterable[CartItem]) -> int:
    return sum(item.quantity for item in items)


class Cart(Observable[tuple[CartItem, ...]]):
    """
    At most one item per product id, quantities always >= 1.

    Re-adding a product bumps its quantity in place; first-insertion order
    is kept.
    """

    def __init__(self, items: Iterable[CartItem] = ()):
        super().__init__(tuple(items))
        self.total = Derived([self], cart_total)
        self.item_count = Derived([self], cart_item_count)

    def add(self, product: Product) -> None:
        items = self.get()
        if any(item.product.id == product.id for item in items):
            self.set(tuple(
                CartItem(item.product, item.quantity + 1) if item.product.id == product.id else item
                for item in items
            ))
        else:
            self.set(items + (CartItem(product, 1),))

    def remove(self, product_id: str) -> None:
        self.set(tuple(item for item in self.get() if item.product.id != product_id))

    def set_quantity(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove(product_id)
            return
        self.set(tuple(
            CartItem(item.product, quantity) if item.product.id == product_id else item
            for item in self.get()
        ))

    def clear(self) -> None:
        self.set(())

    def is_empty(self) -> bool:
        return not self.get()

    # -- serialization ------------------------------------------------------

    def to_list(self) -> list[dict]:
        return [{"product": item.product.to_json(), "quantity": item.quantity} for item in self.get()]

    @classmethod
    def from_list(cls, data: Iterable[Mapping[str, Any]] | None) -> "Cart":
        items = []
        for entry in data or ():
            quantity = int(entry["quantity"])
            if quantity >= 1:
                items.append(CartItem(Product.from_dict(entry["product"]), quantity))
        return cls(items)

    def sale_payload(self) -> dict:
        """Fields the processSale action expects: items JSON and total."""
        items = [
            {
                "product": {"id": item.product.id, "price": str(item.product.price), "stock": item.product.stock},
                "quantity": item.quantity,
            }
            for item in self.get()
        ]
        return {"items": json.dumps(items), "total": str(self.total.get())}

    def summary(self) -> dict:
        return {
            "items": [
                {
                    "product": item.product.to_dict(),
                    "quantity": item.quantity,
                    "line_total": item.line_total,
                }
                for item in self.get()
            ],
            "total": self.total.get(),
            "item_count": self.item_count.get(),
        }
