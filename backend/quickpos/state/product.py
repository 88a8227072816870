from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from quickpos.time_utils import parse_iso_datetime, to_utc_z


def _as_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return parse_iso_datetime(value)


@dataclass(frozen=True)
class Product:
    """Immutable product snapshot held by the catalog and cart stores."""

    id: str
    name: str
    price: Decimal
    stock: int
    store_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Product":
        """Build from a backend row or a stored JSON object."""
        return cls(
            id=str(data["id"]),
            name=data["name"],
            price=Decimal(str(data["price"])),
            stock=int(data["stock"]),
            store_id=data.get("store_id"),
            created_at=_as_datetime(data.get("created_at")),
            updated_at=_as_datetime(data.get("updated_at")),
            deleted_at=_as_datetime(data.get("deleted_at")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "price": self.price,
            "stock": self.stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
        }

    def to_json(self) -> dict:
        """JSON-safe variant of to_dict (price as a string)."""
        data = self.to_dict()
        data["price"] = str(self.price)
        return data
