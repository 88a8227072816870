# Overview: Persisted snapshot of the product catalog (single JSON blob under a fixed key).

"""
Catalog persistence.

The whole catalog is stored as one serialized JSON array under
STORAGE_KEY. A missing or unreadable blob loads as an empty catalog; it is
never an error.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable

from .product import Product

logger = logging.getLogger(__name__)

STORAGE_KEY = "quickpos.products"


def dump_products(products: Iterable[Product]) -> str:
    return json.dumps([p.to_json() for p in products])


def load_products(blob: str | None) -> list[Product]:
    """Parse a stored blob; anything malformed yields []."""
    if not blob:
        return []
    try:
        data = json.loads(blob)
        if not isinstance(data, list):
            raise ValueError("catalog blob is not a list")
        return [Product.from_dict(item) for item in data]
    except (ValueError, TypeError, KeyError, ArithmeticError) as e:
        logger.warning("Discarding unreadable catalog snapshot: %s", e)
        return []


class CatalogStorage:
    """Key/value storage holding serialized blobs."""

    def get_item(self, key: str) -> str | None:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def load(self) -> list[Product]:
        return load_products(self.get_item(STORAGE_KEY))

    def save(self, products: Iterable[Product]) -> None:
        self.set_item(STORAGE_KEY, dump_products(products))


class MemoryStorage(CatalogStorage):

    def __init__(self):
        self.items: dict[str, str] = {}

    def get_item(self, key):
        return self.items.get(key)

    def set_item(self, key, value):
        self.items[key] = value


class JsonFileStorage(CatalogStorage):
    """One file per key inside a directory: <dir>/<key>.json."""

    def __init__(self, directory: str | os.PathLike):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key):
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Discarding unreadable catalog snapshot %s: %s", path, e)
            return None

    def set_item(self, key, value):
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)
