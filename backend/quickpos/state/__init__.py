from .observable import Derived, Observable
from .product import Product
from .catalog import ProductCatalog, available_products, filter_products
from .cart import Cart, CartItem, cart_item_count, cart_total
from .persistence import STORAGE_KEY, CatalogStorage, JsonFileStorage, MemoryStorage

__all__ = [
    'Observable', 'Derived',
    'Product',
    'ProductCatalog', 'filter_products', 'available_products',
    'Cart', 'CartItem', 'cart_total', 'cart_item_count',
    'STORAGE_KEY', 'CatalogStorage', 'MemoryStorage', 'JsonFileStorage',
]
