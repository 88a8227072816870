from .tenancy import Store, StoreMembership
from .catalog import Product
from .sales import Sale, SaleItem
from .auth import User, SessionToken

__all__ = [
    'Store', 'StoreMembership',
    'Product',
    'Sale', 'SaleItem',
    'User', 'SessionToken',
]
