from .auth import User, Role, Permission, RolePermission, SessionToken
from .catalog import Category, Product
from .parties import Customer, Provider, DEFAULT_CUSTOMER
from .branches import Branch
from .purchases import Purchase, PurchaseLine
from .sales import Sale, SaleLine

__all__ = [
    'User', 'Role', 'Permission', 'RolePermission', 'SessionToken',
    'Category', 'Product',
    'Customer', 'Provider', 'DEFAULT_CUSTOMER',
    'Branch',
    'Purchase', 'PurchaseLine',
    'Sale', 'SaleLine',
]
