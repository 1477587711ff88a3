# Overview: Permission system package.
# Re-exports the static permission table and default role mappings.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    CATALOG_PERMISSIONS,
    PARTY_PERMISSIONS,
    PURCHASE_PERMISSIONS,
    SALES_PERMISSIONS,
    ORGANIZATION_PERMISSIONS,
    USER_PERMISSIONS,
)
from .roles import (
    ADMIN_ROLE,
    ASSISTANT_ROLE,
    EMPLOYEE_ROLE,
    DEFAULT_ROLES,
    DEFAULT_ROLE_PERMISSIONS,
)
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "CATALOG_PERMISSIONS",
    "PARTY_PERMISSIONS",
    "PURCHASE_PERMISSIONS",
    "SALES_PERMISSIONS",
    "ORGANIZATION_PERMISSIONS",
    "USER_PERMISSIONS",
    "ADMIN_ROLE",
    "ASSISTANT_ROLE",
    "EMPLOYEE_ROLE",
    "DEFAULT_ROLES",
    "DEFAULT_ROLE_PERMISSIONS",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
]
