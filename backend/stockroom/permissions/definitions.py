# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


def _resource_permissions(resource: str, label: str, category: str) -> list[tuple]:
    """Standard view/create/update/delete/status set for one resource."""
    upper = resource.upper()
    return [
        (f"VIEW_{upper}", f"View {label}", f"List and read {label.lower()}", category),
        (f"CREATE_{upper}", f"Create {label}", f"Create new {label.lower()}", category),
        (f"UPDATE_{upper}", f"Update {label}", f"Edit existing {label.lower()}", category),
        (f"DELETE_{upper}", f"Delete {label}", f"Delete inactive {label.lower()}", category),
        (
            f"UPDATE_STATUS_{upper}",
            f"Change {label} Status",
            f"Activate or deactivate {label.lower()}",
            category,
        ),
    ]


# -- CATALOG --

CATALOG_PERMISSIONS = (
    _resource_permissions("categories", "Categories", PermissionCategory.CATALOG)
    + _resource_permissions("products", "Products", PermissionCategory.CATALOG)
)


# -- PARTIES --

PARTY_PERMISSIONS = (
    _resource_permissions("customers", "Customers", PermissionCategory.PARTIES)
    + _resource_permissions("providers", "Providers", PermissionCategory.PARTIES)
)


# -- PURCHASING --

PURCHASE_PERMISSIONS = _resource_permissions(
    "purchases", "Purchases", PermissionCategory.PURCHASING
) + [
    (
        "EXPORT_PURCHASES",
        "Export Purchases",
        "Download purchase reports as PDF or Excel",
        PermissionCategory.PURCHASING,
    ),
]


# -- SALES --

SALES_PERMISSIONS = _resource_permissions(
    "sales", "Sales", PermissionCategory.SALES
) + [
    (
        "EXPORT_SALES",
        "Export Sales",
        "Download sales reports as PDF or Excel",
        PermissionCategory.SALES,
    ),
]


# -- ORGANIZATION --

ORGANIZATION_PERMISSIONS = (
    _resource_permissions("branches", "Branches", PermissionCategory.ORGANIZATION)
    + _resource_permissions("roles", "Roles", PermissionCategory.ORGANIZATION)
)


# -- USERS --

USER_PERMISSIONS = [
    (
        "CREATE_USERS",
        "Create Users",
        "Register new user accounts",
        PermissionCategory.USERS,
    ),
]


# Combined list of all permissions (preserves ordering)
PERMISSION_DEFINITIONS = (
    CATALOG_PERMISSIONS
    + PARTY_PERMISSIONS
    + PURCHASE_PERMISSIONS
    + SALES_PERMISSIONS
    + ORGANIZATION_PERMISSIONS
    + USER_PERMISSIONS
)
