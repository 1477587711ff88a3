# Overview: Default role names and the permission codes each one starts with.

from .definitions import PERMISSION_DEFINITIONS


ADMIN_ROLE = "admin"
ASSISTANT_ROLE = "assistant"
EMPLOYEE_ROLE = "employee"

DEFAULT_ROLES = {
    ADMIN_ROLE: "Full access to every resource",
    ASSISTANT_ROLE: "Back-office work: catalog, parties, purchasing and sales",
    EMPLOYEE_ROLE: "Front counter: sell and look things up",
}

# - admin: every permission
# - assistant: everything except roles, branch changes and user registration
# - employee: read access plus creating sales and customers

DEFAULT_ROLE_PERMISSIONS = {
    ADMIN_ROLE: [perm[0] for perm in PERMISSION_DEFINITIONS],

    ASSISTANT_ROLE: [
        perm[0]
        for perm in PERMISSION_DEFINITIONS
        if not perm[0].endswith("_ROLES")
        and perm[0] not in ("CREATE_USERS", "CREATE_BRANCHES", "UPDATE_BRANCHES", "DELETE_BRANCHES", "UPDATE_STATUS_BRANCHES")
    ],

    EMPLOYEE_ROLE: [
        "VIEW_CATEGORIES",
        "VIEW_PRODUCTS",
        "VIEW_CUSTOMERS",
        "CREATE_CUSTOMERS",
        "VIEW_SALES",
        "CREATE_SALES",
        "VIEW_BRANCHES",
    ],
}
