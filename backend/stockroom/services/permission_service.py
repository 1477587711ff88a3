# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Permission checking.

The check itself is a pure set-membership test of (role, permission code)
performed by a policy object. The application holds one policy in
app.extensions["permission_policy"]; create_app installs
RolePermissionPolicy unless another one is passed in.

- RolePermissionPolicy reads the codes linked to the role in the database.
- StaticPermissionPolicy answers from an in-memory role name -> codes table.

Both deny everything to a missing or inactive role (fail closed).
"""

from __future__ import annotations

from typing import Iterable, Mapping, Protocol

from flask import current_app

from ..errors import PermissionDenied
from ..extensions import db
from ..models import Permission, Role, RolePermission, User
from ..permissions import DEFAULT_ROLE_PERMISSIONS, PERMISSION_DEFINITIONS


POLICY_EXTENSION_KEY = "permission_policy"


class PermissionPolicy(Protocol):
    def allows(self, role: Role | None, permission_code: str) -> bool: ...

    def codes_for(self, role: Role | None) -> set[str]: ...


class RolePermissionPolicy:
    """Grants exactly the permissions stored for the role."""

    def codes_for(self, role: Role | None) -> set[str]:
        if role is None or not role.is_active:
            return set()
        return set(role.permission_codes)

    def allows(self, role: Role | None, permission_code: str) -> bool:
        return permission_code in self.codes_for(role)


class StaticPermissionPolicy:
    """Grants permissions from a fixed role name -> codes table."""

    def __init__(self, table: Mapping[str, Iterable[str]]):
        self._table = {name: frozenset(codes) for name, codes in table.items()}

    def codes_for(self, role: Role | None) -> set[str]:
        if role is None or not role.is_active:
            return set()
        return set(self._table.get(role.name, ()))

    def allows(self, role: Role | None, permission_code: str) -> bool:
        return permission_code in self.codes_for(role)


def get_policy() -> PermissionPolicy:
    return current_app.extensions[POLICY_EXTENSION_KEY]


def get_user_permissions(user: User) -> set[str]:
    """All permission codes the user's role currently grants."""
    return get_policy().codes_for(user.role)


def require_permission(user: User, permission_code: str, resource: str | None = None) -> None:
    """
    Raise PermissionDenied unless the user's role grants permission_code.

    Denials are logged; grants are not.
    """
    if get_policy().allows(user.role, permission_code):
        return

    current_app.logger.warning(
        "Permission denied: user=%s role=%s permission=%s resource=%s",
        user.id,
        user.role.name if user.role else None,
        permission_code,
        resource,
    )
    raise PermissionDenied(
        "Permission denied",
        details={"required_permission": permission_code},
    )


def initialize_permissions() -> int:
    """
    Seed the permissions table from PERMISSION_DEFINITIONS.

    Idempotent: existing codes are skipped. Returns the number created.
    """
    created_count = 0

    for code, name, description, category in PERMISSION_DEFINITIONS:
        existing = db.session.query(Permission).filter_by(code=code).first()

        if not existing:
            db.session.add(Permission(
                code=code,
                name=name,
                description=description,
                category=category
            ))
            created_count += 1

    db.session.commit()
    return created_count


def set_role_permissions(role: Role, permission_codes: Iterable[str]) -> None:
    """
    Replace the role's permission set. Does not commit.

    Unknown codes are ignored by callers that validated them first; here
    they simply have no Permission row to link to.
    """
    wanted = set(permission_codes)
    permissions = db.session.query(Permission).filter(Permission.code.in_(wanted)).all() if wanted else []

    role.role_permissions = [
        rp for rp in role.role_permissions if rp.permission.code in wanted
    ]
    linked = {rp.permission.code for rp in role.role_permissions}
    for permission in permissions:
        if permission.code not in linked:
            role.role_permissions.append(RolePermission(permission=permission))


def assign_default_role_permissions() -> int:
    """
    Link default roles to their default permissions.

    Idempotent: Safe to run multiple times (skips existing).
    """
    created_count = 0

    for role_name, permission_codes in DEFAULT_ROLE_PERMISSIONS.items():
        role = db.session.query(Role).filter_by(name=role_name).first()
        if not role:
            continue

        linked = {rp.permission.code for rp in role.role_permissions}
        for permission_code in permission_codes:
            if permission_code in linked:
                continue
            permission = db.session.query(Permission).filter_by(code=permission_code).first()
            if not permission:
                continue
            role.role_permissions.append(RolePermission(permission=permission))
            created_count += 1

    db.session.commit()
    return created_count
