# Overview: Lookups over the static permission table.

from .definitions import PERMISSION_DEFINITIONS


def _as_dict(perm: tuple) -> dict:
    code, name, description, category = perm
    return {
        "code": code,
        "name": name,
        "description": description,
        "category": category,
    }


_BY_CODE = {perm[0]: _as_dict(perm) for perm in PERMISSION_DEFINITIONS}


def get_all_permission_codes() -> list[str]:
    return list(_BY_CODE)


def get_permissions_by_category() -> dict[str, list[dict]]:
    """Group permission definitions by category, preserving table order."""
    grouped: dict[str, list[dict]] = {}
    for perm in PERMISSION_DEFINITIONS:
        grouped.setdefault(perm[3], []).append(_BY_CODE[perm[0]])
    return grouped


def get_permission_definition(code: str) -> dict | None:
    definition = _BY_CODE.get(code)
    return dict(definition) if definition else None


def validate_permission_code(code) -> bool:
    return isinstance(code, str) and code in _BY_CODE
