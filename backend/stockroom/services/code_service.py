# Overview: Human-readable sequential codes for business records (Pr01, Sa12, ...).

import re

from ..extensions import db
from ..models import Branch, Category, Customer, Product, Provider, Purchase, Role, Sale


CODE_PREFIXES = {
    Product: "Pr",
    Purchase: "Pu",
    Sale: "Sa",
    Branch: "Br",
    Role: "Ro",
    Category: "Ca",
    Provider: "Pv",
    Customer: "Cu",
}

MIN_DIGITS = 2


def next_code(model) -> str:
    """
    Next free code for model: prefix + (highest used number + 1), at least
    two digits wide.

    Deleted records leave gaps; numbers are never reused while a higher one
    exists.

    Two concurrent writers can compute the same code; the unique constraint
    on code rejects the second. Purchase and sale creation retry that
    IntegrityError (run_in_transaction(retry_integrity=True)); master-data
    creates surface it as a 500.
    """
    prefix = CODE_PREFIXES[model]
    pattern = re.compile(rf"^{prefix}(\d+)$")

    highest = 0
    codes = db.session.query(model.code).filter(model.code.like(f"{prefix}%")).all()
    for (code,) in codes:
        match = pattern.match(code or "")
        if match:
            highest = max(highest, int(match.group(1)))

    return f"{prefix}{highest + 1:0{MIN_DIGITS}d}"
