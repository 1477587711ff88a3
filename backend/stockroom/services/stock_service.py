# Overview: Stock reconciliation between purchase/sale documents and product stock.

"""
Stock state machine.

A purchase or sale affects product stock only through its status. Each
document kind has a transition table and a set of "stock-holding" statuses:

- Purchase: active <-> inactive. Active purchases hold stock (+).
- Sale: pending -> {processing, cancelled}, processing -> {completed,
  cancelled}, completed -> {cancelled}, cancelled is terminal. Processing and
  completed sales hold stock (-).

Moving a document from status A to B changes each product's stock by
    (holds(B) - holds(A)) * direction * quantity
so entering a holding status applies the effect and leaving one reverses it.

The pure helpers (StockMachine, net_quantities, plan_stock_changes) have no
database access. apply_stock_effect locks the product rows and writes every
new level into the session; it never commits. Callers wrap the whole request
in concurrency.run_in_transaction so all lines change together or none do.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from flask import current_app

from ..errors import InsufficientStockError, InvalidTransitionError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product
from ..time_utils import utcnow
from .concurrency import lock_for_update


@dataclass(frozen=True)
class StockMachine:
    name: str
    transitions: Mapping[str, frozenset]
    holding_statuses: frozenset
    deletable_statuses: frozenset
    direction: int

    @property
    def statuses(self) -> frozenset:
        return frozenset(self.transitions)

    def holds_stock(self, status: str) -> bool:
        return status in self.holding_statuses

    def allowed_targets(self, current: str) -> list[str]:
        return sorted(self.transitions.get(current, ()))

    def is_terminal(self, status: str) -> bool:
        return not self.transitions.get(status)

    def can_delete(self, status: str) -> bool:
        return status in self.deletable_statuses

    def check_status(self, status) -> str:
        if not isinstance(status, str) or status.strip().lower() not in self.statuses:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(sorted(self.statuses))}"
            )
        return status.strip().lower()

    def check_transition(self, current: str, target: str) -> None:
        if target == current:
            raise InvalidTransitionError(f"{self.name.capitalize()} is already {current}")
        if target not in self.transitions.get(current, ()):
            allowed = self.allowed_targets(current)
            raise InvalidTransitionError(
                f"Cannot change {self.name} status from {current} to {target}",
                details={"allowed": allowed},
            )

    def initial_sign(self, status: str) -> int:
        return self.direction if self.holds_stock(status) else 0

    def stock_sign(self, current: str, target: str) -> int:
        return (int(self.holds_stock(target)) - int(self.holds_stock(current))) * self.direction


PURCHASE_MACHINE = StockMachine(
    name="purchase",
    transitions={
        "active": frozenset({"inactive"}),
        "inactive": frozenset({"active"}),
    },
    holding_statuses=frozenset({"active"}),
    deletable_statuses=frozenset({"inactive"}),
    direction=+1,
)

SALE_MACHINE = StockMachine(
    name="sale",
    transitions={
        "pending": frozenset({"processing", "cancelled"}),
        "processing": frozenset({"completed", "cancelled"}),
        "completed": frozenset({"cancelled"}),
        "cancelled": frozenset(),
    },
    holding_statuses=frozenset({"processing", "completed"}),
    deletable_statuses=frozenset({"pending", "cancelled"}),
    direction=-1,
)


def net_quantities(lines: Iterable) -> dict[int, int]:
    """Sum quantities per product id; lines are (product_id, quantity) pairs."""
    totals: dict[int, int] = {}
    for product_id, quantity in lines:
        totals[product_id] = totals.get(product_id, 0) + quantity
    return totals


def plan_stock_changes(
    levels: Mapping[int, int],
    quantities: Mapping[int, int],
    sign: int,
    names: Mapping[int, str] | None = None,
) -> dict[int, int]:
    """
    New stock level per product after applying sign * quantity.

    Raises InsufficientStockError for the first product (in id order) that
    would go below zero; nothing is returned in that case.
    """
    names = names or {}
    planned: dict[int, int] = {}
    for product_id in sorted(quantities):
        quantity = quantities[product_id]
        available = levels[product_id]
        new_level = available + sign * quantity
        if new_level < 0:
            label = names.get(product_id, f"#{product_id}")
            raise InsufficientStockError(
                f"Insufficient stock for product '{label}': available {available}, required {quantity}",
                details={"product_id": product_id, "available": available, "required": quantity},
            )
        planned[product_id] = new_level
    return planned


def lock_products(product_ids: Iterable[int]) -> dict[int, Product]:
    """Load products by id with row locks, in id order to avoid deadlocks."""
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    query = db.session.query(Product).filter(Product.id.in_(ids)).order_by(Product.id)
    products = {p.id: p for p in lock_for_update(query).all()}
    missing = [pid for pid in ids if pid not in products]
    if missing:
        raise NotFoundError(f"Product not found: {missing[0]}")
    return products


def apply_stock_effect(quantities: Mapping[int, int], sign: int) -> dict[int, int]:
    """
    Apply sign * quantity to every product in one pass.

    Either every product is updated or, when any would go negative, none is.
    Returns the per-product delta actually written. Does not commit.
    """
    if sign == 0 or not quantities:
        return {}

    products = lock_products(quantities)
    planned = plan_stock_changes(
        {pid: p.stock for pid, p in products.items()},
        quantities,
        sign,
        names={pid: p.name for pid, p in products.items()},
    )

    now = utcnow()
    for product_id, new_level in planned.items():
        product = products[product_id]
        product.stock = new_level
        product.updated_at = now

    return {pid: sign * qty for pid, qty in quantities.items()}


def transition(machine: StockMachine, current: str, target: str, quantities: Mapping[int, int]) -> dict[int, int]:
    """Validate current -> target and apply the matching stock effect. Does not commit."""
    machine.check_transition(current, target)
    deltas = apply_stock_effect(quantities, machine.stock_sign(current, target))
    if deltas:
        current_app.logger.info(
            "Stock moved by %s %s -> %s: %s", machine.name, current, target, deltas
        )
    return deltas
