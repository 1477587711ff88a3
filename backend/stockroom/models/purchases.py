from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z
from .catalog import money


class Purchase(db.Model):
    """
    Goods bought from a provider.

    While status is "active" the purchased quantities are counted in product
    stock. Lines are fixed once the purchase is created.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.Index("ix_purchases_status_date", "status", "purchase_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), nullable=False, unique=True)

    provider_id = db.Column(db.Integer, db.ForeignKey("providers.id"), nullable=False, index=True)
    purchase_date = db.Column(db.Date, nullable=False)

    total = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    provider = db.relationship("Provider", backref=db.backref("purchases", lazy=True))
    lines = db.relationship(
        "PurchaseLine",
        back_populates="purchase",
        order_by="PurchaseLine.position",
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "code": self.code,
            "provider": self.provider.to_summary() if self.provider else None,
            "purchase_date": to_iso_date(self.purchase_date),
            "total": money(self.total),
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at) if self.updated_at else None,
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class PurchaseLine(db.Model):
    __tablename__ = "purchase_lines"
    __table_args__ = (
        db.UniqueConstraint("purchase_id", "position", name="uq_purchase_lines_position"),
        db.CheckConstraint("quantity > 0", name="purchase_line_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    line_total = db.Column(db.Numeric(14, 2), nullable=False)

    purchase = db.relationship("Purchase", back_populates="lines")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "product": self.product.to_summary() if self.product else None,
            "quantity": self.quantity,
            "unit_price": money(self.unit_price),
            "line_total": money(self.line_total),
        }
