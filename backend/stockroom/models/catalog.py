from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


def money(value) -> float | None:
    return float(value) if value is not None else None


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), nullable=False, unique=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_summary(self) -> dict:
        return {"id": self.id, "code": self.code, "name": self.name}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Sellable item with a stock counter.

    stock is never written directly by clients: purchases add to it and sales
    take from it (see services/stock_service.py). The CHECK constraint is the
    last line for the stock >= 0 invariant; services reject the change first
    with a message naming the product.

    version_id gives optimistic locking on backends that ignore FOR UPDATE.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="stock_non_negative"),
        db.CheckConstraint("batch_date <= expiration_date", name="batch_before_expiration"),
        db.Index("ix_products_status_expiration", "status", "expiration_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), nullable=False, unique=True)
    name = db.Column(db.String(150), nullable=False)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)

    price = db.Column(db.Numeric(12, 2), nullable=False)
    batch_date = db.Column(db.Date, nullable=False)
    expiration_date = db.Column(db.Date, nullable=False)

    stock = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_summary(self) -> dict:
        return {"id": self.id, "code": self.code, "name": self.name}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "category": self.category.to_summary() if self.category else None,
            "price": money(self.price),
            "batch_date": to_iso_date(self.batch_date),
            "expiration_date": to_iso_date(self.expiration_date),
            "stock": self.stock,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at) if self.updated_at else None,
        }
