from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from ..time_utils import to_utc_z


DEFAULT_CUSTOMER = {
    "name": "Guest",
    "lastname": "Customer",
    "phone": "0000000000",
    "email": "guest@example.com",
}


class Customer(db.Model):
    """
    Customer contact record.

    Exactly one customer is the walk-in default. The partial unique index
    backs the flush hook below, which clears the flag on every other row
    before a default row is written.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index(
            "uq_customers_single_default",
            "is_default",
            unique=True,
            sqlite_where=db.text("is_default = 1"),
            postgresql_where=db.text("is_default"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), nullable=False, unique=True)

    name = db.Column(db.String(100), nullable=False)
    lastname = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="active", index=True)
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "lastname": self.lastname,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "lastname": self.lastname,
            "phone": self.phone,
            "email": self.email,
            "status": self.status,
            "is_default": self.is_default,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at) if self.updated_at else None,
        }


@event.listens_for(Customer, "before_insert")
@event.listens_for(Customer, "before_update")
def _clear_other_defaults(mapper, connection, target):
    if not target.is_default:
        return
    table = Customer.__table__
    stmt = table.update().where(table.c.is_default.is_(True)).values(is_default=False)
    if target.id is not None:
        stmt = stmt.where(table.c.id != target.id)
    connection.execute(stmt)


class Provider(db.Model):
    __tablename__ = "providers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), nullable=False, unique=True)

    nit = db.Column(db.String(20), nullable=False)
    company = db.Column(db.String(150), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    contact_phone = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_summary(self) -> dict:
        return {"id": self.id, "code": self.code, "company": self.company, "name": self.name}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "nit": self.nit,
            "company": self.company,
            "name": self.name,
            "contact_phone": self.contact_phone,
            "email": self.email,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
