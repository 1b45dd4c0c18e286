from __future__ import annotations

from ..extensions import db
from vidly.time_utils import to_utc_z


class Customer(db.Model):
    """
    Store customer.

    Rentals keep their own copy of name/phone/is_gold, so editing a
    customer never rewrites rental history.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_phone", "phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    is_gold = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "isGold": self.is_gold,
            "createdAt": to_utc_z(self.created_at),
        }
