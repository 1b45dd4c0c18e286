from __future__ import annotations

from sqlalchemy.orm import validates

from ..extensions import db
from vidly.time_utils import to_utc_z


# Copied from Customer / Movie at checkout; never rewritten afterwards
CUSTOMER_SNAPSHOT_FIELDS = ("customer_id", "customer_name", "customer_phone", "customer_is_gold")
MOVIE_SNAPSHOT_FIELDS = ("movie_id", "movie_title", "movie_daily_rental_rate")

# Set together by return processing, exactly once
RETURN_FIELDS = ("date_returned", "rental_fee")


class Rental(db.Model):
    """
    One checkout of one movie by one customer.

    DESIGN:
    - customer_* and movie_* columns are snapshots, not foreign keys. The
      rental keeps the name, phone and daily rate that were true at checkout
      even if the customer or movie is edited or removed later.
    - date_returned IS NULL means the rental is active.
    - date_returned and rental_fee are written once, by return processing.

    LIFECYCLE:
    Active (date_returned NULL) -> Returned (terminal)
    """
    __tablename__ = "rentals"
    __table_args__ = (
        db.Index("ix_rentals_customer_movie", "customer_id", "movie_id"),
        db.Index("ix_rentals_date_returned", "date_returned"),
        db.CheckConstraint(
            "(date_returned IS NULL AND rental_fee IS NULL) OR "
            "(date_returned IS NOT NULL AND rental_fee IS NOT NULL)",
            name="return_fields_together",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Customer snapshot
    customer_id = db.Column(db.Integer, nullable=False)
    customer_name = db.Column(db.String(128), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=False)
    customer_is_gold = db.Column(db.Boolean, nullable=False, default=False)

    # Movie snapshot
    movie_id = db.Column(db.Integer, nullable=False)
    movie_title = db.Column(db.String(255), nullable=False)
    movie_daily_rental_rate = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)

    date_out = db.Column(db.DateTime(timezone=True), nullable=False)
    date_returned = db.Column(db.DateTime(timezone=True), nullable=True)
    rental_fee = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=True)

    @validates(*CUSTOMER_SNAPSHOT_FIELDS, *MOVIE_SNAPSHOT_FIELDS, *RETURN_FIELDS)
    def _write_once(self, key, value):
        current = getattr(self, key)
        if current is not None and current != value:
            raise ValueError(f"Rental.{key} cannot be changed once set")
        return value

    @property
    def is_active(self) -> bool:
        return self.date_returned is None

    def customer_snapshot(self) -> dict:
        return {
            "id": self.customer_id,
            "name": self.customer_name,
            "phone": self.customer_phone,
            "isGold": self.customer_is_gold,
        }

    def movie_snapshot(self) -> dict:
        return {
            "id": self.movie_id,
            "title": self.movie_title,
            "dailyRentalRate": self.movie_daily_rental_rate,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer": self.customer_snapshot(),
            "movie": self.movie_snapshot(),
            "dateOut": to_utc_z(self.date_out),
            "dateReturned": to_utc_z(self.date_returned) if self.date_returned else None,
            "rentalFee": self.rental_fee,
        }
