from __future__ import annotations

from ..extensions import db
from vidly.time_utils import to_utc_z


class Genre(db.Model):
    """Movie genre (e.g. Action, Comedy). Names are unique."""
    __tablename__ = "genres"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
        }


class Movie(db.Model):
    """
    Rentable title with its live stock count and current daily rate.

    numberInStock is the only movie field a rental ever changes: checkout
    takes one copy out, return processing puts one back. The rate is copied
    onto each rental at checkout; fees are always computed from that copy.
    """
    __tablename__ = "movies"
    __table_args__ = (
        db.CheckConstraint("number_in_stock >= 0", name="number_in_stock_non_negative"),
        db.CheckConstraint("daily_rental_rate > 0", name="daily_rental_rate_positive"),
        db.Index("ix_movies_genre_id", "genre_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    genre_id = db.Column(db.Integer, db.ForeignKey("genres.id"), nullable=False)

    number_in_stock = db.Column(db.Integer, nullable=False, default=0)
    daily_rental_rate = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    genre = db.relationship("Genre", backref=db.backref("movies", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "genre": self.genre.to_dict() if self.genre else None,
            "numberInStock": self.number_in_stock,
            "dailyRentalRate": self.daily_rental_rate,
            "updatedAt": to_utc_z(self.updated_at),
        }
