# Overview: Service-layer operations for rentals; encapsulates business logic and database work.

"""
Rental Checkout Service

WHY: A rental must remember what was true at checkout. The customer's
name/phone and the movie's title/daily rate are copied onto the rental
row, so later edits to either record never change historical rentals
or the fee charged on return.

DESIGN:
- date_out comes from the caller's clock (no database default)
- Stock is taken with a conditional UPDATE (number_in_stock > 0) so two
  checkouts of the last copy cannot both succeed
- Snapshot copy and stock decrement share one transaction
"""

import logging
from datetime import datetime

from sqlalchemy import update

from ..extensions import db
from ..models import Customer, Movie, Rental


logger = logging.getLogger(__name__)


class RentalError(Exception):
    """Raised for rental checkout errors."""
    pass


class CustomerNotFoundError(RentalError):
    pass


class MovieNotFoundError(RentalError):
    pass


class MovieOutOfStockError(RentalError):
    pass


class RentalNotFoundError(RentalError):
    pass


def create_rental(customer_id: int, movie_id: int, now: datetime) -> Rental:
    """
    Check a movie out to a customer.

    Args:
        customer_id: Customer taking the movie
        movie_id: Movie being rented
        now: Checkout time (UTC-naive); becomes date_out

    Returns:
        The new active Rental

    Raises:
        CustomerNotFoundError, MovieNotFoundError, MovieOutOfStockError
    """
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise CustomerNotFoundError(f"Customer {customer_id} not found")

    movie = db.session.get(Movie, movie_id)
    if not movie:
        raise MovieNotFoundError(f"Movie {movie_id} not found")

    taken = db.session.execute(
        update(Movie)
        .where(Movie.id == movie_id, Movie.number_in_stock > 0)
        .values(number_in_stock=Movie.number_in_stock - 1)
        .execution_options(synchronize_session=False)
    )
    if taken.rowcount != 1:
        db.session.rollback()
        raise MovieOutOfStockError(f"Movie {movie_id} is not in stock")

    rental = Rental(
        customer_id=customer.id,
        customer_name=customer.name,
        customer_phone=customer.phone,
        customer_is_gold=customer.is_gold,
        movie_id=movie.id,
        movie_title=movie.title,
        movie_daily_rental_rate=movie.daily_rental_rate,
        date_out=now,
    )
    db.session.add(rental)
    db.session.commit()

    logger.info("Rental %s: customer %s checked out movie %s", rental.id, customer_id, movie_id)
    return rental


def get_rental(rental_id: int) -> Rental:
    rental = db.session.get(Rental, rental_id)
    if not rental:
        raise RentalNotFoundError(f"Rental {rental_id} not found")
    return rental


def list_rentals(
    active: bool | None = None,
    customer_id: int | None = None,
    limit: int = 50
) -> list[Rental]:
    """
    List rentals, newest checkout first.

    active=True -> only unreturned, active=False -> only returned, None -> all.
    """
    query = db.session.query(Rental)

    if active is True:
        query = query.filter(Rental.date_returned.is_(None))
    elif active is False:
        query = query.filter(Rental.date_returned.isnot(None))

    if customer_id is not None:
        query = query.filter(Rental.customer_id == customer_id)

    return query.order_by(Rental.date_out.desc(), Rental.id.desc()).limit(limit).all()
