"""
Return Processing Service

WHY: Closing a rental has two effects that must agree: the rental is
billed and marked returned, and the movie goes back into stock. Doing
one without the other either loses a copy or restocks a rental that
was never closed.

DESIGN PRINCIPLES:
- Fee uses the daily rate captured on the rental at checkout, never the
  movie's current rate
- Rentals are billed per started day, minimum one day
- Marking returned is a conditional UPDATE (date_returned IS NULL), so
  two concurrent returns of the same rental cannot both succeed
- Mark-returned and restock run in one transaction; any failure rolls
  back both

LIFECYCLE:
Active (date_returned NULL) -> Returned (date_returned, rental_fee set)
"""

import logging
import math
from datetime import datetime

from sqlalchemy import update

from ..extensions import db
from ..models import Movie, Rental
from vidly.time_utils import as_utc_naive


logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class ReturnError(Exception):
    """Raised for return operation errors."""
    pass


class RentalNotFoundError(ReturnError):
    """No rental exists for the customer/movie pair."""


class RentalAlreadyProcessedError(ReturnError):
    """The rental was already returned."""


class MovieNotFoundError(ReturnError):
    """The rented movie no longer exists, so it cannot be restocked."""


# =============================================================================
# FEE CALCULATION
# =============================================================================

def rental_days(date_out: datetime, now: datetime) -> int:
    """
    Number of billable days between checkout and return.

    Every started day counts; a return within the first day is one day.
    Elapsed time is counted in whole seconds.
    """
    elapsed_seconds = int((now - as_utc_naive(date_out)).total_seconds())
    return max(1, math.ceil(elapsed_seconds / SECONDS_PER_DAY))


def calculate_rental_fee(date_out: datetime, daily_rental_rate: float, now: datetime) -> float:
    """
    Fee owed for a rental returned at `now`.

    Example: checked out exactly 7 days ago at 2.00/day -> 14.00
    """
    return round(rental_days(date_out, now) * float(daily_rental_rate), 2)


# =============================================================================
# LOOKUP
# =============================================================================

def find_rental(customer_id: int, movie_id: int) -> Rental | None:
    """
    Find the rental of `movie_id` by `customer_id`.

    A customer may have rented the same movie more than once; the active
    rental wins, then the most recent checkout.
    """
    return (
        db.session.query(Rental)
        .filter(Rental.customer_id == customer_id, Rental.movie_id == movie_id)
        .order_by(Rental.date_returned.isnot(None), Rental.date_out.desc(), Rental.id.desc())
        .first()
    )


# =============================================================================
# RETURN PROCESSING
# =============================================================================

def process_return(customer_id: int, movie_id: int, now: datetime) -> Rental:
    """
    Return a rented movie: close the rental, bill it, restock the movie.

    Args:
        customer_id: Customer returning the movie
        movie_id: Movie being returned
        now: Return time (UTC-naive); becomes date_returned

    Returns:
        The closed Rental (date_returned and rental_fee populated)

    Raises:
        RentalNotFoundError: No rental for this customer/movie
        RentalAlreadyProcessedError: Rental already returned (including
            losing a race against a concurrent return)
        MovieNotFoundError: Movie row missing; nothing is written
    """
    rental = find_rental(customer_id, movie_id)
    if rental is None:
        raise RentalNotFoundError(
            f"No rental found for customer {customer_id} and movie {movie_id}"
        )

    if rental.date_returned is not None:
        raise RentalAlreadyProcessedError(f"Rental {rental.id} already processed")

    fee = calculate_rental_fee(rental.date_out, rental.movie_daily_rental_rate, now)

    try:
        closed = db.session.execute(
            update(Rental)
            .where(Rental.id == rental.id, Rental.date_returned.is_(None))
            .values(date_returned=now, rental_fee=fee)
            .execution_options(synchronize_session=False)
        )
        if closed.rowcount != 1:
            raise RentalAlreadyProcessedError(f"Rental {rental.id} already processed")

        restocked = db.session.execute(
            update(Movie)
            .where(Movie.id == rental.movie_id)
            .values(number_in_stock=Movie.number_in_stock + 1)
            .execution_options(synchronize_session=False)
        )
        if restocked.rowcount != 1:
            raise MovieNotFoundError(f"Movie {rental.movie_id} not found")

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    # Commit expired the instance; reload the written values
    db.session.refresh(rental)

    logger.info(
        "Rental %s returned: customer %s, movie %s, %d day(s), fee %.2f",
        rental.id, customer_id, movie_id, rental_days(rental.date_out, now), fee,
    )
    return rental
