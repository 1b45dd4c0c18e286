"""
Pytest fixtures for Vidly backend tests.

Every test gets its own app and in-memory database, with the clock pinned
to NOW so dates and fees are deterministic.
"""

from datetime import datetime, timedelta

import pytest
from vidly import create_app
from vidly.extensions import db
from vidly.models import Customer, Genre, Movie, Rental, User
from vidly.services import session_service


NOW = datetime(2026, 1, 15, 12, 0, 0)


@pytest.fixture(scope='function')
def app():
    """Create an isolated application for one test."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'CLOCK': lambda: NOW,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    return db.session


@pytest.fixture(scope='function')
def user(db_session):
    user = User(username="clerk", email="clerk@vidly.test", is_active=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def token(user):
    """Plaintext bearer token for `user`."""
    _, plaintext = session_service.create_session(user.id)
    return plaintext


@pytest.fixture(scope='function')
def headers(token):
    return auth_headers(token)


@pytest.fixture(scope='function')
def genre(db_session):
    genre = Genre(name="12345")
    db_session.add(genre)
    db_session.commit()
    return genre


@pytest.fixture(scope='function')
def movie(db_session, genre):
    movie = Movie(title="12345", genre_id=genre.id, number_in_stock=1, daily_rental_rate=2)
    db_session.add(movie)
    db_session.commit()
    return movie


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(name="12345", phone="12345", is_gold=False)
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def rental(db_session, customer, movie):
    """Active rental of `movie` by `customer`, checked out at NOW."""
    rental = make_rental(db_session, customer, movie, date_out=NOW)
    return rental


def make_rental(db_session, customer, movie, date_out, date_returned=None, rental_fee=None) -> Rental:
    """Insert a rental row directly (bypasses checkout, stock untouched)."""
    rental = Rental(
        customer_id=customer.id,
        customer_name=customer.name,
        customer_phone=customer.phone,
        customer_is_gold=customer.is_gold,
        movie_id=movie.id,
        movie_title=movie.title,
        movie_daily_rental_rate=movie.daily_rental_rate,
        date_out=date_out,
        date_returned=date_returned,
        rental_fee=rental_fee,
    )
    db_session.add(rental)
    db_session.commit()
    return rental


def reload(model, pk):
    """Fetch a row fresh from the database, ignoring the identity map."""
    db.session.expire_all()
    return db.session.get(model, pk)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
