from .catalog import Genre, Movie
from .customers import Customer
from .rentals import Rental
from .auth import User, SessionToken

__all__ = [
    'Genre', 'Movie',
    'Customer',
    'Rental',
    'User', 'SessionToken',
]
