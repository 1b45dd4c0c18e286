# Overview: Flask CLI command groups for bootstrap, users, catalog and rentals.

# backend/vidly/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: python -m flask --app wsgi <group> <command> [options]
#
# System bootstrap:
# - python -m flask --app wsgi system init
#   Create all tables (idempotent).
# - python -m flask --app wsgi system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users and tokens:
# - python -m flask --app wsgi users create --username clerk --email clerk@vidly.local
# - python -m flask --app wsgi users list
# - python -m flask --app wsgi users issue-token clerk
#   Prints a bearer token for the user (shown once, only its hash is stored).
#
# Catalog:
# - python -m flask --app wsgi catalog seed
#   Demo genres, movies and customers (skipped if movies already exist).
#
# Rentals:
# - python -m flask --app wsgi rentals checkout --customer-id 1 --movie-id 2
# - python -m flask --app wsgi rentals return --customer-id 1 --movie-id 2
# - python -m flask --app wsgi rentals list --status active

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Customer, Genre, Movie, User
from .services import rental_service, return_service, session_service
from .services.rental_service import RentalError
from .services.return_service import ReturnError
from .time_utils import get_clock, to_utc_z


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm dropping all data')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)

    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and token issuing."""


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@with_appcontext
def create_user_cli(username, email):
    """Create a staff user."""
    existing = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if existing:
        click.echo(f"FAIL Username or email already exists (user ID: {existing.id})")
        raise SystemExit(1)

    user = User(username=username, email=email, is_active=True)
    db.session.add(user)
    db.session.commit()
    click.echo(f"PASS Created user {user.username} (ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found")
        return

    for user in users:
        status = "active" if user.is_active else "inactive"
        click.echo(f"{user.id:>4}  {user.username:<20} {user.email:<30} {status}")


@users_group.command('issue-token')
@click.argument('username')
@with_appcontext
def issue_token_cli(username):
    """Issue a bearer token for USERNAME and print it."""
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        click.echo(f"FAIL User {username} not found")
        raise SystemExit(1)

    try:
        session, token = session_service.create_session(user.id, user_agent="cli")
    except ValueError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Token for {username} (expires {to_utc_z(session.expires_at)}):")
    click.echo(token)


@click.group('catalog')
def catalog_group():
    """Catalog bootstrap commands."""


SEED_GENRES = ["Action", "Comedy", "Drama", "Thriller"]

SEED_MOVIES = [
    ("Die Hard", "Action", 5, 2.0),
    ("Terminator", "Action", 3, 2.0),
    ("Airplane", "Comedy", 4, 1.5),
    ("The Sixth Sense", "Thriller", 2, 2.5),
    ("Casablanca", "Drama", 1, 1.0),
]

SEED_CUSTOMERS = [
    ("Ada Lovelace", "555-0101", True),
    ("Alan Turing", "555-0102", False),
    ("Grace Hopper", "555-0103", False),
]


@catalog_group.command('seed')
@with_appcontext
def seed_catalog():
    """Load demo genres, movies and customers."""
    if db.session.query(Movie).count():
        click.echo("SKIP Movies already exist")
        return

    genres = {}
    for name in SEED_GENRES:
        genre = db.session.query(Genre).filter_by(name=name).first()
        if not genre:
            genre = Genre(name=name)
            db.session.add(genre)
        genres[name] = genre
    db.session.flush()

    for title, genre_name, stock, rate in SEED_MOVIES:
        db.session.add(Movie(
            title=title,
            genre_id=genres[genre_name].id,
            number_in_stock=stock,
            daily_rental_rate=rate,
        ))

    for name, phone, is_gold in SEED_CUSTOMERS:
        db.session.add(Customer(name=name, phone=phone, is_gold=is_gold))

    db.session.commit()
    click.echo(
        f"PASS Seeded {len(SEED_GENRES)} genres, {len(SEED_MOVIES)} movies, "
        f"{len(SEED_CUSTOMERS)} customers"
    )


@click.group('rentals')
def rentals_group():
    """Rental desk commands."""


@rentals_group.command('checkout')
@click.option('--customer-id', type=int, required=True)
@click.option('--movie-id', type=int, required=True)
@with_appcontext
def checkout_cli(customer_id, movie_id):
    """Check a movie out to a customer."""
    try:
        rental = rental_service.create_rental(customer_id, movie_id, now=get_clock()())
    except RentalError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Rental {rental.id}: {rental.movie_title} -> {rental.customer_name}")


@rentals_group.command('return')
@click.option('--customer-id', type=int, required=True)
@click.option('--movie-id', type=int, required=True)
@with_appcontext
def return_cli(customer_id, movie_id):
    """Return a rented movie and print the fee."""
    try:
        rental = return_service.process_return(customer_id, movie_id, now=get_clock()())
    except ReturnError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Rental {rental.id} returned, fee {rental.rental_fee:.2f}")


@rentals_group.command('list')
@click.option('--status', type=click.Choice(['active', 'returned', 'all']), default='all', show_default=True)
@click.option('--limit', type=int, default=20)
@with_appcontext
def list_rentals_cli(status, limit):
    """List recent rentals."""
    active = {"active": True, "returned": False}.get(status)
    rentals = rental_service.list_rentals(active=active, limit=limit)
    if not rentals:
        click.echo("No rentals found")
        return

    for r in rentals:
        returned = to_utc_z(r.date_returned) if r.date_returned else "-"
        fee = f"{r.rental_fee:.2f}" if r.rental_fee is not None else "-"
        click.echo(
            f"{r.id:>4}  {r.customer_name:<20} {r.movie_title:<25} "
            f"out {to_utc_z(r.date_out)}  back {returned}  fee {fee}"
        )


def register_commands(app):
    """Register CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(rentals_group)
