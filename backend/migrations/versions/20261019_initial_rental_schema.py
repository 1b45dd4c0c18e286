"""initial rental store schema

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates:
- genres, movies: catalog with live stock count and daily rate
- customers
- rentals: customer/movie snapshots, date_out, date_returned, rental_fee
- users, session_tokens: bearer credentials for protected routes
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "genres",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_genres"),
        sa.UniqueConstraint("name", name="uq_genres_name"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "movies",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("genre_id", sa.Integer(), nullable=False),
        sa.Column("number_in_stock", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("daily_rental_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.CheckConstraint("number_in_stock >= 0", name="ck_movies_number_in_stock_non_negative"),
        sa.CheckConstraint("daily_rental_rate > 0", name="ck_movies_daily_rental_rate_positive"),
        sa.ForeignKeyConstraint(["genre_id"], ["genres.id"], name="fk_movies_genre_id_genres"),
        sa.PrimaryKeyConstraint("id", name="pk_movies"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("movies", schema=None) as batch_op:
        batch_op.create_index("ix_movies_genre_id", ["genre_id"], unique=False)

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("is_gold", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_customers"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.create_index("ix_customers_phone", ["phone"], unique=False)

    # Snapshot columns are deliberately not foreign keys
    op.create_table(
        "rentals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(128), nullable=False),
        sa.Column("customer_phone", sa.String(32), nullable=False),
        sa.Column("customer_is_gold", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("movie_id", sa.Integer(), nullable=False),
        sa.Column("movie_title", sa.String(255), nullable=False),
        sa.Column("movie_daily_rental_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("date_out", sa.DateTime(timezone=True), nullable=False),
        sa.Column("date_returned", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rental_fee", sa.Numeric(10, 2), nullable=True),
        sa.CheckConstraint(
            "(date_returned IS NULL AND rental_fee IS NULL) OR "
            "(date_returned IS NOT NULL AND rental_fee IS NOT NULL)",
            name="ck_rentals_return_fields_together",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_rentals"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("rentals", schema=None) as batch_op:
        batch_op.create_index("ix_rentals_customer_movie", ["customer_id", "movie_id"], unique=False)
        batch_op.create_index("ix_rentals_date_returned", ["date_returned"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index("ix_users_username", ["username"], unique=False)

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(255), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_session_tokens_user_id_users"),
        sa.PrimaryKeyConstraint("id", name="pk_session_tokens"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("session_tokens", schema=None) as batch_op:
        batch_op.create_index("ix_session_tokens_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_session_tokens_token_hash", ["token_hash"], unique=True)
        batch_op.create_index("ix_session_tokens_expires_at", ["expires_at"], unique=False)
        batch_op.create_index("ix_session_tokens_is_revoked", ["is_revoked"], unique=False)
        batch_op.create_index("ix_session_tokens_user_active", ["user_id", "is_revoked"], unique=False)


def downgrade():
    op.drop_table("session_tokens")
    op.drop_table("users")
    op.drop_table("rentals")
    op.drop_table("customers")
    op.drop_table("movies")
    op.drop_table("genres")
