"""Initial MuaBook schema."""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20250601001"
down_revision = None
branch_labels = None
depends_on = None

user_role = postgresql.ENUM("customer", "provider", name="user_role", create_type=False)
booking_status = postgresql.ENUM(
    "pending",
    "confirmed",
    "cancelled",
    "completed",
    "no_show",
    name="booking_status",
    create_type=False,
)


def upgrade() -> None:
    bind = op.get_bind()
    user_role.create(bind, checkfirst=True)
    booking_status.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("phone_number", sa.String(length=32), nullable=True),
        sa.Column("profile_picture_url", sa.String(length=1024), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "mua_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("experience_years", sa.Integer(), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=False, server_default=sa.text("''")),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("average_rating", sa.Numeric(3, 2), nullable=True),
        sa.Column("total_reviews", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.PrimaryKeyConstraint("id", name="pk_mua_profiles"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_mua_profiles_user_id_users",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", name="uq_mua_profiles_user_id"),
    )

    op.create_table(
        "mua_specializations",
        sa.Column("profile_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tag", sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint("profile_id", "tag", name="pk_mua_specializations"),
        sa.ForeignKeyConstraint(
            ["profile_id"],
            ["mua_profiles.id"],
            name="fk_mua_specializations_profile_id_mua_profiles",
            ondelete="CASCADE",
        ),
    )

    op.create_table(
        "availability_slots",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("mua_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=True),
        sa.Column("specific_date", sa.DateTime(), nullable=True),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("recurring", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_availability_slots"),
        sa.ForeignKeyConstraint(
            ["mua_id"],
            ["mua_profiles.id"],
            name="fk_availability_slots_mua_id_mua_profiles",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "end_time > start_time", name="ck_availability_slots_time_order"
        ),
        sa.CheckConstraint(
            "(day_of_week IS NULL) <> (specific_date IS NULL)",
            name="ck_availability_slots_weekday_xor_date",
        ),
        sa.CheckConstraint(
            "day_of_week IS NULL OR (day_of_week >= 0 AND day_of_week <= 6)",
            name="ck_availability_slots_weekday_range",
        ),
        sa.CheckConstraint(
            "(recurring AND day_of_week IS NOT NULL) OR (NOT recurring AND day_of_week IS NULL)",
            name="ck_availability_slots_recurring_matches_weekday",
        ),
    )
    op.create_index(
        "ix_availability_slots_mua_id", "availability_slots", ["mua_id"], unique=False
    )

    op.create_table(
        "bookings",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("mua_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("service_type", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_date", sa.DateTime(), nullable=False),
        sa.Column("event_location", sa.String(length=255), nullable=False),
        sa.Column("duration_hours", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", booking_status, nullable=False, server_default="pending"),
        sa.Column("deposit_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("deposit_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "final_payment_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.PrimaryKeyConstraint("id", name="pk_bookings"),
        sa.ForeignKeyConstraint(
            ["customer_id"],
            ["users.id"],
            name="fk_bookings_customer_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["mua_id"],
            ["mua_profiles.id"],
            name="fk_bookings_mua_id_mua_profiles",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint("duration_hours > 0", name="ck_bookings_positive_duration"),
        sa.CheckConstraint("price >= 0", name="ck_bookings_non_negative_price"),
    )
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"], unique=False)
    op.create_index("ix_bookings_mua_id", "bookings", ["mua_id"], unique=False)
    op.create_index("ix_bookings_event_date", "bookings", ["event_date"], unique=False)

    op.create_table(
        "portfolio_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("mua_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=1024), nullable=False),
        sa.Column("service_type", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_portfolio_items"),
        sa.ForeignKeyConstraint(
            ["mua_id"],
            ["mua_profiles.id"],
            name="fk_portfolio_items_mua_id_mua_profiles",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_portfolio_items_mua_id", "portfolio_items", ["mua_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_portfolio_items_mua_id", table_name="portfolio_items")
    op.drop_table("portfolio_items")
    op.drop_index("ix_bookings_event_date", table_name="bookings")
    op.drop_index("ix_bookings_mua_id", table_name="bookings")
    op.drop_index("ix_bookings_customer_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_availability_slots_mua_id", table_name="availability_slots")
    op.drop_table("availability_slots")
    op.drop_table("mua_specializations")
    op.drop_table("mua_profiles")
    op.drop_table("users")

    bind = op.get_bind()
    booking_status.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)
