"""initial schema: locations, customers, addresses, orders, audit

Revision ID: 4a1f0c2b9d10
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "4a1f0c2b9d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    if "states" not in existing_tables:
        op.create_table(
            "states",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.Text(), nullable=False),
        )

    if "cities" not in existing_tables:
        op.create_table(
            "cities",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.Text(), nullable=False),
            sa.Column("state_id", sa.Integer(), sa.ForeignKey("states.id", ondelete="CASCADE"), nullable=True),
        )
        op.create_index("idx_cities_state_id", "cities", ["state_id"])

    if "customers" not in existing_tables:
        op.create_table(
            "customers",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("email", sa.String(length=320), nullable=False, unique=True),
            sa.Column("tax_id", sa.String(length=18), nullable=True),
            sa.Column("customer_type_code", sa.Integer(), nullable=True),
            sa.Column("password_hash", sa.String(length=255), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_customers_name", "customers", ["name"])

    if "customer_phones" not in existing_tables:
        op.create_table(
            "customer_phones",
            sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True),
            sa.Column("position", sa.Integer(), primary_key=True),
            sa.Column("number", sa.String(length=32), nullable=False),
        )

    if "customer_profiles" not in existing_tables:
        op.create_table(
            "customer_profiles",
            sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True),
            sa.Column("profile_code", sa.Integer(), primary_key=True),
        )

    if "addresses" not in existing_tables:
        op.create_table(
            "addresses",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("street", sa.Text(), nullable=False),
            sa.Column("number", sa.String(length=32), nullable=False),
            sa.Column("complement", sa.Text(), nullable=True),
            sa.Column("district", sa.Text(), nullable=True),
            sa.Column("postal_code", sa.String(length=16), nullable=False),
            sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
            sa.Column("city_id", sa.Integer(), sa.ForeignKey("cities.id"), nullable=False),
        )
        op.create_index("idx_addresses_customer_id", "addresses", ["customer_id"])

    if "orders" not in existing_tables:
        op.create_table(
            "orders",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
            sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False),
        )
        op.create_index("idx_orders_customer_id", "orders", ["customer_id"])

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
            sa.Column("request_id", sa.String(length=64), nullable=True),
            sa.Column("actor_customer_id", sa.Integer(), nullable=True),
            sa.Column("actor_email", sa.String(length=320), nullable=True),
            sa.Column("action", sa.String(length=128), nullable=False),
            sa.Column("entity_type", sa.String(length=128), nullable=True),
            sa.Column("entity_id", sa.String(length=128), nullable=True),
            sa.Column("reason", sa.String(length=512), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
            sa.Column("client_ip", sa.String(length=64), nullable=True),
        )


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_index("idx_orders_customer_id", table_name="orders")
    op.drop_table("orders")
    op.drop_index("idx_addresses_customer_id", table_name="addresses")
    op.drop_table("addresses")
    op.drop_table("customer_profiles")
    op.drop_table("customer_phones")
    op.drop_index("idx_customers_name", table_name="customers")
    op.drop_table("customers")
    op.drop_index("idx_cities_state_id", table_name="cities")
    op.drop_table("cities")
    op.drop_table("states")
