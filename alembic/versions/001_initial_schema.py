"""Initial schema: orders, fleet and order assignments.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Orders
    op.create_table(
        "orders",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.Integer, nullable=False),
        sa.Column("order_number", sa.String(50), nullable=False),
        sa.Column("loading_date", sa.Date, nullable=False),
        sa.Column("unloading_date", sa.Date, nullable=False),
        sa.Column("price_net", sa.Numeric(12, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="PLN"),
    )
    op.create_index("idx_orders_tenant", "orders", ["tenant_id"])
    op.create_index(
        "uq_orders_tenant_number", "orders", ["tenant_id", "order_number"], unique=True
    )

    # Fleet
    op.create_table(
        "drivers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.Integer, nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
    )
    op.create_index("idx_drivers_tenant", "drivers", ["tenant_id"])

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.Integer, nullable=False),
        sa.Column("registration_number", sa.String(20), nullable=False),
        sa.Column("brand", sa.String(50), nullable=True),
        sa.Column("model", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
    )
    op.create_index("idx_vehicles_tenant", "vehicles", ["tenant_id"])

    op.create_table(
        "trailers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.Integer, nullable=False),
        sa.Column("registration_number", sa.String(20), nullable=False),
        sa.Column("type", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
    )
    op.create_index("idx_trailers_tenant", "trailers", ["tenant_id"])

    # Order assignments
    op.create_table(
        "order_assignments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.Integer, nullable=False),
        sa.Column(
            "order_id",
            sa.Integer,
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("driver_id", sa.Integer, sa.ForeignKey("drivers.id"), nullable=False),
        sa.Column("vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=True),
        sa.Column("trailer_id", sa.Integer, sa.ForeignKey("trailers.id"), nullable=True),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("revenue_share", sa.Float, nullable=False, server_default="1.0"),
        sa.Column("allocated_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column(
            "allocated_amount_overridden", sa.Boolean, nullable=False, server_default="false"
        ),
        sa.Column("distance_km", sa.Float, nullable=True),
        sa.Column("reason", sa.String(30), nullable=False, server_default="INITIAL"),
        sa.Column("reason_note", sa.Text, nullable=True),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("created_by", sa.Integer, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "revenue_share > 0 AND revenue_share <= 1", name="ck_assignments_share_range"
        ),
        sa.CheckConstraint(
            "end_date IS NULL OR end_date >= start_date", name="ck_assignments_dates"
        ),
    )
    op.create_index(
        "idx_assignments_tenant_order", "order_assignments", ["tenant_id", "order_id"]
    )
    op.create_index("idx_assignments_driver", "order_assignments", ["driver_id"])
    op.create_index(
        "uq_assignments_open_primary",
        "order_assignments",
        ["order_id"],
        unique=True,
        postgresql_where=sa.text("is_primary AND is_active AND end_date IS NULL"),
    )

    # Per-order version counter for optimistic concurrency
    op.create_table(
        "order_assignment_versions",
        sa.Column(
            "order_id",
            sa.Integer,
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("version", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # Audit log
    op.create_table(
        "assignment_audit_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.Integer, nullable=False),
        sa.Column("user_id", sa.Integer, nullable=True),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.Integer, nullable=False),
        sa.Column("changes", JSONB, nullable=True),
        sa.Column("metadata", JSONB, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_audit_tenant_entity", "assignment_audit_log", ["tenant_id", "entity_id"]
    )


def downgrade() -> None:
    op.drop_table("assignment_audit_log")
    op.drop_table("order_assignment_versions")
    op.drop_index("uq_assignments_open_primary", table_name="order_assignments")
    op.drop_table("order_assignments")
    op.drop_table("trailers")
    op.drop_table("vehicles")
    op.drop_table("drivers")
    op.drop_table("orders")
