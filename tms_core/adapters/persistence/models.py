"""SQLAlchemy ORM models: maps to PostgreSQL tables.

``orders``, ``drivers``, ``vehicles`` and ``trailers`` belong to other parts of
the TMS; the assignment core only reads them.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tms_core.adapters.persistence.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    order_number: Mapped[str] = mapped_column(String(50), nullable=False)
    loading_date: Mapped[date] = mapped_column(Date, nullable=False)
    unloading_date: Mapped[date] = mapped_column(Date, nullable=False)
    price_net: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="PLN")

    assignments: Mapped[list["OrderAssignmentModel"]] = relationship(back_populates="order")

    __table_args__ = (
        Index("idx_orders_tenant", "tenant_id"),
        Index("uq_orders_tenant_number", "tenant_id", "order_number", unique=True),
    )


class DriverModel(Base):
    __tablename__ = "drivers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("idx_drivers_tenant", "tenant_id"),)


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    registration_number: Mapped[str] = mapped_column(String(20), nullable=False)
    brand: Mapped[str | None] = mapped_column(String(50), nullable=True)
    model: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("idx_vehicles_tenant", "tenant_id"),)


class TrailerModel(Base):
    __tablename__ = "trailers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    registration_number: Mapped[str] = mapped_column(String(20), nullable=False)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("idx_trailers_tenant", "tenant_id"),)


class OrderAssignmentModel(Base):
    __tablename__ = "order_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    driver_id: Mapped[int] = mapped_column(Integer, ForeignKey("drivers.id"), nullable=False)
    vehicle_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("vehicles.id"), nullable=True
    )
    trailer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("trailers.id"), nullable=True
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    revenue_share: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    allocated_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    allocated_amount_overridden: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    distance_km: Mapped[float | None] = mapped_column(Float, nullable=True)
    reason: Mapped[str] = mapped_column(String(30), nullable=False, default="INITIAL")
    reason_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    order: Mapped["OrderModel"] = relationship(back_populates="assignments")

    __table_args__ = (
        Index("idx_assignments_tenant_order", "tenant_id", "order_id"),
        Index("idx_assignments_driver", "driver_id"),
        CheckConstraint(
            "revenue_share > 0 AND revenue_share <= 1", name="ck_assignments_share_range"
        ),
        CheckConstraint("end_date IS NULL OR end_date >= start_date", name="ck_assignments_dates"),
        # At most one open primary assignment per order
        Index(
            "uq_assignments_open_primary",
            "order_id",
            unique=True,
            postgresql_where=text("is_primary AND is_active AND end_date IS NULL"),
        ),
    )


class OrderAssignmentVersionModel(Base):
    __tablename__ = "order_assignment_versions"

    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class AssignmentAuditLogModel(Base):
    __tablename__ = "assignment_audit_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    changes: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_audit_tenant_entity", "tenant_id", "entity_id"),
    )
