"""Seed database from CSV files.

Usage:
    python -m tms_core.tools.seed_db
    python -m tms_core.tools.seed_db --data-dir data
    python -m tms_core.tools.seed_db --drop  # drop existing data first
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sqlalchemy import delete, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from tms_core.adapters.csv_loader.loader import (
    load_drivers,
    load_orders,
    load_trailers,
    load_vehicles,
)
from tms_core.adapters.persistence.database import async_session_factory
from tms_core.adapters.persistence.models import (
    AssignmentAuditLogModel,
    DriverModel,
    OrderAssignmentModel,
    OrderAssignmentVersionModel,
    OrderModel,
    TrailerModel,
    VehicleModel,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)

_SEQUENCE_TABLES = ("orders", "drivers", "vehicles", "trailers")


async def _drop_data(session: AsyncSession) -> None:
    """Delete all data in correct order (respecting FK constraints)."""
    for model in [
        AssignmentAuditLogModel,
        OrderAssignmentModel,
        OrderAssignmentVersionModel,
        OrderModel,
        TrailerModel,
        VehicleModel,
        DriverModel,
    ]:
        await session.execute(delete(model))
    await session.commit()
    logger.info("Dropped all existing data")


async def _exists(session: AsyncSession, model, record: dict, *natural_key: str) -> bool:
    """True when a row with the record's id, or its tenant-scoped natural key, is present."""
    if record.get("id") is not None:
        found = await session.get(model, record["id"])
        if found is not None:
            return True
    if natural_key:
        conditions = [model.tenant_id == record["tenant_id"]]
        conditions += [getattr(model, col) == record[col] for col in natural_key]
        result = await session.execute(select(model.id).where(*conditions))
        return result.first() is not None
    return False


async def _seed_rows(
    session: AsyncSession, model, records: list[dict], label: str, *natural_key: str
) -> int:
    added = 0
    for record in records:
        if record["tenant_id"] is None:
            logger.warning("%s row without tenant, skipping: %s", label, record)
            continue
        if await _exists(session, model, record, *natural_key):
            logger.debug("%s %s already exists, skipping", label, record.get("id"))
            continue
        values = {k: v for k, v in record.items() if not (k == "id" and v is None)}
        session.add(model(**values))
        added += 1
    await session.commit()
    return added


async def _sync_sequences(session: AsyncSession) -> None:
    """Move serial sequences past explicitly inserted ids."""
    for table in _SEQUENCE_TABLES:
        await session.execute(
            text(
                f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
                f"COALESCE((SELECT MAX(id) FROM {table}), 1))"
            )
        )
    await session.commit()


async def seed(data_dir: Path, drop: bool = False) -> dict[str, int]:
    """Main seed function. Returns counts of seeded records."""
    counts = {"drivers": 0, "vehicles": 0, "trailers": 0, "orders": 0}

    order_csv = _find_csv(data_dir, ["orders", "zlecenia"])
    driver_csv = _find_csv(data_dir, ["drivers", "kierowcy"])
    vehicle_csv = _find_csv(data_dir, ["vehicles", "pojazdy"])
    trailer_csv = _find_csv(data_dir, ["trailers", "naczepy"])

    if not order_csv:
        raise FileNotFoundError(f"No orders CSV found in {data_dir}. Expected orders.csv")
    if not driver_csv:
        raise FileNotFoundError(f"No drivers CSV found in {data_dir}. Expected drivers.csv")

    async with async_session_factory() as session:
        if drop:
            await _drop_data(session)

        # 1. Fleet
        counts["drivers"] = await _seed_rows(
            session, DriverModel, load_drivers(driver_csv), "Driver"
        )
        if vehicle_csv:
            counts["vehicles"] = await _seed_rows(
                session, VehicleModel, load_vehicles(vehicle_csv), "Vehicle", "registration_number"
            )
        else:
            logger.info("No vehicles CSV found: skipping vehicle import")
        if trailer_csv:
            counts["trailers"] = await _seed_rows(
                session, TrailerModel, load_trailers(trailer_csv), "Trailer", "registration_number"
            )
        else:
            logger.info("No trailers CSV found: skipping trailer import")

        # 2. Orders
        counts["orders"] = await _seed_rows(
            session, OrderModel, load_orders(order_csv), "Order", "order_number"
        )

        await _sync_sequences(session)

    logger.info(
        "Seed complete: %d orders, %d drivers, %d vehicles, %d trailers",
        counts["orders"], counts["drivers"], counts["vehicles"], counts["trailers"],
    )
    return counts


def _find_csv(data_dir: Path, name_hints: list[str]) -> Path | None:
    """Find a CSV file matching any of the name hints."""
    for f in data_dir.glob("*.csv"):
        fname_lower = f.stem.lower()
        for hint in name_hints:
            if hint in fname_lower:
                logger.info("Found CSV: %s (matched hint '%s')", f.name, hint)
                return f
    return None


async def _verify_data() -> None:
    """Print sanity checks after seeding."""
    async with async_session_factory() as session:
        totals = {}
        for label, model in [
            ("Orders", OrderModel),
            ("Drivers", DriverModel),
            ("Vehicles", VehicleModel),
            ("Trailers", TrailerModel),
            ("Assignments", OrderAssignmentModel),
        ]:
            totals[label] = (await session.execute(select(func.count()).select_from(model))).scalar_one()

        tenants = (
            await session.execute(
                select(OrderModel.tenant_id, func.count()).group_by(OrderModel.tenant_id)
            )
        ).all()
        unpriced = (
            await session.execute(
                select(func.count()).select_from(OrderModel).where(OrderModel.price_net.is_(None))
            )
        ).scalar_one()

        print(f"\n{'='*50}")
        print("SEED VERIFICATION")
        print(f"{'='*50}")
        for label, total in totals.items():
            print(f"{label + ':':<13}{total}")
        print(f"Orders without price: {unpriced}/{totals['Orders']}")
        print(f"Orders per tenant: {dict(tenants)}")
        print(f"{'='*50}\n")


def main():
    parser = argparse.ArgumentParser(description="Seed TMS database from CSV files")
    parser.add_argument(
        "--data-dir", type=str, default="data",
        help="Directory containing CSV files (default: data)",
    )
    parser.add_argument(
        "--drop", action="store_true",
        help="Drop existing data before seeding",
    )
    parser.add_argument(
        "--verify-only", action="store_true",
        help="Only run verification, don't seed",
    )
    args = parser.parse_args()

    data_dir = Path(args.data_dir)
    if not args.verify_only and not data_dir.exists():
        logger.error("Data directory not found: %s", data_dir)
        sys.exit(1)

    if args.verify_only:
        asyncio.run(_verify_data())
    else:
        async def run_all():
            await seed(data_dir, drop=args.drop)
            await _verify_data()
        asyncio.run(run_all())


if __name__ == "__main__":
    main()
