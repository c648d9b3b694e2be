"""CSV loader: reads and normalizes order / fleet CSV exports."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from tms_core.adapters.csv_loader.normalizer import (
    clean_string,
    normalize_column_name,
    parse_bool,
    parse_date,
    parse_decimal,
    parse_int,
)

logger = logging.getLogger(__name__)


def _sniff_dialect(sample: str) -> type[csv.Dialect]:
    """Detect the delimiter (comma/semicolon/tab); spreadsheet exports often use ';'."""
    if not sample:
        return csv.excel

    first_line = sample.splitlines()[0]
    counts = {d: first_line.count(d) for d in (";", ",", "\t")}
    best_delim = max(counts, key=counts.get)

    if counts[best_delim] > 0:
        class DynamicDialect(csv.excel):
            delimiter = best_delim
        return DynamicDialect
    return csv.excel


def _read_csv(file_path: Path, encoding: str = "utf-8-sig") -> list[dict[str, str | None]]:
    """Read a CSV file with BOM handling and column normalization.

    Returns:
        List of dicts keyed by normalized column names.
    """
    with open(file_path, encoding=encoding, newline="") as f:
        sample = f.read(4096)
        f.seek(0)
        reader = csv.DictReader(f, dialect=_sniff_dialect(sample))
        if reader.fieldnames is None:
            raise ValueError(f"CSV file {file_path} has no header row")

        col_map = {col: normalize_column_name(col) for col in reader.fieldnames}
        rows = [
            {col_map[k]: clean_string(v) for k, v in raw_row.items() if k is not None}
            for raw_row in reader
        ]

    logger.info("Loaded %d rows from %s (columns: %s)", len(rows), file_path.name, list(col_map.values()))
    return rows


def _pick(row: dict, *names: str) -> str | None:
    for name in names:
        value = row.get(name)
        if value:
            return value
    return None


def load_orders(file_path: Path) -> list[dict]:
    """Load orders.

    Expected columns (after normalization):
        id, tenant_id, order_number (numer_zlecenia), loading_date (data_zaladunku),
        unloading_date (data_rozladunku), price_net (cena_netto), currency (waluta)
    """
    orders = []
    for row in _read_csv(file_path):
        order = {
            "id": parse_int(row.get("id")),
            "tenant_id": parse_int(_pick(row, "tenant_id", "tenant")),
            "order_number": _pick(row, "order_number", "numer_zlecenia", "number"),
            "loading_date": parse_date(_pick(row, "loading_date", "data_załadunku", "data_zaladunku")),
            "unloading_date": parse_date(_pick(row, "unloading_date", "data_rozładunku", "data_rozladunku")),
            "price_net": parse_decimal(_pick(row, "price_net", "cena_netto", "price")),
            "currency": (_pick(row, "currency", "waluta") or "PLN").upper(),
        }
        if not order["order_number"] or order["tenant_id"] is None:
            logger.warning("Skipping order row without number or tenant: %s", row)
            continue
        if not order["loading_date"] or not order["unloading_date"]:
            logger.warning("Skipping order %s: missing loading/unloading date", order["order_number"])
            continue
        if order["loading_date"] > order["unloading_date"]:
            logger.warning("Skipping order %s: loading date after unloading date", order["order_number"])
            continue
        orders.append(order)
    logger.info("Parsed %d orders", len(orders))
    return orders


def load_drivers(file_path: Path) -> list[dict]:
    """Load drivers: id, tenant_id, first_name (imie), last_name (nazwisko), phone, is_active."""
    drivers = []
    for row in _read_csv(file_path):
        drivers.append({
            "id": parse_int(row.get("id")),
            "tenant_id": parse_int(_pick(row, "tenant_id", "tenant")),
            "first_name": _pick(row, "first_name", "imię", "imie") or "",
            "last_name": _pick(row, "last_name", "nazwisko") or "",
            "phone": _pick(row, "phone", "telefon"),
            "is_active": parse_bool(_pick(row, "is_active", "aktywny")),
        })
    logger.info("Parsed %d drivers", len(drivers))
    return drivers


def load_vehicles(file_path: Path) -> list[dict]:
    """Load vehicles: id, tenant_id, registration_number, brand, model, is_active."""
    vehicles = []
    for row in _read_csv(file_path):
        vehicles.append({
            "id": parse_int(row.get("id")),
            "tenant_id": parse_int(_pick(row, "tenant_id", "tenant")),
            "registration_number": _pick(row, "registration_number", "nr_rejestracyjny") or "",
            "brand": _pick(row, "brand", "marka"),
            "model": row.get("model"),
            "is_active": parse_bool(_pick(row, "is_active", "aktywny")),
        })
    logger.info("Parsed %d vehicles", len(vehicles))
    return vehicles


def load_trailers(file_path: Path) -> list[dict]:
    """Load trailers: id, tenant_id, registration_number, type, is_active."""
    trailers = []
    for row in _read_csv(file_path):
        trailers.append({
            "id": parse_int(row.get("id")),
            "tenant_id": parse_int(_pick(row, "tenant_id", "tenant")),
            "registration_number": _pick(row, "registration_number", "nr_rejestracyjny") or "",
            "type": _pick(row, "type", "typ"),
            "is_active": parse_bool(_pick(row, "is_active", "aktywny")),
        })
    logger.info("Parsed %d trailers", len(trailers))
    return trailers
