"""Tests for CSV loader functions."""

import csv
import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

from tms_core.adapters.csv_loader.loader import (
    load_drivers,
    load_orders,
    load_trailers,
    load_vehicles,
)
from tms_core.tools.seed_db import _find_csv


def _write_csv(rows: list[dict], path: Path, encoding: str = "utf-8-sig") -> None:
    """Helper to write a test CSV file."""
    if not rows:
        return
    with open(path, "w", encoding=encoding, newline="") as f:
        writer = csv.DictWriter(f, fieldnames=rows[0].keys())
        writer.writeheader()
        writer.writerows(rows)


def test_load_orders_basic():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "orders.csv"
        _write_csv([
            {
                "id": "100", "tenant_id": "1", "Order number": "ZL/2026/001",
                "Loading date": "2026-01-05", "Unloading date": "2026-01-06",
                "Price net": "2000.00", "Currency": "pln",
            },
            {
                "id": "101", "tenant_id": "1", "Order number": "ZL/2026/002",
                "Loading date": "2026-02-01", "Unloading date": "2026-02-03",
                "Price net": "", "Currency": "",
            },
        ], csv_path)

        orders = load_orders(csv_path)
        assert len(orders) == 2
        assert orders[0]["id"] == 100
        assert orders[0]["order_number"] == "ZL/2026/001"
        assert orders[0]["loading_date"] == date(2026, 1, 5)
        assert orders[0]["price_net"] == Decimal("2000.00")
        assert orders[0]["currency"] == "PLN"
        assert orders[1]["price_net"] is None
        assert orders[1]["currency"] == "PLN"


def test_load_orders_polish_headers_semicolon():
    """Spreadsheet export: semicolons, decimal comma, dd.mm.yyyy dates."""
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "zlecenia.csv"
        with open(csv_path, "w", encoding="utf-8-sig", newline="") as f:
            f.write("Tenant;Numer zlecenia;Data załadunku;Data rozładunku;Cena netto;Waluta\n")
            f.write("1;ZL/7/2026;05.01.2026;06.01.2026;1 250,50;EUR\n")

        orders = load_orders(csv_path)
        assert orders[0]["order_number"] == "ZL/7/2026"
        assert orders[0]["id"] is None
        assert orders[0]["unloading_date"] == date(2026, 1, 6)
        assert orders[0]["price_net"] == Decimal("1250.50")
        assert orders[0]["currency"] == "EUR"


def test_load_orders_skips_invalid_rows():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "orders.csv"
        _write_csv([
            {"tenant_id": "1", "order_number": "A", "loading_date": "2026-01-06", "unloading_date": "2026-01-05"},
            {"tenant_id": "1", "order_number": "B", "loading_date": "", "unloading_date": "2026-01-05"},
            {"tenant_id": "", "order_number": "C", "loading_date": "2026-01-05", "unloading_date": "2026-01-05"},
            {"tenant_id": "1", "order_number": "D", "loading_date": "2026-01-05", "unloading_date": "2026-01-05"},
        ], csv_path)

        orders = load_orders(csv_path)
        assert [o["order_number"] for o in orders] == ["D"]


def test_load_drivers_with_active_flag():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "drivers.csv"
        _write_csv([
            {"id": "1", "tenant_id": "1", "Imię": "Jan", "Nazwisko": "Kowalski", "Aktywny": "tak"},
            {"id": "2", "tenant_id": "1", "Imię": "Anna", "Nazwisko": "Nowak", "Aktywny": "nie"},
        ], csv_path)

        drivers = load_drivers(csv_path)
        assert len(drivers) == 2
        assert drivers[0]["first_name"] == "Jan"
        assert drivers[0]["last_name"] == "Kowalski"
        assert drivers[0]["is_active"] is True
        assert drivers[1]["is_active"] is False


def test_load_vehicles_and_trailers():
    with tempfile.TemporaryDirectory() as tmpdir:
        vehicles_path = Path(tmpdir) / "vehicles.csv"
        trailers_path = Path(tmpdir) / "trailers.csv"
        _write_csv([
            {"id": "11", "tenant_id": "1", "Registration number": "WX 12345", "Brand": "Volvo", "Model": "FH16"},
        ], vehicles_path)
        _write_csv([
            {"id": "21", "tenant_id": "1", "Registration number": "WX 9876P", "Type": "curtainsider"},
        ], trailers_path)

        vehicles = load_vehicles(vehicles_path)
        trailers = load_trailers(trailers_path)
        assert vehicles[0]["registration_number"] == "WX 12345"
        assert vehicles[0]["model"] == "FH16"
        assert vehicles[0]["is_active"] is True
        assert trailers[0]["type"] == "curtainsider"


def test_load_with_bom_and_trailing_spaces():
    """CSV with BOM encoding and trailing spaces in column names."""
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "drivers.csv"
        with open(csv_path, "w", encoding="utf-8-sig", newline="") as f:
            f.write("id ,tenant_id  ,first_name,last_name \n")
            f.write("5,1,Piotr,Zieliński\n")

        drivers = load_drivers(csv_path)
        assert drivers[0]["id"] == 5
        assert drivers[0]["last_name"] == "Zieliński"


def test_find_csv_by_hint():
    with tempfile.TemporaryDirectory() as tmpdir:
        data_dir = Path(tmpdir)
        (data_dir / "export_orders_2026.csv").write_text("id\n", encoding="utf-8")
        (data_dir / "kierowcy.csv").write_text("id\n", encoding="utf-8")

        assert _find_csv(data_dir, ["orders", "zlecenia"]).name == "export_orders_2026.csv"
        assert _find_csv(data_dir, ["drivers", "kierowcy"]).name == "kierowcy.csv"
        assert _find_csv(data_dir, ["trailers"]) is None
