"""Listing filters, date presets and the sales CSV export."""

from datetime import date, datetime

import pytest

from factories import debt_log, product, sale
from pharmapos.services import export_service, filters

NOW = datetime(2025, 3, 10, 15, 30)


class TestPresets:

    @pytest.mark.parametrize("preset,expected", [
        (None, None),
        ("all", None),
        ("today", datetime(2025, 3, 10)),
        ("week", datetime(2025, 3, 3)),
        ("month", datetime(2025, 2, 8)),
    ])
    def test_preset_start(self, preset, expected):
        assert filters.preset_start(preset, NOW) == expected

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            filters.preset_start("year", NOW)

    def test_audit_logs_have_no_month_preset(self):
        with pytest.raises(ValueError):
            filters.filter_audit_logs([], date_range="month", now=NOW)


class TestProductFilters:

    def test_search_matches_generic_name_and_sku(self):
        items = [
            product(1, name="Panadol", generic_name="Paracetamol", sku="PAN-1"),
            product(2, name="Brufen", generic_name="Ibuprofen", sku="BRU-2"),
        ]
        assert [p.id for p in filters.filter_products(items, search="PARACET")] == [1]
        assert [p.id for p in filters.filter_products(items, search="bru-2")] == [2]
        assert len(filters.filter_products(items, search="  ")) == 2

    def test_low_stock_is_inclusive_and_capped(self):
        items = [product(i, name=f"P{i}", stock=i, reorder_level=6) for i in range(1, 9)]
        low = filters.low_stock(items)
        assert [p.stock for p in low] == [1, 2, 3, 4, 5]
        assert len(filters.low_stock(items, limit=None)) == 6
        assert [p.id for p in filters.filter_products(items, stock="normal")] == [7, 8]

    def test_expiring_soon_window(self):
        today = date(2025, 3, 10)
        items = [
            product(1, name="Expired", expiry_date=date(2025, 3, 1)),
            product(2, name="Today", expiry_date=today),
            product(3, name="Soon", expiry_date=date(2025, 3, 20)),
            product(4, name="Later", expiry_date=date(2025, 5, 1)),
            product(5, name="Far", expiry_date=date(2025, 6, 1)),
            product(6, name="Unknown"),
        ]
        rows = filters.expiring_soon(items, today=today, window_days=60)
        assert [(r["name"], r["daysRemaining"], r["urgent"]) for r in rows] == [
            ("Soon", 10, True),
            ("Later", 52, False),
        ]
        assert rows[0]["expiryDate"] == "2025-03-20"


class TestSalesFilters:

    def test_filters_combine_and_sort_newest_first(self):
        sales = [
            sale(1, day="2025-03-10", hour=9, method="cash", customer_name="Dana Doe"),
            sale(2, day="2025-03-09", hour=9, method="card"),
            sale(3, day="2025-03-10", hour=11, method="cash", employee_id=2, employee_name="Erin Evening"),
            sale(4, day="2025-02-01", hour=9, method="cash", prescription_number="RX-77"),
        ]
        assert [s.id for s in filters.filter_sales(sales)] == [3, 1, 2, 4]
        assert [s.id for s in filters.filter_sales(sales, date_range="today", now=NOW)] == [3, 1]
        assert [s.id for s in filters.filter_sales(sales, payment_method="cash", date_range="week", now=NOW)] == [3, 1]
        assert [s.id for s in filters.filter_sales(sales, search="dana")] == [1]
        assert [s.id for s in filters.filter_sales(sales, search="rx-77")] == [4]
        assert [s.id for s in filters.filter_sales(sales, employee_id=2)] == [3]

    def test_audit_search(self):
        logs = [debt_log(1, day="2025-03-10"), debt_log(2, day="2025-03-01", action="login")]
        assert [a.id for a in filters.filter_audit_logs(logs, action="login")] == [2]
        assert [a.id for a in filters.filter_audit_logs(logs, date_range="week", now=NOW)] == [1]
        assert [a.id for a in filters.filter_audit_logs(logs, search="DEBT_")] == [1]


class TestCsvExport:

    def test_header_only_when_empty(self):
        assert export_service.sales_csv([]) == (
            "Date,Time,Product,Quantity,Total Amount,Payment Method,Employee,Customer,Prescription\n"
        )

    def test_row_format(self):
        s = sale(
            1,
            day="2025-03-05",
            hour=14,
            total=1250,
            quantity=2,
            product_name="Amoxicillin 500mg",
            method="mobile banking",
        )
        lines = export_service.sales_csv([s]).split("\n")
        assert lines[1] == (
            '"Mar 5, 2025",02:00 PM,Amoxicillin 500mg,2,12.50,mobile banking,Carl Cashier,Walk-in,'
        )
        assert lines[2] == ""

    def test_quotes_are_escaped(self):
        s = sale(
            1,
            day="2025-03-05",
            product_name='Syrup "Kids", 100ml',
            customer_name="Dana Doe",
            prescription_number="RX-1",
        )
        row = export_service.sales_csv([s]).split("\n")[1]
        assert '"Syrup ""Kids"", 100ml"' in row
        assert row.endswith(",Dana Doe,RX-1")

    def test_export_filename(self):
        assert export_service.export_filename(NOW) == "sales_export_2025-03-10.csv"

    def test_morning_time(self):
        assert export_service.format_time(datetime(2025, 1, 2, 9, 5)) == "09:05 AM"
        assert export_service.format_date(datetime(2025, 12, 25, 9, 5)) == "Dec 25, 2025"
