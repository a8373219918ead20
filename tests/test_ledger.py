import csv
import io
import os
import re
import tempfile
import unittest
from datetime import datetime, timedelta

from db.models import Order, Product
from services.ledger import (
    CSV_HEADERS,
    compute_stats,
    export_filename,
    format_price,
    orders_to_csv,
    write_csv_export,
)

T0 = datetime(2025, 11, 1, 12, 0, 0)


def make_order(ono, product_name="Kingston Flashdrive 16GB", price=120.0, **kw):
    fields = dict(
        ono=ono,
        buyer_name="Jane Doe",
        class_label="10A",
        student_number="23",
        pid=1,
        product_name=product_name,
        price=price,
        created_at=T0 + timedelta(minutes=ono),
    )
    fields.update(kw)
    return Order(**fields)


class LedgerStatsTestCase(unittest.TestCase):
    def test_stats(self):
        products = [
            Product(1, "Kingston Flashdrive 16GB", 120.0, "image1.jpg"),
            Product(2, "Kingston Flashdrive 32GB", 150.0, "image2.jpg"),
        ]
        orders = [
            make_order(1),
            make_order(2),
            make_order(3, "Kingston Flashdrive 32GB", 150.0, pid=2),
            make_order(4, "Deleted Drive", 99.5, pid=None),
        ]
        stats = compute_stats(orders, products)
        self.assertEqual(stats.total_revenue, 489.5)
        self.assertEqual(stats.purchase_count, 4)
        self.assertEqual(
            stats.sales_by_product,
            [("Kingston Flashdrive 16GB", 2), ("Kingston Flashdrive 32GB", 1)],
        )

    def test_empty_ledger(self):
        stats = compute_stats([], [])
        self.assertEqual((stats.total_revenue, stats.purchase_count), (0, 0))
        self.assertEqual(stats.sales_by_product, [])

    def test_format_price(self):
        self.assertEqual(format_price(120), "120 EGP")
        self.assertEqual(format_price(120.0), "120 EGP")
        self.assertEqual(format_price(12.5), "12.50 EGP")


class CsvExportTestCase(unittest.TestCase):
    def test_header_only_for_no_orders(self):
        self.assertEqual(orders_to_csv([]).splitlines(), [",".join(CSV_HEADERS)])

    def test_one_line_per_order_with_price_column(self):
        orders = [make_order(i, price=100 + i) for i in range(5)]
        text = orders_to_csv(orders)
        lines = text.splitlines()
        self.assertEqual(len(lines), len(orders) + 1)
        self.assertEqual(lines[0], "Buyer Name,Class,Student Number,Product Name,Price,Date/Time")

        rows = list(csv.reader(io.StringIO(text)))[1:]
        for row in rows:
            self.assertEqual(len(row), 6)
            self.assertRegex(row[4], r"^\d+(\.\d{2})? EGP$")
        self.assertEqual(rows[0][5], "2025-11-01T12:00:00")

    def test_fields_with_delimiters_are_quoted(self):
        order = make_order(1, product_name='Drive, "Pro" 64GB')
        text = orders_to_csv([order])
        self.assertIn('"Drive, ""Pro"" 64GB"', text)
        row = list(csv.reader(io.StringIO(text)))[1]
        self.assertEqual(row[3], 'Drive, "Pro" 64GB')

    def test_formula_cells_are_neutralized(self):
        order = make_order(1, buyer_name="=HYPERLINK(1)", product_name="@SUM(A1)")
        row = list(csv.reader(io.StringIO(orders_to_csv([order]))))[1]
        self.assertEqual(row[0], "'=HYPERLINK(1)")
        self.assertEqual(row[3], "'@SUM(A1)")
        self.assertEqual(row[4], "120 EGP")

    def test_export_filename_and_file(self):
        now = datetime(2025, 11, 1, 12, 30, 5)
        self.assertEqual(export_filename(now), "purchases_2025-11-01T12:30:05.csv")

        with tempfile.TemporaryDirectory() as tmp:
            target = os.path.join(tmp, "exports")
            path = write_csv_export([make_order(1), make_order(2)], target, now)
            self.assertTrue(re.search(r"purchases_.*\.csv$", path.name))
            self.assertEqual(len(path.read_text(encoding="utf-8").splitlines()), 3)
