"""
Purchase ledger: aggregate stats and CSV export.
"""

from __future__ import annotations

import csv
import io
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from db.models import Order, Product
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

CSV_HEADERS = ["Buyer Name", "Class", "Student Number", "Product Name", "Price", "Date/Time"]

# spreadsheet apps evaluate cells starting with these
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


@dataclass(frozen=True)
class LedgerStats:
    total_revenue: float
    purchase_count: int
    sales_by_product: List[Tuple[str, int]] = field(default_factory=list)


def format_amount(amount: float) -> str:
    """120.0 -> "120", 12.5 -> "12.50"."""
    amount = float(amount)
    return str(int(amount)) if amount.is_integer() else f"{amount:.2f}"


def format_price(amount: float) -> str:
    return f"{format_amount(amount)} {config.CURRENCY}"


def compute_stats(orders: Sequence[Order], products: Iterable[Product]) -> LedgerStats:
    """Revenue and purchase count over all orders; sale counts per current product, by name."""
    return LedgerStats(
        total_revenue=sum(o.price for o in orders),
        purchase_count=len(orders),
        sales_by_product=[
            (p.name, sum(1 for o in orders if o.product_name == p.name))
            for p in products
        ],
    )


def _safe_cell(value: str) -> str:
    if value.startswith(_FORMULA_PREFIXES):
        return "'" + value
    return value


def orders_to_csv(orders: Iterable[Order]) -> str:
    """
    CSV document with a header row and one row per order. Fields with
    delimiters, quotes or line breaks are quoted by the csv module.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for o in orders:
        writer.writerow(
            [
                _safe_cell(o.buyer_name),
                _safe_cell(o.class_label),
                _safe_cell(o.student_number),
                _safe_cell(o.product_name),
                format_price(o.price),
                o.created_at.isoformat(timespec="seconds"),
            ]
        )
    return buf.getvalue()


def export_filename(now: datetime) -> str:
    return f"purchases_{now.isoformat(timespec='seconds')}.csv"


def write_csv_export(
    orders: Sequence[Order],
    directory: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Path:
    """Write the CSV export and return its path."""
    directory = directory or config.EXPORT_DIR
    os.makedirs(directory, exist_ok=True)
    path = Path(directory) / export_filename(now or datetime.now())
    path.write_text(orders_to_csv(orders), encoding="utf-8")
    _logger.info(f"Exported {len(orders)} purchase(s) to {path}")
    return path
