"""Utilities to serialize orders into CSV and XLSX exports."""

from __future__ import annotations

import csv
import io
from typing import Sequence

from openpyxl import Workbook

from ...models.domain import Order

EXPORT_COLUMNS = (
    ("Order ID", "id"),
    ("Customer", "customer_name"),
    ("Pickup", "pickup_location"),
    ("Delivery", "delivery_location"),
    ("Cargo Type", "cargo_type"),
    ("Weight (kg)", "weight_kg"),
    ("Status", "status"),
    ("Driver", "driver"),
    ("Route", "route"),
    ("Created At", "created_at"),
    ("Assigned At", "assigned_at"),
    ("Special Instructions", "special_instructions"),
)


def _order_row(order: Order) -> list:
    row = []
    for _, attribute in EXPORT_COLUMNS:
        value = getattr(order, attribute)
        if attribute == "status":
            value = order.status.value
        elif attribute in ("created_at", "assigned_at"):
            value = value.isoformat() if value else ""
        elif value is None:
            value = ""
        row.append(value)
    return row


def orders_to_csv(orders: Sequence[Order]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([header for header, _ in EXPORT_COLUMNS])
    for order in orders:
        writer.writerow(_order_row(order))
    return buffer.getvalue()


def orders_to_xlsx(orders: Sequence[Order]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Orders"
    sheet.append([header for header, _ in EXPORT_COLUMNS])
    for order in orders:
        sheet.append(_order_row(order))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
