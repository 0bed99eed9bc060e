# payproof/services/reports.py
"""Spreadsheet export of the pagos table."""

from __future__ import annotations

import logging
from io import BytesIO
from typing import IO, Iterable, Union

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from payproof.errors import ReportError
from payproof.extensions import db
from payproof.models import PAYMENT_FIELDS, Payment

log = logging.getLogger(__name__)

SHEET_NAME = "ReportePagos"
REPORT_FILENAME = "reporte_pagos.xlsx"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

REPORT_HEADERS = (
    "ID",
    "Nombres",
    "Apellidos",
    "Correo",
    "Teléfono",
    "Universidad",
    "Entrada",
    "Código",
    "Carrera",
    "Tipo de Operación",
    "Número de Operación",
    "DNI",
    "Fecha de Registro",
)

_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
_MAX_COL_WIDTH = 50


def payment_row(p: Payment) -> list:
    return [p.id, *[getattr(p, name) or "" for name in PAYMENT_FIELDS], p.registered_at_text]


def build_workbook(payments: Iterable[Payment]) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME

    ws.append(list(REPORT_HEADERS))
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL

    widths = [len(h) for h in REPORT_HEADERS]
    for p in payments:
        row = payment_row(p)
        ws.append(row)
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(str(value)))

    for i, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = min(width + 2, _MAX_COL_WIDTH)
    ws.freeze_panes = "A2"
    return wb


def write_payments_report(target: Union[str, IO[bytes], None] = None) -> Union[str, IO[bytes]]:
    """
    Build the report from every stored payment (ordered by id) and save it
    to `target` (path or binary file object). Returns the target; a BytesIO
    rewound to 0 when no target is given.
    """
    try:
        payments = db.session.execute(select(Payment).order_by(Payment.id)).scalars().all()
    except SQLAlchemyError as e:
        db.session.rollback()
        log.error("Report query failed: %s", e, exc_info=True)
        raise ReportError()

    wb = build_workbook(payments)
    out = target if target is not None else BytesIO()
    wb.save(out)
    if isinstance(out, BytesIO):
        out.seek(0)
    log.info("Payments report built (%d rows)", len(payments))
    return out
