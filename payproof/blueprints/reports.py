from __future__ import annotations

from flask import Blueprint, send_file

from payproof.errors import ReportError
from payproof.services.reports import REPORT_FILENAME, XLSX_MIMETYPE, write_payments_report

bp = Blueprint("reports", __name__)


@bp.get("/descargarreporte")
def download_report():
    """Every stored payment as an .xlsx attachment."""
    try:
        buf = write_payments_report()
    except ReportError as e:
        return e.to_response()

    return send_file(
        buf,
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=REPORT_FILENAME,
        max_age=0,
    )
