"""Excel export of a user's time entries."""

from __future__ import annotations

import logging
from datetime import date
from io import BytesIO

import xlsxwriter
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.context import RequestContext
from ..crud.time_entries import list_time_entries
from ..models.project import Project

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SHEET_NAME = "Timeføringer"
HEADERS = ("Dato", "Prosjekt", "Timer", "Kommentar")
DATE_FORMAT = "%d.%m.%Y"
COLUMN_WIDTHS = (12, 30, 8, 50)


def _project_names(db: Session, owner: str, project_ids: set[int]) -> dict[int, str]:
    if not project_ids:
        return {}
    rows = db.execute(
        select(Project.id, Project.navn).where(Project.user_sub == owner, Project.id.in_(project_ids))
    ).all()
    return {row.id: row.navn for row in rows}


def generate_excel(
    db: Session,
    ctx: RequestContext,
    date_from: date | None = None,
    date_to: date | None = None,
    project_id: int | None = None,
) -> bytes:
    """Build the workbook in memory and return its bytes.

    Layout: an optional reporter line, a header row, one row per entry and a
    closing ``Totalt`` row summing the hours.
    """

    entries = list_time_entries(db, ctx.subject, date_from, date_to, project_id)
    names = _project_names(db, ctx.subject, {entry.prosjekt_id for entry in entries})

    buffer = BytesIO()
    workbook = xlsxwriter.Workbook(buffer, {"in_memory": True})
    fmt_header = workbook.add_format({"bold": True, "align": "center", "bg_color": "#DDEBF7", "border": 1})
    fmt_hours = workbook.add_format({"num_format": "0.0"})
    fmt_total_label = workbook.add_format({"bold": True})
    fmt_total = workbook.add_format({"bold": True, "num_format": "0.0", "top": 1})

    sheet = workbook.add_worksheet(SHEET_NAME)
    row = 0
    reporter = " / ".join(part for part in (ctx.name, ctx.email) if part)
    if reporter:
        sheet.write_string(row, 0, f"Rapport for: {reporter}", fmt_total_label)
        row += 2

    for col, title in enumerate(HEADERS):
        sheet.write_string(row, col, title, fmt_header)
    row += 1

    total_hours = 0.0
    for entry in entries:
        sheet.write_string(row, 0, entry.dato.strftime(DATE_FORMAT))
        sheet.write_string(row, 1, names.get(entry.prosjekt_id, str(entry.prosjekt_id)))
        sheet.write_number(row, 2, entry.timer, fmt_hours)
        sheet.write_string(row, 3, entry.kommentar or "")
        total_hours += entry.timer
        row += 1

    sheet.write_string(row, 1, "Totalt", fmt_total_label)
    sheet.write_number(row, 2, total_hours, fmt_total)

    for col, width in enumerate(COLUMN_WIDTHS):
        sheet.set_column(col, col, width)

    workbook.close()
    logger.info("report.generated", extra=ctx.log_extra(rows=len(entries), total_hours=total_hours))
    return buffer.getvalue()


__all__ = ["XLSX_MEDIA_TYPE", "SHEET_NAME", "generate_excel"]
