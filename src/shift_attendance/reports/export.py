"""Spreadsheet exports of the attendance report.

`build_public_work_hours` renders the weekly "PUBLIC WORK HOURS" sheet as
SpreadsheetML 2003 (opens in Excel as .xls). `summary_to_xlsx` writes the plain
report table to an .xlsx workbook.
"""

from __future__ import annotations

import io
from collections import defaultdict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from html import escape
from typing import Iterable, Sequence

import pandas as pd

from ..attendance.model import AttendanceEntry
from ..common.datetime_utils import iter_dates, week_ending_friday
from ..core.constants import PLACEHOLDER
from .model import ReportRow

HEADERS = ("Month", "Week Ending", "Project Name/Address", "M", "T", "W", "Th", "F", "Total")
COLUMN_WIDTHS = (70, 90, 220, 35, 35, 35, 35, 35, 60)

_STYLES = (
    '<Styles>'
    '<Style ss:ID="title"><Alignment ss:Horizontal="Center"/><Font ss:Bold="1" ss:Size="16"/></Style>'
    '<Style ss:ID="hdr"><Alignment ss:Horizontal="Center" ss:WrapText="1"/><Font ss:Bold="1"/></Style>'
    '<Style ss:ID="textWrap"><Alignment ss:WrapText="1"/><Font/></Style>'
    '</Styles>'
)

_WORKBOOK_OPEN = (
    '<?xml version="1.0"?>\n'
    '<?mso-application progid="Excel.Sheet"?>\n'
    '<Workbook xmlns="urn:schemas-microsoft-com:office:spreadsheet" '
    'xmlns:o="urn:schemas-microsoft-com:office:office" '
    'xmlns:x="urn:schemas-microsoft-com:office:excel" '
    'xmlns:ss="urn:schemas-microsoft-com:office:spreadsheet">\n'
)


def _hours(minutes: int) -> Decimal:
    return (Decimal(minutes) / Decimal(60)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _fmt(value: Decimal) -> str:
    return f"{value:.2f}" if value else ""


def _cell(value: str, style: str = "") -> str:
    style_attr = f' ss:StyleID="{style}"' if style else ""
    return f'<Cell{style_attr}><Data ss:Type="String">{escape(str(value))}</Data></Cell>'


def _row(values: Iterable[str], style: str = "") -> str:
    return "<Row>" + "".join(_cell(v, style) for v in values) + "</Row>"


def daily_minutes(entries: Iterable[AttendanceEntry]) -> dict[tuple[str, date], int]:
    totals: dict[tuple[str, date], int] = defaultdict(int)
    for e in entries:
        totals[(e.user_name, e.work_date)] += e.worked_minutes
    return totals


def weeks_in_range(start: date, end: date) -> dict[date, list[date]]:
    """Dates of [start, end] grouped by the Friday that ends their week."""
    weeks: dict[date, list[date]] = {}
    for day in iter_dates(start, end):
        weeks.setdefault(week_ending_friday(day), []).append(day)
    return weeks


def build_public_work_hours(
    rows: Sequence[ReportRow],
    entries: Iterable[AttendanceEntry],
    start: date,
    end: date,
) -> str:
    """Render the displayed report rows as a weekly SpreadsheetML sheet.

    `rows` should already be filtered with `displayed_rows`. Hours per weekday
    come from the reconciled `entries`; weeks where nobody worked Mon-Fri are
    left out, and so are employees with nothing in a given week.
    """
    minutes = daily_minutes(entries)

    by_project: dict[str, list[ReportRow]] = {}
    for r in rows:
        by_project.setdefault(r.project or PLACEHOLDER, []).append(r)

    parts = [
        '<Row><Cell ss:MergeAcross="8" ss:StyleID="title"><Data ss:Type="String">PUBLIC WORK HOURS</Data></Cell></Row>',
        "<Row/>",
    ]

    for friday in weeks_in_range(start, end):
        weekdays = [friday - timedelta(days=4 - i) for i in range(5)]

        def week_hours(user_name: str) -> list[Decimal]:
            return [_hours(minutes.get((user_name, d), 0)) for d in weekdays]

        if not any(sum(week_hours(r.user_name)) > 0 for r in rows):
            continue

        parts.append(_row(HEADERS, "hdr"))
        month = friday.strftime("%B")
        week_ending = f"{friday.month}/{friday.day}/{friday.year}"
        for project, people in by_project.items():
            parts.append(_row([month, week_ending, project] + [""] * 6, "textWrap"))
            for r in people:
                hours = week_hours(r.user_name)
                total = sum(hours)
                if total <= 0:
                    continue
                parts.append(_row(["", "", r.employee or PLACEHOLDER] + [_fmt(h) for h in hours] + [f"{total:.2f}"]))
            parts.append("<Row/>")

    columns = "".join(f'<Column ss:AutoFitWidth="1" ss:Width="{w}"/>' for w in COLUMN_WIDTHS)
    worksheet = f'<Worksheet ss:Name="PublicWorkHours"><Table>{columns}{"".join(parts)}</Table></Worksheet>'
    return f"{_WORKBOOK_OPEN}{_STYLES}\n{worksheet}\n</Workbook>"


def summary_to_xlsx(rows: Sequence[ReportRow]) -> io.BytesIO:
    data = [
        {
            "Employee": r.employee,
            "Username": r.user_name,
            "Project": r.project,
            "Days Worked": r.days_worked,
            "Total Hours": r.total_hours,
            "Late": r.late_count,
            "Absences": r.absences,
        }
        for r in rows
    ]
    df = pd.DataFrame(data, columns=["Employee", "Username", "Project", "Days Worked", "Total Hours", "Late", "Absences"])

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Attendance")
    output.seek(0)
    return output
