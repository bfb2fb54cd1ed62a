"""Excel / CSV / PDF renderers for report rows."""
from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import Any, Dict, List, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from .schemas import ReportFormat

HEADER_FILL = PatternFill(fill_type="solid", fgColor="FF4472C4")
HEADER_FONT = Font(bold=True)
PDF_ITEM_LIMIT = 20

CONTENT_TYPES = {
    ReportFormat.PDF: ("application/pdf", "pdf"),
    ReportFormat.EXCEL: ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
    ReportFormat.CSV: ("text/csv", "csv"),
}

Rows = Dict[str, List[Dict[str, Any]]]


def format_display_date(value: Any) -> str:
    """Render ``2025-01-15`` (or a date/datetime) as ``15 Jan 2025``."""
    if value is None or value == "":
        return "N/A"
    if isinstance(value, str):
        value = datetime.fromisoformat(value) if "T" in value else date.fromisoformat(value[:10])
    return f"{value.day} {value.strftime('%b')} {value.year}"


def _date_range_label(start: Any, end: Any) -> str:
    return f"{format_display_date(start)} - {format_display_date(end)}"


def _event_child_name(event: Dict[str, Any]) -> str:
    return f"{event.get('first_name') or ''} {event.get('last_name') or ''}".strip() or "N/A"


def _booking_child_name(booking: Dict[str, Any]) -> str:
    if not booking.get("first_name"):
        return "N/A"
    return f"{booking['first_name']} {booking.get('last_name') or ''}".strip()


def _event_values(event: Dict[str, Any]) -> List[Any]:
    return [event["name"], event["event_type"], _event_child_name(event), format_display_date(event["created_at"])]


def _booking_values(booking: Dict[str, Any]) -> List[Any]:
    return [
        format_display_date(booking["date"]),
        booking["time"],
        booking["name"],
        _booking_child_name(booking),
        booking.get("user_name") or "N/A",
        booking.get("notes") or "",
    ]


def _child_values(child: Dict[str, Any]) -> List[Any]:
    return [
        child["first_name"],
        child.get("last_name") or "",
        format_display_date(child.get("date_of_birth")),
        child.get("total_bookings") or 0,
        child.get("total_events") or 0,
    ]


EVENT_HEADERS = ["Event Name", "Event Type", "Child Name", "Created At"]
BOOKING_HEADERS = ["Date", "Time", "Booking Name", "Child Name", "User Name", "Notes"]
CHILD_HEADERS = ["First Name", "Last Name", "Date of Birth", "Total Bookings", "Attended"]


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------


def _style_header(sheet, widths: List[int]) -> None:
    for index, width in enumerate(widths, start=1):
        cell = sheet.cell(row=1, column=index)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        sheet.column_dimensions[get_column_letter(index)].width = width


def _add_sheet(workbook: Workbook, title: str, headers: List[str], widths: List[int], rows: List[List[Any]]) -> None:
    sheet = workbook.create_sheet(title)
    sheet.append(headers)
    for row in rows:
        sheet.append(row)
    _style_header(sheet, widths)


def render_excel(rows: Rows, report_type: str, start: Any, end: Any) -> bytes:
    workbook = Workbook()
    workbook.properties.creator = "Child Event Manager"
    summary = workbook.active
    summary.title = "Summary"
    summary.append(["Metric", "Value"])
    summary.append(["Report Type", report_type])
    summary.append(["Date Range", _date_range_label(start, end)])
    summary.append(["Total Events", len(rows["events"])])
    summary.append(["Total Bookings", len(rows["bookings"])])
    summary.append(["Total Children", len(rows["children"])])
    _style_header(summary, [30, 20])

    if rows["events"]:
        _add_sheet(workbook, "Events", EVENT_HEADERS, [30, 20, 25, 20], [_event_values(e) for e in rows["events"]])
    if rows["bookings"]:
        _add_sheet(
            workbook,
            "Bookings",
            BOOKING_HEADERS,
            [12, 10, 30, 25, 20, 30],
            [_booking_values(b) for b in rows["bookings"]],
        )
    if rows["children"]:
        _add_sheet(workbook, "Children", CHILD_HEADERS, [20, 20, 15, 15, 12], [_child_values(c) for c in rows["children"]])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def render_csv(rows: Rows) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    sections: List[Tuple[str, List[str], List[List[Any]]]] = [
        ("EVENTS", EVENT_HEADERS, [_event_values(e) for e in rows["events"]]),
        ("BOOKINGS", BOOKING_HEADERS, [_booking_values(b) for b in rows["bookings"]]),
        ("CHILDREN", CHILD_HEADERS, [_child_values(c) for c in rows["children"]]),
    ]
    written = 0
    for title, headers, values in sections:
        if not values:
            continue
        if written:
            buffer.write("\n")
        writer.writerow([title])
        writer.writerow(headers)
        writer.writerows(values)
        written += 1
    return buffer.getvalue().encode("utf-8")


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------


class _PdfWriter:
    """Top-down text cursor over a reportlab canvas."""

    margin = 50

    def __init__(self, buffer: io.BytesIO) -> None:
        self.canvas = canvas.Canvas(buffer, pagesize=A4)
        self.width, self.height = A4
        self.y = self.height - self.margin

    def ensure_room(self, needed: float) -> None:
        if self.y - needed < self.margin:
            self.canvas.showPage()
            self.y = self.height - self.margin

    def line(self, text: str, size: int = 10, *, centered: bool = False, bold: bool = False) -> None:
        self.ensure_room(size + 4)
        self.canvas.setFont("Helvetica-Bold" if bold else "Helvetica", size)
        if centered:
            self.canvas.drawCentredString(self.width / 2, self.y, text)
        else:
            self.canvas.drawString(self.margin, self.y, text)
        self.y -= size + 4

    def gap(self, amount: float = 10) -> None:
        self.y -= amount

    def finish(self) -> None:
        self.canvas.save()


def render_pdf(rows: Rows, report_type: str, start: Any, end: Any) -> bytes:
    buffer = io.BytesIO()
    pdf = _PdfWriter(buffer)
    pdf.line("Child Event Manager Report", 20, centered=True, bold=True)
    pdf.gap()
    pdf.line(f"Report Type: {report_type}", 12, centered=True)
    pdf.line(f"Date Range: {_date_range_label(start, end)}", 12, centered=True)
    pdf.gap()

    pdf.line("Summary", 14, bold=True)
    pdf.line(f"Total Events: {len(rows['events'])}")
    pdf.line(f"Total Bookings: {len(rows['bookings'])}")
    pdf.line(f"Total Children: {len(rows['children'])}")
    pdf.gap()

    events = rows["events"]
    if events:
        pdf.line("Events", 14, bold=True)
        for index, event in enumerate(events[:PDF_ITEM_LIMIT], start=1):
            pdf.ensure_room(26)
            pdf.line(f"{index}. {event['name']} ({event['event_type']})", 9)
            pdf.line(
                f"   Child: {_event_child_name(event)}, Created: {format_display_date(event['created_at'])}",
                9,
            )
        if len(events) > PDF_ITEM_LIMIT:
            pdf.line(f"... and {len(events) - PDF_ITEM_LIMIT} more events", 9)
        pdf.gap()

    bookings = rows["bookings"]
    if bookings:
        pdf.ensure_room(120)
        pdf.line("Bookings", 14, bold=True)
        for index, booking in enumerate(bookings[:PDF_ITEM_LIMIT], start=1):
            pdf.ensure_room(26)
            pdf.line(f"{index}. {booking['name']} - {_booking_child_name(booking)}", 9)
            pdf.line(f"   Date: {format_display_date(booking['date'])}, Time: {booking['time']}", 9)
        if len(bookings) > PDF_ITEM_LIMIT:
            pdf.line(f"... and {len(bookings) - PDF_ITEM_LIMIT} more bookings", 9)

    pdf.finish()
    return buffer.getvalue()


def render_report(fmt: ReportFormat, rows: Rows, report_type: str, start: Any, end: Any) -> Tuple[bytes, str, str]:
    """Return ``(payload, content_type, extension)`` for the requested format."""
    content_type, extension = CONTENT_TYPES[fmt]
    if fmt == ReportFormat.EXCEL:
        payload = render_excel(rows, report_type, start, end)
    elif fmt == ReportFormat.CSV:
        payload = render_csv(rows)
    else:
        payload = render_pdf(rows, report_type, start, end)
    return payload, content_type, extension
