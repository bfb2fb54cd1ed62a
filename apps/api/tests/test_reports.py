from __future__ import annotations

import io
from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from childhub import report_exports
from childhub.db import create_booking, create_child, insert_child_event
from childhub.main import app
from childhub.report_exports import format_display_date, render_csv, render_pdf
from childhub.reports import (
    ReportFilters,
    format_report_response,
    generate_report_data,
    get_date_range,
    is_report_request,
    parse_report_request,
)
from childhub.schemas import ReportCategory, ReportType

client = TestClient(app)

NOW = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)
JANUARY = {"report_type": "custom", "start_date": "2025-01-01", "end_date": "2025-01-31"}


def _seed_family(user: dict) -> dict:
    emma = create_child(user["id"], {"first_name": "Emma", "last_name": "Johnson", "date_of_birth": "2018-05-15"})
    liam = create_child(user["id"], {"first_name": "Liam", "date_of_birth": "2020-08-22"})
    insert_child_event(child_id=emma["id"], name="Doctor, Checkup", event_type="Medical", occurred_at="2025-01-10T09:00:00+00:00")
    insert_child_event(child_id=liam["id"], name="Soccer", event_type="Sports", occurred_at="2025-01-14T09:00:00+00:00")
    insert_child_event(child_id=liam["id"], name="Dentist", event_type="Medical", occurred_at="2025-01-15T08:00:00+00:00")
    insert_child_event(child_id=liam["id"], name="Last year", event_type="Medical", occurred_at="2024-12-01T08:00:00+00:00")
    create_booking(user_id=user["id"], name="Swim", booking_date=date(2025, 1, 13), time="09:00", child_id=liam["id"])
    create_booking(user_id=user["id"], name="Parent Night", booking_date=date(2025, 1, 16), time="18:00")
    return {"emma": emma, "liam": liam}


@pytest.mark.parametrize(
    "report_type, start, end",
    [
        (ReportType.DAILY, "2025-01-15T00:00:00", "2025-01-15T23:59:59.999999"),
        (ReportType.WEEKLY, "2025-01-13T00:00:00", "2025-01-19T23:59:59.999999"),
        (ReportType.MONTHLY, "2025-01-01T00:00:00", "2025-01-31T23:59:59.999999"),
        (ReportType.CUSTOM, "2024-12-16T10:00:00", "2025-01-15T23:59:59.999999"),
    ],
)
def test_get_date_range(report_type: ReportType, start: str, end: str) -> None:
    window = get_date_range(report_type, NOW)
    assert window.start.replace(tzinfo=None).isoformat() == start
    assert window.end.replace(tzinfo=None).isoformat() == end


def test_custom_range_uses_day_bounds() -> None:
    window = get_date_range(ReportType.CUSTOM, NOW, date(2025, 1, 2), date(2025, 1, 3))
    assert window.start == datetime(2025, 1, 2, tzinfo=timezone.utc)
    assert window.end.date() == date(2025, 1, 3)


def test_generate_report_data_weekly(user) -> None:
    family = _seed_family(user)
    report = generate_report_data(user, ReportFilters(report_type=ReportType.WEEKLY), NOW)

    assert [event.name for event in report.events] == ["Dentist", "Soccer"]
    assert [booking.name for booking in report.bookings] == ["Parent Night", "Swim"]
    assert report.bookings[0].child is None
    assert report.summary.events_by_type == {"Medical": 1, "Sports": 1}
    assert report.summary.total_children == 2
    liam = next(child for child in report.children if child.id == family["liam"]["id"])
    assert (liam.event_count, liam.booking_count) == (2, 1)
    assert report.user.email == "parent@example.com"


@pytest.mark.parametrize(
    "category, sections",
    [
        (ReportCategory.EVENTS, (True, False, False)),
        (ReportCategory.BOOKINGS, (False, True, False)),
        (ReportCategory.CHILDREN, (False, False, True)),
    ],
)
def test_category_narrows_sections(user, category: ReportCategory, sections: tuple) -> None:
    _seed_family(user)
    report = generate_report_data(user, ReportFilters(report_type=ReportType.MONTHLY, category=category), NOW)
    assert (bool(report.events), bool(report.bookings), bool(report.children)) == sections


def test_child_filter(user) -> None:
    family = _seed_family(user)
    report = generate_report_data(
        user, ReportFilters(report_type=ReportType.MONTHLY, child_id=family["emma"]["id"]), NOW
    )
    assert [event.name for event in report.events] == ["Doctor, Checkup"]
    assert report.bookings == []
    assert [child.first_name for child in report.children] == ["Emma"]


def test_preview_endpoint(user) -> None:
    _seed_family(user)
    response = client.get("/api/v1/reports", params=JANUARY, headers=user["headers"])
    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["total_events"] == 3
    assert body["date_range"]["start"].startswith("2025-01-01T00:00:00")


def test_pdf_download(user) -> None:
    _seed_family(user)
    response = client.post("/api/v1/reports", json=JANUARY, headers=user["headers"])
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    today = datetime.now(tz=timezone.utc).date().isoformat()
    assert response.headers["content-disposition"] == (
        f'attachment; filename="child-assistant-custom-report-{today}.pdf"'
    )
    assert response.content.startswith(b"%PDF")


def test_excel_export(user) -> None:
    _seed_family(user)
    response = client.post("/api/v1/reports/export", json={**JANUARY, "format": "excel"}, headers=user["headers"])
    assert response.status_code == 200
    workbook = load_workbook(io.BytesIO(response.content))
    assert workbook.sheetnames == ["Summary", "Events", "Bookings", "Children"]
    summary = workbook["Summary"]
    assert [cell.value for cell in summary[1]] == ["Metric", "Value"]
    assert summary["A1"].font.bold is True
    assert summary["A1"].fill.fgColor.rgb == "FF4472C4"
    assert summary["B3"].value == "1 Jan 2025 - 31 Jan 2025"
    assert summary["B4"].value == 3


def test_excel_export_skips_empty_sheets(user) -> None:
    response = client.post("/api/v1/reports/export", json={**JANUARY, "format": "excel"}, headers=user["headers"])
    assert load_workbook(io.BytesIO(response.content)).sheetnames == ["Summary"]


def test_csv_export(user) -> None:
    _seed_family(user)
    response = client.post("/api/v1/reports/export", json={**JANUARY, "format": "csv"}, headers=user["headers"])
    assert response.headers["content-type"].startswith("text/csv")
    text = response.content.decode("utf-8")
    lines = text.splitlines()
    assert lines[0] == "EVENTS"
    assert lines[1] == "Event Name,Event Type,Child Name,Created At"
    assert '"Doctor, Checkup",Medical,Emma Johnson,10 Jan 2025' in lines
    assert "BOOKINGS" in lines
    assert "CHILDREN" in lines
    assert lines[lines.index("BOOKINGS") - 1] == ""


def test_render_csv_with_no_rows() -> None:
    assert render_csv({"events": [], "bookings": [], "children": []}) == b""


def test_format_display_date() -> None:
    assert format_display_date("2025-01-15") == "15 Jan 2025"
    assert format_display_date("2025-01-05T23:00:00+00:00") == "5 Jan 2025"
    assert format_display_date(date(2024, 12, 1)) == "1 Dec 2024"
    assert format_display_date(None) == "N/A"


def test_download_link(user, fake_s3) -> None:
    missing = client.get("/api/v1/reports/download", headers=user["headers"])
    assert missing.status_code == 400
    assert missing.json() == {"error": "Missing file key parameter"}

    response = client.get("/api/v1/reports/download", params={"key": "reports/report_1.pdf"}, headers=user["headers"])
    assert response.status_code == 200
    assert response.json()["expires_in"] == 300
    assert fake_s3.presigned == [
        ("get_object", {"Bucket": "childhub-reports", "Key": "reports/report_1.pdf"}, 300)
    ]


def test_download_link_without_bucket(user) -> None:
    response = client.get("/api/v1/reports/download", params={"key": "reports/x.pdf"}, headers=user["headers"])
    assert response.status_code == 500
    assert response.json() == {"error": "S3 bucket not configured"}


def test_agent_report_summary(user, agent_headers) -> None:
    _seed_family(user)
    response = client.post(
        "/api/v1/reports/agent",
        json={"user_id": user["id"], "report_type": "custom", "child_name": "emm",
              "start_date": "2025-01-01", "end_date": "2025-01-31"},
        headers=agent_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["preview"]["period"] == "Jan 1, 2025 - Jan 31, 2025"
    assert body["preview"]["total_events"] == 1
    assert body["download_url"] == "/reports"


def test_agent_report_validation(user, agent_headers) -> None:
    assert client.post("/api/v1/reports/agent", json={"user_id": user["id"]}).status_code == 401
    response = client.post("/api/v1/reports/agent", json={}, headers=agent_headers)
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "User ID is required"}


def test_chat_helpers() -> None:
    assert is_report_request("Can you EXPORT this?")
    assert not is_report_request("How was nap time?")
    assert parse_report_request("what happened today") == ReportType.DAILY
    assert parse_report_request("this month please") == ReportType.MONTHLY
    assert parse_report_request("a summary") == ReportType.WEEKLY

    text = format_report_response(
        {
            "success": True,
            "message": "Here it is.",
            "preview": {"period": "Jan 1, 2025 - Jan 31, 2025", "total_children": 2, "total_events": 3, "total_bookings": 1},
        }
    )
    assert "- Events: 3" in text
    assert text.endswith("[Reports page](/reports).")
    assert format_report_response({"success": False, "message": "No data."}) == (
        "I wasn't able to generate the report. No data."
    )


def test_pdf_lists_twenty_items_then_trailers(monkeypatch: pytest.MonkeyPatch) -> None:
    lines: list = []
    breaks: list = []

    class RecordingWriter(report_exports._PdfWriter):
        def line(self, text, size=10, *, centered=False, bold=False):
            lines.append(text)
            super().line(text, size, centered=centered, bold=bold)

        def ensure_room(self, needed):
            before = self.y
            super().ensure_room(needed)
            if self.y > before:
                breaks.append(len(lines))

    monkeypatch.setattr(report_exports, "_PdfWriter", RecordingWriter)
    rows = {
        "events": [
            {"name": f"Event {n}", "event_type": "Sports", "created_at": "2025-01-10", "first_name": "Emma", "last_name": None}
            for n in range(1, 26)
        ],
        "bookings": [
            {"name": f"Booking {n}", "date": "2025-01-11", "time": "09:00", "first_name": None}
            for n in range(1, 26)
        ],
        "children": [],
    }

    payload = render_pdf(rows, "Weekly Report", "2025-01-06", "2025-01-12")

    assert payload.startswith(b"%PDF")
    assert lines[0] == "Child Event Manager Report"
    assert "Date Range: 6 Jan 2025 - 12 Jan 2025" in lines
    assert "Total Events: 25" in lines
    assert "20. Event 20 (Sports)" in lines
    assert not any(text.startswith("21. Event") for text in lines)
    assert "... and 5 more events" in lines
    assert "20. Booking 20 - N/A" in lines
    assert not any(text.startswith("21. Booking") for text in lines)
    assert lines[-1] == "... and 5 more bookings"
    assert breaks
