from datetime import datetime
from io import BytesIO

from openpyxl import load_workbook

from services.report_service import ReportService, month_label


def _labels(buckets):
    return [(b.label, b.count) for b in buckets]


def test_totals_and_average_time():
    rows = [
        {"status": "Repaired", "actual_hours": 2},
        {"status": "Repaired", "actual_hours": 4},
        {"status": "New", "actual_hours": None},
    ]
    analytics = ReportService.aggregate(rows)

    assert analytics.total_requests == 3
    assert analytics.completed == 2
    assert analytics.avg_time == 3.0


def test_average_is_zero_without_timed_repairs():
    rows = [
        {"status": "Repaired", "actual_hours": None},
        {"status": "In Progress", "actual_hours": 5},
    ]
    analytics = ReportService.aggregate(rows)

    assert analytics.avg_time == 0
    assert analytics.in_progress == 1


def test_average_is_rounded_to_one_decimal():
    rows = [{"status": "Repaired", "actual_hours": h} for h in (1, 1, 2)]
    assert ReportService.aggregate(rows).avg_time == 1.3


def test_average_rounds_halves_up():
    assert ReportService.aggregate([{"status": "Repaired", "actual_hours": 1.25}]).avg_time == 1.3
    rows = [{"status": "Repaired", "actual_hours": 0.5}, {"status": "Repaired", "actual_hours": 0}]
    assert ReportService.aggregate(rows).avg_time == 0.3


def test_status_buckets_add_up_to_total():
    statuses = ["New", "Repaired", "In Progress", "New", "Scrap", "Cancelled", "Repaired", "New"]
    rows = [{"status": s, "type": "Corrective", "team_name": None, "actual_hours": 1} for s in statuses]
    analytics = ReportService.aggregate(rows)

    assert analytics.total_requests == len(statuses)
    assert sum(b.count for b in analytics.by_status) == analytics.total_requests
    assert sum(b.count for b in analytics.by_team) == analytics.total_requests


def test_empty_input():
    analytics = ReportService.aggregate([])
    assert analytics.total_requests == 0
    assert analytics.by_team == []
    assert analytics.over_time == []


def test_buckets_keep_first_seen_order():
    rows = [
        {"status": "New", "type": "Preventive", "team_name": "IT Support",
         "created_at": datetime(2024, 3, 2)},
        {"status": "Repaired", "type": "Corrective", "team_name": None,
         "created_at": datetime(2024, 1, 15)},
        {"status": "New", "type": "Preventive", "team_name": "IT Support",
         "created_at": "2024-03-20T10:00:00Z"},
    ]
    analytics = ReportService.aggregate(rows)

    assert _labels(analytics.by_team) == [("IT Support", 2), ("Unassigned", 1)]
    assert _labels(analytics.by_status) == [("New", 2), ("Repaired", 1)]
    assert _labels(analytics.by_type) == [("Preventive", 2), ("Corrective", 1)]
    assert _labels(analytics.over_time) == [("Mar 2024", 2), ("Jan 2024", 1)]


def test_month_label():
    assert month_label(datetime(2025, 12, 31)) == "Dec 2025"
    assert month_label("2025-07-04T08:00:00") == "Jul 2025"


def test_analytics_from_database(db, team, make_request):
    make_request(status="Repaired", team_id=team.id, actual_hours=0)
    make_request(status="Repaired", actual_hours=3)
    make_request(status="In Progress", team_id=team.id)

    analytics = ReportService.get_request_analytics(db)

    assert analytics.total_requests == 3
    assert analytics.completed == 2
    assert analytics.avg_time == 1.5
    assert dict(_labels(analytics.by_team)) == {"Mechanics": 2, "Unassigned": 1}


def test_exports_produce_documents():
    analytics = ReportService.aggregate([
        {"status": "Repaired", "type": "Corrective", "team_name": "Mechanics",
         "created_at": datetime(2024, 5, 1), "actual_hours": 2},
    ])

    pdf = ReportService.to_pdf(analytics, user="Jane Tech")
    assert pdf.startswith(b"%PDF")

    wb = load_workbook(BytesIO(ReportService.to_xlsx(analytics)))
    assert wb.sheetnames == ["Summary", "Requests per Team", "Requests by Status",
                             "Requests by Type", "Requests over Time"]
    assert wb["Requests per Team"]["A2"].value == "Mechanics"
