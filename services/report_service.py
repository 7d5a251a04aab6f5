import io
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from openpyxl import Workbook
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import crud
from models import MaintenanceRequest, Team
from schemas import CountBucket, RequestAnalytics

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
UNASSIGNED = "Unassigned"


def month_label(value) -> str:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return f"{MONTHS[value.month - 1]} {value.year}"


def _count(counts: dict, key):
    counts[key] = counts.get(key, 0) + 1


def _one_decimal(value: float) -> float:
    """Round half up, so 1.25 becomes 1.3."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _buckets(counts: dict):
    return [CountBucket(label=label, count=n) for label, n in counts.items()]


class ReportService:

    @staticmethod
    def fetch_rows(db: Session):
        """One query returning only the fields the report needs."""
        try:
            rows = (
                db.query(
                    MaintenanceRequest.id,
                    MaintenanceRequest.status,
                    MaintenanceRequest.type,
                    MaintenanceRequest.created_at,
                    MaintenanceRequest.completed_at,
                    MaintenanceRequest.actual_hours,
                    Team.name.label("team_name"),
                )
                .outerjoin(Team, MaintenanceRequest.team_id == Team.id)
                .order_by(MaintenanceRequest.created_at.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            raise crud.to_store_error(db, exc, MaintenanceRequest.__tablename__) from exc
        return [dict(row._mapping) for row in rows]

    @staticmethod
    def aggregate(rows) -> RequestAnalytics:
        """Group request rows into chart buckets.

        Buckets keep the order in which each key first appears in ``rows``.
        ``avg_time`` is the mean ``actual_hours`` over Repaired rows that have
        it, rounded to one decimal, and 0 when there are none.
        """
        team_counts, status_counts, type_counts, month_counts = {}, {}, {}, {}
        repaired_hours = []
        in_progress = 0

        for row in rows:
            status = row.get("status")
            _count(team_counts, row.get("team_name") or UNASSIGNED)
            _count(status_counts, status)
            if row.get("type"):
                _count(type_counts, row["type"])
            if row.get("created_at"):
                _count(month_counts, month_label(row["created_at"]))

            if status == "In Progress":
                in_progress += 1
            elif status == "Repaired" and row.get("actual_hours") is not None:
                repaired_hours.append(row["actual_hours"])

        avg_time = _one_decimal(sum(repaired_hours) / len(repaired_hours)) if repaired_hours else 0

        return RequestAnalytics(
            total_requests=len(rows),
            completed=status_counts.get("Repaired", 0),
            in_progress=in_progress,
            avg_time=avg_time,
            by_team=_buckets(team_counts),
            by_status=_buckets(status_counts),
            by_type=_buckets(type_counts),
            over_time=_buckets(month_counts),
        )

    @staticmethod
    def get_request_analytics(db: Session) -> RequestAnalytics:
        return ReportService.aggregate(ReportService.fetch_rows(db))

    # ============================
    # Export
    # ============================
    @staticmethod
    def _sections(analytics: RequestAnalytics):
        return (
            ("Requests per Team", "Team", analytics.by_team),
            ("Requests by Status", "Status", analytics.by_status),
            ("Requests by Type", "Type", analytics.by_type),
            ("Requests over Time", "Month", analytics.over_time),
        )

    @staticmethod
    def _summary(analytics: RequestAnalytics):
        return [
            ["Total Requests", analytics.total_requests],
            ["Completed", analytics.completed],
            ["In Progress", analytics.in_progress],
            ["Avg. Time (h)", analytics.avg_time],
        ]

    @staticmethod
    def to_pdf(analytics: RequestAnalytics, user: str = None) -> bytes:
        tables = [(None, [["Metric", "Value"]] + ReportService._summary(analytics), [200, 120])]
        for title, header, buckets in ReportService._sections(analytics):
            tables.append((title, [[header, "Count"]] + [[b.label, b.count] for b in buckets], [200, 120]))
        return build_pdf("Maintenance Report", tables, f"Generated by: {user}" if user else None)

    @staticmethod
    def to_xlsx(analytics: RequestAnalytics) -> bytes:
        sheets = [("Summary", [["Metric", "Value"]] + ReportService._summary(analytics))]
        for title, header, buckets in ReportService._sections(analytics):
            sheets.append((title, [[header, "Count"]] + [[b.label, b.count] for b in buckets]))
        return build_xlsx(sheets)


def build_pdf(title: str, tables, subtitle: str = None) -> bytes:
    """Render ``(heading, rows, col_widths)`` tables under a title; the first row is the header."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4)
    styles = getSampleStyleSheet()
    elements = [Paragraph(title, styles["Title"])]
    if subtitle:
        elements.append(Paragraph(subtitle, styles["Normal"]))

    for heading, rows, col_widths in tables:
        elements.append(Spacer(1, 12))
        if heading:
            elements.append(Paragraph(heading, styles["Heading2"]))
        style = TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f2f2f2")),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("ALIGN", (0, 0), (-1, -1), "LEFT"),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ])
        # Zebra rows
        for i in range(2, len(rows), 2):
            style.add("BACKGROUND", (0, i), (-1, i), colors.HexColor("#f9f9f9"))
        table = Table(rows, colWidths=col_widths)
        table.setStyle(style)
        elements.append(table)

    doc.build(elements)
    return buffer.getvalue()


def build_xlsx(sheets) -> bytes:
    """One worksheet per ``(title, rows)``, columns sized to their longest value."""
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets:
        ws = wb.create_sheet(title=title[:31])
        for row in rows:
            ws.append(row)
        for col in ws.columns:
            ws.column_dimensions[col[0].column_letter].width = max(len(str(c.value or "")) for c in col) + 2

    stream = io.BytesIO()
    wb.save(stream)
    return stream.getvalue()
