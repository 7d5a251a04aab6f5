import io

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from crud import StoreError
from database import get_db
from dependencies import get_current_user, render, require_user
from schemas import RequestAnalytics
from services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])
api = APIRouter(prefix="/api/reports", tags=["Reports API"])


def _bar_width(buckets):
    top = max((b.count for b in buckets), default=0)
    return {b.label: (100 * b.count // top if top else 0) for b in buckets}


@router.get("/")
def reports(request: Request, db: Session = Depends(get_db), user=Depends(get_current_user)):
    try:
        analytics = ReportService.get_request_analytics(db)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
        analytics = RequestAnalytics()

    sections = [
        ("Requests per Team", analytics.by_team),
        ("Requests by Type", analytics.by_type),
        ("Requests by Status", analytics.by_status),
        ("Requests over Time", analytics.over_time),
    ]
    return render(request, "reports.html", {
        "analytics": analytics,
        "sections": [(title, buckets, _bar_width(buckets)) for title, buckets in sections],
    })


@router.get("/export/pdf")
def export_pdf(db: Session = Depends(get_db), user=Depends(get_current_user)):
    content = ReportService.to_pdf(ReportService.get_request_analytics(db), user=user.display_name)
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=maintenance_report.pdf"}
    )


@router.get("/export/xlsx")
def export_xlsx(db: Session = Depends(get_db), user=Depends(get_current_user)):
    content = ReportService.to_xlsx(ReportService.get_request_analytics(db))
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=maintenance_report.xlsx"}
    )


@api.get("/", response_model=RequestAnalytics)
def api_reports(db: Session = Depends(get_db), user=Depends(require_user)):
    try:
        return ReportService.get_request_analytics(db)
    except StoreError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
