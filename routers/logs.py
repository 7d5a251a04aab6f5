import io
from datetime import timezone

import pytz
from fastapi import APIRouter, Request, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

import models
from config import settings
from database import get_db
from dependencies import get_current_user, render
from services.report_service import build_pdf, build_xlsx

router = APIRouter(prefix="/logs", tags=["Logs"])

TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"


def _local_logs(db: Session):
    """Activity log lines, newest first, converted to the display timezone."""
    logs = db.query(models.ActivityLog).order_by(models.ActivityLog.created_at.desc()).all()
    tz = pytz.timezone(settings.TIMEZONE)

    rows = []
    for log in logs:
        created = log.created_at
        # Naive timestamps are stored in UTC
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        rows.append({"created_at": created.astimezone(tz), "user": log.user, "action": log.action, "ip": log.ip})
    return rows


@router.get("/")
def list_logs(request: Request, db: Session = Depends(get_db)):
    return render(request, "logs_list.html", {"logs": _local_logs(db)})


@router.get("/export/pdf")
def export_logs_pdf(db: Session = Depends(get_db), user=Depends(get_current_user)):
    rows = [["Date/Time", "User", "Action"]]
    rows += [[log["created_at"].strftime(TIMESTAMP_FORMAT), log["user"], log["action"]] for log in _local_logs(db)]
    content = build_pdf("Activity Log", [(None, rows, [120, 130, 220])], f"Signed-in user: {user.display_name}")
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=activity_log.pdf"}
    )


@router.get("/export/xlsx")
def export_logs_xlsx(db: Session = Depends(get_db)):
    rows = [["Date/Time", "User", "Action", "IP"]]
    rows += [[log["created_at"].strftime(TIMESTAMP_FORMAT), log["user"], log["action"], log["ip"]]
             for log in _local_logs(db)]
    return StreamingResponse(
        io.BytesIO(build_xlsx([("Activity Log", rows)])),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=activity_log.xlsx"}
    )
