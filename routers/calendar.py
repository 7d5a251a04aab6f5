from datetime import datetime

from fastapi import APIRouter, Request, Form, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from starlette.status import HTTP_302_FOUND

from crud import StoreError
from database import get_db
from dependencies import get_current_user, optional_float, render
from services.calendar_service import DAYS, MAX_YEAR, MIN_YEAR, MONTH_NAMES, CalendarService
from services.equipment_service import EquipmentService

router = APIRouter(prefix="/calendar", tags=["Calendar"])


@router.get("/")
def calendar_view(request: Request, year: int = None, month: int = None,
                  db: Session = Depends(get_db), user=Depends(get_current_user)):
    today = datetime.utcnow()
    if year is not None and not MIN_YEAR <= year <= MAX_YEAR:
        user.flash("Error", f"Year must be between {MIN_YEAR} and {MAX_YEAR}.", "destructive")
        year = None
    year = year or today.year
    month = month if month and 1 <= month <= 12 else today.month

    try:
        events = CalendarService.month_events(db, year, month)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
        events = {}

    prev_year, prev_month = CalendarService.shift_month(year, month, -1)
    next_year, next_month = CalendarService.shift_month(year, month, 1)
    return render(request, "calendar.html", {
        "year": year,
        "month": month,
        "month_name": MONTH_NAMES[month - 1],
        "days": DAYS,
        "weeks": CalendarService.month_grid(year, month),
        "events": events,
        "today": today.day if (today.year, today.month) == (year, month) else None,
        "prev": {"year": prev_year, "month": prev_month},
        "next": {"year": next_year, "month": next_month},
        "equipment": EquipmentService.by_status(db, "Active"),
    })


@router.post("/schedule")
def schedule_preventive(
    equipment_id: int = Form(...),
    date: str = Form(...),
    time: str = Form(...),
    estimated_hours: str = Form(""),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    try:
        when = datetime.fromisoformat(f"{date}T{time}")
        req = CalendarService.schedule_preventive(db, equipment_id, when, user.user_id,
                                                  optional_float(estimated_hours))
    except ValueError as exc:
        user.flash("Error", str(exc), "destructive")
        return RedirectResponse("/calendar", status_code=HTTP_302_FOUND)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
        return RedirectResponse("/calendar", status_code=HTTP_302_FOUND)

    user.flash("Preventive Maintenance Scheduled",
               f"PM scheduled for {req.equipment.name if req.equipment else 'equipment'} on {date} at {time}")
    return RedirectResponse(f"/calendar?year={when.year}&month={when.month}", status_code=HTTP_302_FOUND)
