import calendar
from datetime import datetime

from sqlalchemy.orm import Session

import crud
from models import Equipment
from schemas import RequestCreate
from services.request_service import RequestService

DAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
MONTH_NAMES = tuple(calendar.month_name)[1:]
# The following month must still be a valid datetime
MIN_YEAR, MAX_YEAR = 1, 9998

_calendar = calendar.Calendar(firstweekday=calendar.SUNDAY)


class CalendarService:

    @staticmethod
    def month_grid(year: int, month: int):
        """Weeks of the month starting on Sunday; days outside the month are None."""
        return [
            [day or None for day in week]
            for week in _calendar.monthdayscalendar(year, month)
        ]

    @staticmethod
    def shift_month(year: int, month: int, delta: int):
        index = year * 12 + (month - 1) + delta
        return index // 12, index % 12 + 1

    @staticmethod
    def preventive_events(requests):
        """Preventive requests with a scheduled date, keyed by ``YYYY-MM-DD``."""
        events = {}
        for r in requests:
            if r.type != "Preventive" or not r.scheduled_date:
                continue
            key = r.scheduled_date.strftime("%Y-%m-%d")
            events.setdefault(key, []).append({
                "id": r.id,
                "title": r.subject,
                "type": r.type,
                "equipment": r.equipment.name if r.equipment else None,
            })
        return events

    @staticmethod
    def month_events(db: Session, year: int, month: int):
        start = datetime(year, month, 1)
        next_year, next_month = CalendarService.shift_month(year, month, 1)
        end = datetime(next_year, next_month, 1)
        requests = [r for r in RequestService.scheduled(db, start) if r.scheduled_date < end]
        return CalendarService.preventive_events(requests)

    @staticmethod
    def schedule_preventive(db: Session, equipment_id: int, when: datetime, user_id: int,
                            estimated_hours: float = None):
        equipment = crud.get_row(db, Equipment, equipment_id)
        data = RequestCreate(
            subject=f"Preventive maintenance: {equipment.name}",
            equipment_id=equipment.id,
            team_id=equipment.maintenance_team_id,
            type="Preventive",
            priority="Medium",
            scheduled_date=when,
            estimated_hours=estimated_hours,
        )
        return RequestService.create(db, data, user_id)
