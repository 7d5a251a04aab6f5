import time
from datetime import datetime

from sqlalchemy.orm import Session, joinedload

import crud
from models import Equipment, MaintenanceRequest, Notification, Technician
from schemas import RequestCard, RequestCreate, RequestUpdate
from services.avatar_service import AvatarService

_WITH_RELATIONS = (
    joinedload(MaintenanceRequest.equipment),
    joinedload(MaintenanceRequest.team),
    joinedload(MaintenanceRequest.technician).joinedload(Technician.profile),
    joinedload(MaintenanceRequest.work_center),
)

OPEN_STATUSES = ("New", "In Progress")
CLOSED_STATUSES = ("Repaired", "Cancelled")


def generate_request_number() -> str:
    return f"REQ-{int(time.time() * 1000)}"


class RequestService:

    # ============================
    # Reads
    # ============================
    @staticmethod
    def get_all(db: Session):
        return crud.list_rows(db, MaintenanceRequest, order_by="created_at", descending=True,
                              options=_WITH_RELATIONS)

    @staticmethod
    def get(db: Session, request_id: int):
        return crud.get_row(db, MaintenanceRequest, request_id, options=_WITH_RELATIONS)

    @staticmethod
    def by_status(db: Session, status: str):
        return crud.list_rows(db, MaintenanceRequest, {"status": status}, order_by="created_at",
                              descending=True, options=_WITH_RELATIONS)

    @staticmethod
    def by_team(db: Session, team_id: int):
        return crud.list_rows(db, MaintenanceRequest, {"team_id": team_id}, order_by="created_at",
                              descending=True, options=_WITH_RELATIONS)

    @staticmethod
    def by_equipment(db: Session, equipment_id: int):
        return crud.list_rows(db, MaintenanceRequest, {"equipment_id": equipment_id},
                              order_by="created_at", descending=True, options=_WITH_RELATIONS)

    @staticmethod
    def by_technician(db: Session, technician_id: int):
        return crud.list_rows(db, MaintenanceRequest, {"assigned_technician_id": technician_id},
                              order_by="created_at", descending=True, options=_WITH_RELATIONS)

    @staticmethod
    def scheduled(db: Session, start: datetime = None, end: datetime = None):
        criteria = [MaintenanceRequest.scheduled_date.isnot(None)]
        if start:
            criteria.append(MaintenanceRequest.scheduled_date >= start)
        if end:
            criteria.append(MaintenanceRequest.scheduled_date <= end)
        return crud.list_rows(db, MaintenanceRequest, order_by="scheduled_date",
                              options=_WITH_RELATIONS, criteria=criteria)

    @staticmethod
    def split_open_closed(requests):
        open_requests = [r for r in requests if r.status not in CLOSED_STATUSES]
        closed_requests = [r for r in requests if r.status in CLOSED_STATUSES]
        return open_requests, closed_requests

    # ============================
    # Writes
    # ============================
    @staticmethod
    def auto_fill_team(db: Session, data: RequestCreate):
        """Take the maintenance team from the selected equipment when none was chosen.

        Returns the (possibly updated) payload and the auto-filled team name, if any.
        """
        if data.team_id or not data.equipment_id:
            return data, None

        equipment = crud.get_row(db, Equipment, data.equipment_id)
        if not equipment.maintenance_team_id:
            return data, None

        team_name = equipment.team.name if equipment.team else "Team"
        return data.model_copy(update={"team_id": equipment.maintenance_team_id}), team_name

    @staticmethod
    def create(db: Session, data: RequestCreate, user_id: int):
        if user_id is None:
            raise crud.StoreError("User not authenticated", MaintenanceRequest.__tablename__)

        fields = data.model_dump()
        fields["request_number"] = generate_request_number()
        fields["created_by"] = user_id
        return crud.create_row(db, MaintenanceRequest, fields)

    @staticmethod
    def update(db: Session, request_id: int, data: RequestUpdate):
        return crud.update_row(db, MaintenanceRequest, request_id, data.model_dump(exclude_unset=True))

    @staticmethod
    def update_status(db: Session, request_id: int, status: str):
        return crud.update_row(db, MaintenanceRequest, request_id, {"status": status})

    @staticmethod
    def scrap(db: Session, request_id: int, equipment_id: int):
        """Mark the request and its equipment as Scrap in one commit."""
        with crud.transaction(db):
            request = crud.update_row(db, MaintenanceRequest, request_id, {"status": "Scrap"})
            equipment = crud.update_row(db, Equipment, equipment_id, {"status": "Scrap"})
        return request, equipment

    @staticmethod
    def delete(db: Session, request_id: int):
        crud.delete_row(db, MaintenanceRequest, request_id)

    @staticmethod
    def assign_to_me(db: Session, request_id: int, user_id: int):
        if user_id is None:
            raise crud.StoreError("User not authenticated", MaintenanceRequest.__tablename__)

        technician = crud.list_rows(db, Technician, {"user_id": user_id}, limit=1)
        if technician:
            technician_id = technician[0].id
        else:
            technician_id = crud.create_row(db, Technician, {"user_id": user_id, "status": "Available"}).id

        return crud.update_row(db, MaintenanceRequest, request_id, {
            "assigned_technician_id": technician_id,
            "status": "In Progress",
            "started_at": datetime.utcnow(),
        })

    @staticmethod
    def complete_with_duration(db: Session, request_id: int, actual_hours: float, notes: str = None):
        fields = {
            "status": "Repaired",
            "actual_hours": actual_hours,
            "completed_at": datetime.utcnow(),
        }
        if notes:
            fields["description"] = notes
        return crud.update_row(db, MaintenanceRequest, request_id, fields)

    @staticmethod
    def notify_status_change(db: Session, request_id: int, actor_id: int):
        """Tell the request's creator that someone else moved it."""
        req = crud.get_row(db, MaintenanceRequest, request_id)
        if req.created_by is None or req.created_by == actor_id:
            return None
        return crud.create_row(db, Notification, {
            "user_id": req.created_by,
            "title": "Request Status Changed",
            "message": f'"{req.subject}" is now {req.status}',
            "type": "warning" if req.status == "Scrap" else "info",
            "link": "/kanban",
        })

    @staticmethod
    def subscribe(on_change):
        return crud.subscribe(MaintenanceRequest, on_change)

    # ============================
    # Presentation
    # ============================
    @staticmethod
    def to_card(req, now: datetime = None) -> RequestCard:
        now = now or datetime.utcnow()
        technician_name = technician_avatar = None
        if req.technician is not None and req.technician.profile is not None:
            profile = req.technician.profile
            technician_name = profile.full_name or profile.email
            technician_avatar = AvatarService.avatar_url(profile.avatar_url, technician_name)

        return RequestCard(
            id=req.id,
            request_number=req.request_number,
            subject=req.subject,
            status=req.status,
            type=req.type,
            priority=req.priority,
            equipment_id=req.equipment_id,
            equipment_name=req.equipment.name if req.equipment else None,
            team_name=req.team.name if req.team else None,
            team_color=req.team.color if req.team else None,
            technician_name=technician_name,
            technician_avatar=technician_avatar,
            scheduled_date=req.scheduled_date,
            is_overdue=bool(
                req.scheduled_date
                and req.scheduled_date < now
                and req.status in OPEN_STATUSES
            ),
        )
