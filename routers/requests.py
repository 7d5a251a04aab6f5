from datetime import datetime

from fastapi import APIRouter, Request, Form, Depends, HTTPException
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.status import HTTP_302_FOUND

from app_logger import get_logger
from crud import StoreError
from database import get_db
from dependencies import (client_ip, get_current_user, log_activity, optional_float, optional_int,
                          render, require_user)
from schemas import MoveRequest, MoveResult, RequestCard, RequestCreate
from services.equipment_service import EquipmentService
from services.kanban_service import COLUMNS
from services.request_service import RequestService
from services.team_service import TeamService
from services.workcenter_service import WorkCenterService

router = APIRouter(tags=["Requests"])
api = APIRouter(prefix="/api", tags=["Requests API"])
logger = get_logger(__name__)


def _board(user, db: Session):
    board = user.kanban
    board.watch()
    return board.columns(db)


def _move(user, db: Session, move: MoveRequest) -> MoveResult:
    board = user.kanban
    board.watch()
    try:
        board.columns(db)
        result = board.move_request(db, move.request_id, move.from_column, move.to_column, move.to_index)
    except StoreError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if result.moved and move.to_column != move.from_column:
        try:
            RequestService.notify_status_change(db, move.request_id, user.user_id)
        except StoreError as exc:
            logger.warning("Could not notify creator of request %s: %s", move.request_id, exc.message)
    return result


# ============================
# Kanban board
# ============================
@router.get("/kanban")
def kanban(request: Request, db: Session = Depends(get_db), user=Depends(get_current_user)):
    try:
        columns = _board(user, db)
    except StoreError as exc:
        return render(request, "kanban.html", {"columns": {c: [] for c in COLUMNS}, "error": exc.message})
    return render(request, "kanban.html", {"columns": columns, "column_ids": COLUMNS})


@router.post("/kanban/move")
def kanban_move(
    request_id: int = Form(...),
    from_column: str = Form(...),
    to_column: str = Form(...),
    to_index: int = Form(0),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    try:
        move = MoveRequest(request_id=request_id, from_column=from_column, to_column=to_column,
                           to_index=to_index)
        result = _move(user, db, move)
    except ValidationError as exc:
        user.flash("Error", "; ".join(err["msg"] for err in exc.errors()), "destructive")
    except HTTPException as exc:
        user.flash("Error", str(exc.detail), "destructive")
    else:
        user.toasts.extend(result.toasts)
    return RedirectResponse("/kanban", status_code=HTTP_302_FOUND)


# ============================
# Create request
# ============================
@router.get("/requests/add")
def add_request_form(request: Request, equipment_id: int = None, db: Session = Depends(get_db)):
    return render(request, "request_form.html", {
        "equipment": [eq for eq in EquipmentService.get_all(db) if eq.status != "Scrap"],
        "teams": TeamService.get_all(db),
        "work_centers": WorkCenterService.get_active(db),
        "selected_equipment": equipment_id,
    })


@router.post("/requests/add")
def add_request(
    request: Request,
    subject: str = Form(...),
    description: str = Form(""),
    equipment_id: str = Form(""),
    team_id: str = Form(""),
    work_center_id: str = Form(""),
    type: str = Form("Corrective"),
    priority: str = Form("Medium"),
    scheduled_date: str = Form(""),
    estimated_hours: str = Form(""),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    try:
        data = RequestCreate(
            subject=subject,
            description=description or None,
            equipment_id=optional_int(equipment_id),
            team_id=optional_int(team_id),
            work_center_id=optional_int(work_center_id),
            type=type,
            priority=priority,
            status="New",
            scheduled_date=datetime.fromisoformat(scheduled_date) if scheduled_date else None,
            estimated_hours=optional_float(estimated_hours),
        )
        data, team_name = RequestService.auto_fill_team(db, data)
        created = RequestService.create(db, data, user.user_id)
    except (ValidationError, ValueError) as exc:
        user.flash("Error", str(exc), "destructive")
        return RedirectResponse("/requests/add", status_code=HTTP_302_FOUND)
    except StoreError as exc:
        user.flash("Error", exc.message or "Failed to create request.", "destructive")
        return RedirectResponse("/requests/add", status_code=HTTP_302_FOUND)

    if team_name:
        user.flash("Auto-filled", f"Maintenance team set from equipment: {team_name}")
    user.flash("Request Created", f"{created.type} maintenance request has been created successfully.")
    log_activity(db, user=user.email, action=f"Created request {created.request_number}", ip=client_ip(request))
    return RedirectResponse("/kanban", status_code=HTTP_302_FOUND)


# ============================
# Assignment / completion
# ============================
@router.post("/requests/{request_id}/assign")
def assign_to_me(request_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    try:
        req = RequestService.assign_to_me(db, request_id, user.user_id)
        user.flash("Request Assigned", f'"{req.subject}" is now assigned to you.')
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
    return RedirectResponse("/kanban", status_code=HTTP_302_FOUND)


@router.post("/requests/{request_id}/complete")
def complete_request(request_id: int, actual_hours: float = Form(..., ge=0), notes: str = Form(""),
                     db: Session = Depends(get_db), user=Depends(get_current_user)):
    try:
        req = RequestService.complete_with_duration(db, request_id, actual_hours, notes or None)
        user.flash("Request Completed", f'"{req.subject}" marked as Repaired ({actual_hours}h).')
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
    return RedirectResponse("/kanban", status_code=HTTP_302_FOUND)


# ============================
# JSON API
# ============================
@api.get("/requests", response_model=list[RequestCard])
def api_list_requests(db: Session = Depends(get_db), user=Depends(require_user)):
    try:
        return [RequestService.to_card(r) for r in RequestService.get_all(db)]
    except StoreError as exc:
        raise HTTPException(status_code=400, detail=exc.message)


@api.post("/requests", response_model=RequestCard, status_code=201)
def api_create_request(data: RequestCreate, db: Session = Depends(get_db), user=Depends(require_user)):
    try:
        data, _ = RequestService.auto_fill_team(db, data)
        created = RequestService.create(db, data, user.user_id)
        return RequestService.to_card(RequestService.get(db, created.id))
    except StoreError as exc:
        raise HTTPException(status_code=400, detail=exc.message)


@api.get("/kanban")
def api_kanban(db: Session = Depends(get_db), user=Depends(require_user)):
    try:
        columns = _board(user, db)
    except StoreError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    return {status: [card.model_dump(mode="json") for card in cards] for status, cards in columns.items()}


@api.post("/kanban/move", response_model=MoveResult)
def api_kanban_move(move: MoveRequest, db: Session = Depends(get_db), user=Depends(require_user)):
    return _move(user, db, move)
