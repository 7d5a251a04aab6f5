from fastapi import APIRouter, Request, Form, Depends
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.status import HTTP_302_FOUND

from crud import StoreError
from database import get_db
from dependencies import client_ip, get_current_user, log_activity, render
from schemas import TeamCreate
from services.equipment_service import EquipmentService
from services.team_service import TeamService

router = APIRouter(prefix="/teams", tags=["Teams"])


@router.get("/")
def list_teams(request: Request, db: Session = Depends(get_db)):
    return render(request, "teams_list.html", {"teams": TeamService.get_all(db)})


@router.post("/add")
def add_team(
    request: Request,
    name: str = Form(...),
    description: str = Form(""),
    color: str = Form("#6366f1"),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    try:
        team = TeamService.create(db, TeamCreate(name=name, description=description or None, color=color))
    except ValidationError as exc:
        user.flash("Error", str(exc), "destructive")
        return RedirectResponse("/teams", status_code=HTTP_302_FOUND)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
        return RedirectResponse("/teams", status_code=HTTP_302_FOUND)

    log_activity(db, user=user.email, action=f"Created team {team.name}", ip=client_ip(request))
    user.flash("Team Created", f'"{team.name}" has been created.')
    return RedirectResponse("/teams", status_code=HTTP_302_FOUND)


@router.get("/{team_id}")
def team_detail(request: Request, team_id: int, db: Session = Depends(get_db)):
    try:
        team = TeamService.get(db, team_id)
    except StoreError:
        return RedirectResponse("/teams")
    return render(request, "team_detail.html", {
        "team": team,
        "technicians": TeamService.technicians(db, team_id),
        "equipment": EquipmentService.by_team(db, team_id),
    })


@router.post("/delete/{team_id}")
def delete_team(team_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    try:
        TeamService.delete(db, team_id)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
    return RedirectResponse("/teams", status_code=HTTP_302_FOUND)
