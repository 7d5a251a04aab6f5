from datetime import date
from typing import Optional

from fastapi import APIRouter, Request, Form, Depends, HTTPException
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.status import HTTP_302_FOUND

from crud import StoreError
from database import get_db
from dependencies import client_ip, get_current_user, log_activity, optional_int, render, require_user
from schemas import EquipmentCreate, EquipmentResponse, EquipmentUpdate
from services.equipment_service import EquipmentService
from services.request_service import RequestService
from services.team_service import TeamService

router = APIRouter(prefix="/equipment", tags=["Equipment"])
api = APIRouter(prefix="/api/equipment", tags=["Equipment API"])


def _optional_date(value) -> Optional[date]:
    return date.fromisoformat(value) if value else None


# ============================
# List equipment
# ============================
@router.get("/")
def list_equipment(request: Request, search: str = "", category: str = "all",
                   db: Session = Depends(get_db), user=Depends(get_current_user)):
    try:
        equipment = EquipmentService.get_all(db)
        categories = EquipmentService.categories(db)
    except StoreError as exc:
        return render(request, "equipment_list.html",
                      {"equipment": [], "categories": [], "error": exc.message,
                       "search": search, "category": category})

    return render(request, "equipment_list.html", {
        "equipment": EquipmentService.filter_equipment(equipment, search, category),
        "categories": categories,
        "search": search,
        "category": category,
    })


# ============================
# Add form
# ============================
@router.get("/add")
def add_equipment_form(request: Request, db: Session = Depends(get_db)):
    # Categories and teams feed the two selects of the form
    return render(request, "equipment_form.html", {
        "categories": EquipmentService.categories(db),
        "teams": TeamService.get_all(db),
        "action": "add",
    })


# ============================
# Add equipment
# ============================
@router.post("/add")
def add_equipment(
    request: Request,
    name: str = Form(...),
    serial_number: str = Form(...),
    category_id: str = Form(""),
    status: str = Form("Active"),
    location: str = Form(""),
    department: str = Form(""),
    assigned_to: str = Form(""),
    maintenance_team_id: str = Form(""),
    purchase_date: str = Form(""),
    warranty_expiry_date: str = Form(""),
    warranty_provider: str = Form(""),
    notes: str = Form(""),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    try:
        data = EquipmentCreate(
            name=name,
            serial_number=serial_number,
            category_id=optional_int(category_id),
            status=status,
            location=location or None,
            department=department or None,
            assigned_to=assigned_to or None,
            maintenance_team_id=optional_int(maintenance_team_id),
            purchase_date=_optional_date(purchase_date),
            warranty_expiry_date=_optional_date(warranty_expiry_date),
            warranty_provider=warranty_provider or None,
            notes=notes or None,
        )
        equipment = EquipmentService.create(db, data, user.user_id)
    except (ValidationError, ValueError) as exc:
        user.flash("Error", str(exc), "destructive")
        return RedirectResponse("/equipment/add", status_code=HTTP_302_FOUND)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
        return RedirectResponse("/equipment/add", status_code=HTTP_302_FOUND)

    log_activity(db, user=user.email, action=f"Added equipment {equipment.name} ({equipment.serial_number})",
                 ip=client_ip(request))
    user.flash("Equipment Added", f'"{equipment.name}" has been added to the inventory.')
    return RedirectResponse("/equipment", status_code=HTTP_302_FOUND)


# ============================
# Update status / location
# ============================
@router.post("/edit/{equipment_id}")
def edit_equipment(
    equipment_id: int,
    status: str = Form(...),
    location: str = Form(""),
    notes: str = Form(""),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    try:
        data = EquipmentUpdate(status=status, location=location or None, notes=notes or None)
        EquipmentService.update(db, equipment_id, data)
        user.flash("Equipment Updated", f"Equipment #{equipment_id} saved.")
    except ValidationError as exc:
        user.flash("Error", str(exc), "destructive")
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
    return RedirectResponse("/equipment", status_code=HTTP_302_FOUND)


# ============================
# Delete equipment
# ============================
@router.post("/delete/{equipment_id}")
def delete_equipment(request: Request, equipment_id: int, db: Session = Depends(get_db),
                     user=Depends(get_current_user)):
    try:
        EquipmentService.delete(db, equipment_id)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
        return RedirectResponse("/equipment", status_code=HTTP_302_FOUND)

    log_activity(db, user=user.email, action=f"Deleted equipment ID {equipment_id}", ip=client_ip(request))
    return RedirectResponse("/equipment", status_code=HTTP_302_FOUND)


# ============================
# Requests of one equipment
# ============================
@router.get("/{equipment_id}/requests")
def equipment_requests(request: Request, equipment_id: int, db: Session = Depends(get_db)):
    try:
        equipment = EquipmentService.get(db, equipment_id)
    except StoreError:
        return RedirectResponse("/equipment")

    open_requests, closed_requests = RequestService.split_open_closed(
        RequestService.by_equipment(db, equipment_id)
    )
    return render(request, "equipment_requests.html", {
        "equipment": equipment,
        "open_requests": open_requests,
        "closed_requests": closed_requests,
    })


# ============================
# JSON API
# ============================
@api.get("/", response_model=list[EquipmentResponse])
def api_list_equipment(db: Session = Depends(get_db), user=Depends(require_user)):
    try:
        return EquipmentService.get_all(db)
    except StoreError as exc:
        raise HTTPException(status_code=400, detail=exc.message)


@api.patch("/{equipment_id}", response_model=EquipmentResponse)
def api_update_equipment(equipment_id: int, data: EquipmentUpdate, db: Session = Depends(get_db),
                         user=Depends(require_user)):
    try:
        return EquipmentService.update(db, equipment_id, data)
    except StoreError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
