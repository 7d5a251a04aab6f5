from fastapi import APIRouter, Request, Depends
from sqlalchemy.orm import Session

from crud import StoreError
from database import get_db
from dependencies import get_current_user, render
from services.equipment_service import EquipmentService
from services.request_service import RequestService

router = APIRouter(tags=["Dashboard"])

RECENT_LIMIT = 5


@router.get("/dashboard")
def dashboard(request: Request, db: Session = Depends(get_db), user=Depends(get_current_user)):
    stats = {"total_equipment": 0, "open_requests": 0, "in_progress": 0, "completed": 0}
    recent = []
    try:
        equipment = EquipmentService.get_all(db)
        requests = RequestService.get_all(db)
        stats = {
            "total_equipment": len(equipment),
            "open_requests": sum(1 for r in requests if r.status == "New"),
            "in_progress": sum(1 for r in requests if r.status == "In Progress"),
            "completed": sum(1 for r in requests if r.status == "Repaired"),
        }
        recent = [RequestService.to_card(r) for r in requests[:RECENT_LIMIT]]
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")

    return render(request, "dashboard.html", {"stats": stats, "recent": recent})
