from fastapi import APIRouter, Request, Form, Depends
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.status import HTTP_302_FOUND

from crud import StoreError
from database import get_db
from dependencies import get_current_user, render
from schemas import WorkCenterCreate
from services.workcenter_service import WorkCenterService

router = APIRouter(prefix="/work-centers", tags=["Work Centers"])


@router.get("/")
def list_work_centers(request: Request, q: str = "", db: Session = Depends(get_db)):
    return render(request, "work_centers_list.html", {
        "work_centers": WorkCenterService.search(WorkCenterService.get_all(db), q),
        "q": q,
    })


@router.post("/add")
def add_work_center(
    name: str = Form(...),
    code: str = Form(""),
    location: str = Form(""),
    description: str = Form(""),
    capacity: int = Form(1),
    status: str = Form("Active"),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    try:
        wc = WorkCenterService.create(db, WorkCenterCreate(
            name=name,
            code=code or None,
            location=location or None,
            description=description or None,
            capacity=capacity,
            status=status,
        ))
        user.flash("Work Center Added", f'"{wc.name}" has been added.')
    except ValidationError as exc:
        user.flash("Error", str(exc), "destructive")
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
    return RedirectResponse("/work-centers", status_code=HTTP_302_FOUND)


@router.post("/delete/{work_center_id}")
def delete_work_center(work_center_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    try:
        WorkCenterService.delete(db, work_center_id)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
    return RedirectResponse("/work-centers", status_code=HTTP_302_FOUND)
