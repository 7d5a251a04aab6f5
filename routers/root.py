# routers/root.py
from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from dependencies import get_current_user

router = APIRouter()


@router.get("/")
def root(user=Depends(get_current_user)):
    if user:
        return RedirectResponse(url="/dashboard")
    return RedirectResponse(url="/login")


@router.get("/healthz")
def healthz():
    return {"status": "ok"}
