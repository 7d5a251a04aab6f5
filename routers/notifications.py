from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from starlette.status import HTTP_302_FOUND

from crud import StoreError
from database import get_db
from dependencies import get_current_user, render, require_user
from models import Notification
from services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])
api = APIRouter(prefix="/api/notifications", tags=["Notifications API"])


def _own_notification(db: Session, notification_id: int, user_id: int):
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification or notification.user_id != user_id:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.get("/")
def list_notifications(request: Request, db: Session = Depends(get_db), user=Depends(get_current_user)):
    return render(request, "notifications.html", {
        "notifications": NotificationService.for_user(db, user.user_id),
        "unread": NotificationService.unread_count(db, user.user_id),
    })


@router.post("/{notification_id}/read")
def mark_read(notification_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    _own_notification(db, notification_id, user.user_id)
    try:
        NotificationService.mark_as_read(db, notification_id)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
    return RedirectResponse("/notifications", status_code=HTTP_302_FOUND)


@router.post("/read-all")
def mark_all_read(db: Session = Depends(get_db), user=Depends(get_current_user)):
    try:
        NotificationService.mark_all_as_read(db, user.user_id)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
    return RedirectResponse("/notifications", status_code=HTTP_302_FOUND)


@router.post("/{notification_id}/delete")
def delete_notification(notification_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    _own_notification(db, notification_id, user.user_id)
    try:
        NotificationService.delete(db, notification_id)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
    return RedirectResponse("/notifications", status_code=HTTP_302_FOUND)


@api.get("/unread-count")
def api_unread_count(db: Session = Depends(get_db), user=Depends(require_user)):
    return {"unread": NotificationService.unread_count(db, user.user_id)}
