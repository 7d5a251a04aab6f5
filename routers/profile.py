from fastapi import APIRouter, Request, Form, Depends, File, UploadFile
from fastapi.responses import RedirectResponse
from PIL import UnidentifiedImageError
from sqlalchemy.orm import Session
from starlette.status import HTTP_302_FOUND

from config import settings
from crud import StoreError
from database import get_db
from dependencies import get_current_user, render
from schemas import ProfileUpdate
from services.auth_service import AuthService
from services.avatar_service import AvatarService

router = APIRouter(prefix="/profile", tags=["Profile"])

CHUNK_SIZE = 64 * 1024


async def _read_capped(file: UploadFile, limit: int) -> bytes:
    """Read the upload in chunks, stopping once more than ``limit`` bytes have arrived."""
    chunks, total = [], 0
    while total <= limit:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break
        chunks.append(chunk)
        total += len(chunk)
    return b"".join(chunks)


@router.get("/")
def profile_view(request: Request, db: Session = Depends(get_db), user=Depends(get_current_user)):
    profile = AuthService.get_profile(db, user.user_id)
    return render(request, "profile.html", {"profile": profile})


@router.post("/")
def profile_update(full_name: str = Form(""), department: str = Form(""),
                   db: Session = Depends(get_db), user=Depends(get_current_user)):
    try:
        profile = AuthService.update_profile(
            db, user.user_id, ProfileUpdate(full_name=full_name or None, department=department or None)
        )
        user.refresh_profile(profile)
        user.flash("Profile Updated", "Your profile has been saved.")
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
    return RedirectResponse("/profile", status_code=HTTP_302_FOUND)


@router.post("/avatar")
async def avatar_upload(file: UploadFile = File(...), db: Session = Depends(get_db),
                        user=Depends(get_current_user)):
    error = AvatarService.validate_image(file.content_type, file.size or 0)
    data = b""
    if not error:
        data = await _read_capped(file, settings.AVATAR_MAX_SIZE_MB * 1024 * 1024)
        error = AvatarService.validate_image(file.content_type, len(data))
    if error:
        user.flash("Error", error, "destructive")
        return RedirectResponse("/profile", status_code=HTTP_302_FOUND)

    old_url = user.avatar_url
    try:
        new_url = AuthService.upload_avatar(user.user_id, data)
    except UnidentifiedImageError:
        user.flash("Error", "Failed to load image", "destructive")
        return RedirectResponse("/profile", status_code=HTTP_302_FOUND)

    try:
        profile = AuthService.update_avatar_url(db, user.user_id, new_url)
    except StoreError as exc:
        AuthService.delete_avatar(new_url)
        user.flash("Error", exc.message, "destructive")
        return RedirectResponse("/profile", status_code=HTTP_302_FOUND)

    if old_url:
        AuthService.delete_avatar(old_url)
    user.refresh_profile(profile)
    user.flash("Avatar Updated", "Your new avatar is live.")
    return RedirectResponse("/profile", status_code=HTTP_302_FOUND)


@router.post("/avatar/reset")
def avatar_reset(db: Session = Depends(get_db), user=Depends(get_current_user)):
    old_url = user.avatar_url
    try:
        profile = AuthService.update_avatar_url(db, user.user_id, None)
    except StoreError as exc:
        user.flash("Error", exc.message, "destructive")
        return RedirectResponse("/profile", status_code=HTTP_302_FOUND)

    if old_url:
        AuthService.delete_avatar(old_url)
    user.refresh_profile(profile)
    return RedirectResponse("/profile", status_code=HTTP_302_FOUND)
