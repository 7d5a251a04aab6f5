import time
from pathlib import Path

from sqlalchemy.orm import Session

import crud
from app_logger import get_logger
from config import settings
from models import Profile
from schemas import ProfileUpdate
from security import hash_password, verify_password
from services.avatar_service import AvatarService

logger = get_logger(__name__)


class AuthError(Exception):
    pass


class AuthService:

    @staticmethod
    def sign_up(db: Session, email: str, password: str, full_name: str) -> Profile:
        email = email.strip().lower()
        if db.query(Profile).filter(Profile.email == email).first():
            raise AuthError("User already registered")

        return crud.create_row(db, Profile, {
            "email": email,
            "password": hash_password(password),
            "full_name": full_name,
            "role": "technician",
        })

    @staticmethod
    def sign_in(db: Session, email: str, password: str) -> Profile:
        profile = db.query(Profile).filter(Profile.email == email.strip().lower()).first()
        if not profile or not verify_password(password, profile.password):
            logger.info("Failed sign-in for %s", email)
            raise AuthError("Invalid login credentials")
        return profile

    @staticmethod
    def get_profile(db: Session, user_id: int) -> Profile:
        return crud.get_row(db, Profile, user_id)

    @staticmethod
    def update_profile(db: Session, user_id: int, updates: ProfileUpdate) -> Profile:
        return crud.update_row(db, Profile, user_id, updates.model_dump(exclude_unset=True))

    # ============================
    # Avatar bucket
    # ============================
    @staticmethod
    def upload_avatar(user_id: int, data: bytes) -> str:
        """Store a compressed JPEG at ``{userId}/{timestamp}.jpg`` and return its public URL."""
        file_path = f"{user_id}/{int(time.time() * 1000)}.jpg"
        target = Path(settings.AVATAR_DIR) / file_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(AvatarService.compress_image(data))
        return f"{settings.AVATAR_BASE_URL.rstrip('/')}/{file_path}"

    @staticmethod
    def update_avatar_url(db: Session, user_id: int, avatar_url: str) -> Profile:
        return AuthService.update_profile(db, user_id, ProfileUpdate(avatar_url=avatar_url))

    @staticmethod
    def delete_avatar(avatar_url: str) -> bool:
        prefix = settings.AVATAR_BASE_URL.rstrip("/") + "/"
        if not avatar_url or not avatar_url.startswith(prefix):
            return False

        root = Path(settings.AVATAR_DIR).resolve()
        target = (root / avatar_url[len(prefix):]).resolve()
        if root not in target.parents:
            logger.warning("Refusing to delete avatar outside bucket: %s", avatar_url)
            return False
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        return True
