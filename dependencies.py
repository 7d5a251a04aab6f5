from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from fastapi import HTTPException, Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

import models
from config import settings
from schemas import Toast
from security import new_session_token
from services.avatar_service import AvatarService
from services.kanban_service import KanbanBoard

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates.env.globals["avatar_url"] = AvatarService.avatar_url
templates.env.globals["initials"] = AvatarService.initials


@dataclass
class AppContext:
    """Everything one signed-in browser session carries between requests."""

    user_id: int
    email: str
    full_name: Optional[str] = None
    role: str = "technician"
    avatar_url: Optional[str] = None
    kanban: KanbanBoard = field(default_factory=KanbanBoard)
    toasts: List[Toast] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def refresh_profile(self, profile: models.Profile):
        self.email = profile.email
        self.full_name = profile.full_name
        self.role = profile.role
        self.avatar_url = profile.avatar_url

    def flash(self, title: str, description: str = "", variant: str = "default"):
        self.toasts.append(Toast(title=title, description=description, variant=variant))

    def pop_toasts(self) -> List[Toast]:
        toasts, self.toasts = self.toasts, []
        return toasts

    def close(self):
        self.kanban.close()


sessions = {}


def open_session(profile: models.Profile) -> str:
    token = new_session_token()
    ctx = AppContext(user_id=profile.id, email=profile.email)
    ctx.refresh_profile(profile)
    sessions[token] = ctx
    return token


def close_session(token: str):
    ctx = sessions.pop(token, None)
    if ctx is not None:
        ctx.close()
    return ctx


def get_current_user(request: Request) -> Optional[AppContext]:
    ctx = getattr(request.state, "ctx", None)
    if ctx is not None:
        return ctx
    token = request.cookies.get(settings.SESSION_COOKIE)
    if token and token in sessions:
        return sessions[token]
    return None


def require_user(request: Request) -> AppContext:
    ctx = get_current_user(request)
    if ctx is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return ctx


def log_activity(db: Session, user: str, action: str, ip: str = None):
    """Write one line to the activity log."""
    db.add(models.ActivityLog(user=user, action=action, ip=ip))
    db.commit()


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def render(request: Request, name: str, context: dict = None, status_code: int = 200):
    ctx = get_current_user(request)
    page = {
        "user": ctx,
        "toasts": ctx.pop_toasts() if ctx else [],
    }
    page.update(context or {})
    return templates.TemplateResponse(request, name, page, status_code=status_code)


def optional_int(value) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


def optional_float(value) -> Optional[float]:
    if value in (None, ""):
        return None
    return float(value)
