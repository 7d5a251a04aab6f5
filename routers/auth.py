from fastapi import APIRouter, Request, Form, Depends
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.status import HTTP_302_FOUND

from app_logger import get_logger
from config import settings
from crud import StoreError
from database import get_db
from dependencies import client_ip, close_session, log_activity, open_session, render
from schemas import SignUp
from services.auth_service import AuthError, AuthService

router = APIRouter(tags=["Auth"])
logger = get_logger(__name__)


def _signed_in(profile) -> RedirectResponse:
    token = open_session(profile)
    response = RedirectResponse(url="/dashboard", status_code=HTTP_302_FOUND)
    response.set_cookie(key=settings.SESSION_COOKIE, value=token, httponly=True, samesite="lax")
    return response


@router.get("/login")
def login_form(request: Request):
    return render(request, "login.html")


@router.post("/login")
def login_post(request: Request, email: str = Form(...), password: str = Form(...),
               db: Session = Depends(get_db)):
    ip = client_ip(request)
    try:
        profile = AuthService.sign_in(db, email, password)
    except AuthError as exc:
        log_activity(db, user=email, action="Failed sign-in", ip=ip)
        return render(request, "login.html", {"error": str(exc), "email": email}, status_code=400)

    log_activity(db, user=profile.email, action="Signed in", ip=ip)
    logger.info("User %s signed in", profile.email)
    return _signed_in(profile)


@router.get("/signup")
def signup_form(request: Request):
    return render(request, "signup.html")


@router.post("/signup")
def signup_post(request: Request, full_name: str = Form(...), email: str = Form(...),
                password: str = Form(...), db: Session = Depends(get_db)):
    form = {"full_name": full_name, "email": email}
    try:
        data = SignUp(email=email, password=password, full_name=full_name)
        profile = AuthService.sign_up(db, data.email, data.password, data.full_name)
    except ValidationError as exc:
        message = "; ".join(err["msg"] for err in exc.errors())
        return render(request, "signup.html", {"error": message, **form}, status_code=400)
    except (AuthError, StoreError) as exc:
        return render(request, "signup.html", {"error": str(exc), **form}, status_code=400)

    log_activity(db, user=profile.email, action="Created account", ip=client_ip(request))
    return _signed_in(profile)


@router.api_route("/logout", methods=["GET", "POST"])
def logout(request: Request, db: Session = Depends(get_db)):
    token = request.cookies.get(settings.SESSION_COOKIE)
    ctx = close_session(token) if token else None
    if ctx is not None:
        log_activity(db, user=ctx.email, action="Signed out", ip=client_ip(request))

    response = RedirectResponse(url="/login", status_code=HTTP_302_FOUND)
    response.delete_cookie(settings.SESSION_COOKIE)
    return response
