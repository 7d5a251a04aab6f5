import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app_logger import get_logger, setup_logging
from config import settings
from crud import StoreError
from database import Base, engine
from dependencies import BASE_DIR
from middleware import AuthMiddleware

# Routers
from routers import (auth, calendar, dashboard, equipment, logs, notifications, profile, reports,
                     requests, root, teams, work_centers)

setup_logging()
logger = get_logger(__name__)

# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.APP_NAME)
app.add_middleware(AuthMiddleware)

os.makedirs(settings.AVATAR_DIR, exist_ok=True)
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
app.mount(settings.AVATAR_BASE_URL.rstrip("/"), StaticFiles(directory=settings.AVATAR_DIR), name="avatars")


@app.exception_handler(StoreError)
def store_error_handler(request: Request, exc: StoreError):
    logger.warning("Unhandled store error on %s: %s", request.url.path, exc.message)
    return JSONResponse({"detail": exc.message, "table": exc.table}, status_code=400)


# Pages
app.include_router(root.router)
app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(equipment.router)
app.include_router(requests.router)
app.include_router(calendar.router)
app.include_router(teams.router)
app.include_router(work_centers.router)
app.include_router(reports.router)
app.include_router(profile.router)
app.include_router(notifications.router)
app.include_router(logs.router)

# JSON API
app.include_router(equipment.api)
app.include_router(requests.api)
app.include_router(reports.api)
app.include_router(notifications.api)
