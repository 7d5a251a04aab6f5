"""
Authentication middleware.

Resolves the session cookie into the signed-in AppContext and stores it on
``request.state.ctx``. Pages without a session are redirected to the login
view; JSON API calls get a 401.
"""

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, RedirectResponse, Response

from config import settings
from dependencies import sessions


class AuthMiddleware(BaseHTTPMiddleware):

    # Routes that do not need an authenticated session
    PUBLIC_ROUTES = [
        "/login",
        "/signup",
        "/static",
        "/media",
        "/favicon.ico",
        "/docs",
        "/openapi.json",
        "/redoc",
        "/healthz",
    ]

    API_PREFIX = "/api/"

    async def dispatch(self, request, call_next: Callable) -> Response:
        path = request.url.path
        token = request.cookies.get(settings.SESSION_COOKIE)
        ctx = sessions.get(token) if token else None
        request.state.ctx = ctx

        if ctx is not None or path == "/" or self._is_public(path):
            return await call_next(request)

        if path.startswith(self.API_PREFIX):
            return JSONResponse({"detail": "Not authenticated"}, status_code=401)
        return RedirectResponse("/login", status_code=302)

    def _is_public(self, path: str) -> bool:
        return any(path.startswith(route) for route in self.PUBLIC_ROUTES)
