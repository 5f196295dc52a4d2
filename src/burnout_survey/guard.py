"""Route guard: keeps anonymous users out of the dashboard."""

from typing import Optional
from urllib.parse import quote

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from .context import TOKEN_KEY


LOGIN_PATH = "/"
HOME_PATH = "/dashboard"
PUBLIC_QUIZ_PATH = "/quiz"
UNGUARDED_PREFIXES = ("/static", "/health", "/favicon.ico", "/login", "/theme")


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def resolve_redirect(path: str, query: str, authenticated: bool) -> Optional[str]:
    """Where to send the request instead, or None to let it through."""
    if _under(path, PUBLIC_QUIZ_PATH):
        return None
    if any(_under(path, prefix) for prefix in UNGUARDED_PREFIXES):
        return None

    if path == LOGIN_PATH:
        return HOME_PATH if authenticated else None

    if not authenticated:
        origin = f"{path}?{query}" if query else path
        return f"{LOGIN_PATH}?from={quote(origin, safe='')}"
    return None


def safe_destination(target: Optional[str]) -> str:
    """Post-login destination: only local absolute paths are honoured."""
    if not target or not target.startswith("/") or target.startswith("//") or "\\" in target:
        return HOME_PATH
    return target


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """
    Middleware enforcing the session requirement on every page.

    - /quiz is always public.
    - / (login) sends signed-in users to the dashboard.
    - Everything else needs a session token, otherwise the user is sent to
      the login page with the original destination in ``from``.

    Needs the session middleware to run first.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        authenticated = bool(request.session.get(TOKEN_KEY))
        target = resolve_redirect(request.url.path, request.url.query, authenticated)
        if target is not None:
            return RedirectResponse(target, status_code=303)
        return await call_next(request)
