"""Per-request UI context and per-browser session state."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from starlette.requests import Request

from .models import WizardSession
from .statistics import StatisticsCache


logger = logging.getLogger(__name__)

SESSION_ID_KEY = "sid"
TOKEN_KEY = "token"
USER_KEY = "user"
THEME_KEY = "theme"
FLASH_KEY = "flash"

THEMES = ("light", "dark", "system")


@dataclass
class UIContext:
    """Session and theme, passed explicitly to handlers and templates."""
    session_id: str
    user: Optional[str] = None
    token: Optional[str] = None
    theme: str = "system"

    @property
    def authenticated(self) -> bool:
        return bool(self.token)


@dataclass
class BrowserSession:
    """Server-side state for one browser session (not persisted)."""
    session_id: str
    wizards: dict[str, WizardSession] = field(default_factory=dict)
    statistics: StatisticsCache = field(default_factory=StatisticsCache)
    created_at: datetime = field(default_factory=datetime.now)
    last_seen: datetime = field(default_factory=datetime.now)


class SessionStore:
    """In-memory registry of browser sessions.

    Sessions idle for longer than ``max_idle_seconds`` (the cookie lifetime)
    are evicted whenever a session is looked up.
    """

    def __init__(self, max_idle_seconds: int = 14 * 24 * 3600):
        self.active_sessions: dict[str, BrowserSession] = {}
        self.max_idle = timedelta(seconds=max_idle_seconds)

    def prune(self, now: Optional[datetime] = None) -> int:
        """Drop idle sessions; returns how many were evicted."""
        cutoff = (now or datetime.now()) - self.max_idle
        stale = [sid for sid, s in self.active_sessions.items() if s.last_seen < cutoff]
        for session_id in stale:
            del self.active_sessions[session_id]
        if stale:
            logger.info("Evicted %d idle browser sessions", len(stale))
        return len(stale)

    def get(self, session_id: str) -> BrowserSession:
        now = datetime.now()
        self.prune(now)
        session = self.active_sessions.get(session_id)
        if session is None:
            session = BrowserSession(session_id=session_id)
            self.active_sessions[session_id] = session
            logger.info("[SESSION %s] Browser session opened", session_id[:8])
        session.last_seen = now
        return session

    def wizard(self, session_id: str, mode: str) -> WizardSession:
        """The wizard for ``mode`` (``public`` or ``dashboard``) in this session."""
        browser = self.get(session_id)
        wizard = browser.wizards.get(mode)
        if wizard is None:
            wizard = WizardSession(session_id=session_id)
            browser.wizards[mode] = wizard
        return wizard

    def drop(self, session_id: str) -> None:
        if self.active_sessions.pop(session_id, None) is not None:
            logger.info("[SESSION %s] Browser session closed", session_id[:8])


def build_context(request: Request, default_theme: str = "system") -> UIContext:
    """Read the UI context from the signed session cookie, creating an id if needed."""
    session_id = request.session.get(SESSION_ID_KEY)
    if not session_id:
        session_id = str(uuid.uuid4())
        request.session[SESSION_ID_KEY] = session_id
    theme = request.session.get(THEME_KEY, default_theme)
    if theme not in THEMES:
        theme = default_theme
    return UIContext(
        session_id=session_id,
        user=request.session.get(USER_KEY),
        token=request.session.get(TOKEN_KEY),
        theme=theme,
    )


def sign_in(request: Request, token: str, user: str) -> None:
    request.session[TOKEN_KEY] = token
    request.session[USER_KEY] = user


def sign_out(request: Request, store: SessionStore) -> None:
    """Tear down the session: cookie contents and server-side state."""
    session_id = request.session.get(SESSION_ID_KEY)
    if session_id:
        store.drop(session_id)
    request.session.clear()


def set_theme(request: Request, theme: str) -> bool:
    if theme not in THEMES:
        return False
    request.session[THEME_KEY] = theme
    return True


def flash(request: Request, message: str) -> None:
    """Queue a one-shot notice for the next rendered page."""
    request.session[FLASH_KEY] = message


def pop_flash(request: Request) -> Optional[str]:
    return request.session.pop(FLASH_KEY, None)
