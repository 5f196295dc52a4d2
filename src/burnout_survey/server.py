"""Web server for the compassion fatigue survey dashboard."""

import logging
import secrets
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware

from .config.settings import Settings
from .context import (
    SessionStore,
    UIContext,
    build_context,
    flash,
    pop_flash,
    set_theme,
    sign_in,
    sign_out,
)
from .gateway import PUBLIC_ACCESS_TOKEN, StatisticsGateway, create_gateway
from .guard import HOME_PATH, LOGIN_PATH, RouteGuardMiddleware, safe_destination
from .intake import FIELD_LABELS, validate_login
from .models import DEPARTMENTS, MARITAL_STATES, SEXES, WizardState
from .state_machine import QuizWizard
from .statistics import DEFAULT_TAB, TABS, TabView
from . import view_models as vm


logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

QUIZ_MODES = {
    "public": "/quiz",
    "dashboard": "/dashboard/quiz",
}


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def _tab_charts(tab: str, view: TabView) -> dict[str, Any]:
    """Template variables for one statistics tab."""
    if view.empty:
        return {}
    sources = view.sources
    if tab == "demographics":
        return {"charts": [c.to_json() for c in vm.demographic_charts(sources["detailed"])]}
    if tab == "questions":
        return {
            "questions": [
                {
                    "text": q.get("questionText", ""),
                    "charts": [c.to_json() for c in vm.question_charts(q)],
                }
                for q in sources["detailed"].get("questions") or []
            ]
        }
    if tab == "table":
        return {"tables": vm.table_sections(sources["table"])}
    if tab == "global":
        charts = [vm.global_score_chart(sources["global"])] + vm.global_category_charts(sources["global"])
        return {"charts": [c.to_json() for c in charts], "legend": vm.score_legend()}
    if tab == "custom":
        custom = sources["custom"]
        return {
            "charts": [vm.custom_group_chart(custom, g).to_json() for g in vm.custom_group_ids(custom)],
            "legend": vm.score_legend(),
            "groups": vm.GROUP_DESCRIPTIONS,
            "group_titles": vm.GROUP_TITLES,
        }
    if tab == "radar":
        custom, global_data = sources["custom"], sources["global"]
        return {
            "charts": [vm.radar_chart(global_data, custom, g).to_json() for g in vm.custom_group_ids(custom)],
            "legend": vm.score_legend(),
            "groups": vm.GROUP_DESCRIPTIONS,
            "group_titles": vm.GROUP_TITLES,
        }
    return {}


def create_app(settings: Settings, gateway: Optional[StatisticsGateway] = None) -> FastAPI:
    """Build the web application around a statistics gateway."""
    gateway = gateway or create_gateway(settings)
    store = SessionStore(max_idle_seconds=settings.session.max_age_seconds)
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Statistics service at %s", settings.backend.base_url)
        try:
            yield
        finally:
            await gateway.aclose()

    app = FastAPI(title="Test d'usure de compassion", lifespan=lifespan)
    app.state.store = store
    app.state.gateway = gateway

    secret_key = settings.session.secret_key
    if not secret_key:
        logger.warning("SESSION_SECRET_KEY is not set; sessions will not survive a restart")
        secret_key = secrets.token_urlsafe(32)

    # Added last so the session is decoded before the guard runs.
    app.add_middleware(RouteGuardMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=secret_key,
        session_cookie=settings.session.cookie_name,
        max_age=settings.session.max_age_seconds,
        https_only=settings.session.https_only,
    )

    def get_ui(request: Request) -> UIContext:
        return build_context(request, settings.session.default_theme)

    def render(request: Request, ui: UIContext, name: str, status_code: int = 200, **context) -> HTMLResponse:
        flashed = pop_flash(request)
        if context.get("notice") is None:
            context["notice"] = flashed
        return templates.TemplateResponse(
            request,
            name,
            {"ui": ui, **context},
            status_code=status_code,
        )

    # Health

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    # Authentication

    @app.get("/", response_class=HTMLResponse)
    async def login_page(request: Request, ui: UIContext = Depends(get_ui)):
        return render(
            request, ui, "login.html",
            origin=request.query_params.get("from", ""),
            email="",
            errors={},
        )

    @app.post("/login", response_class=HTMLResponse)
    async def login(
        request: Request,
        email: str = Form(""),
        password: str = Form(""),
        origin: str = Form("", alias="from"),
        ui: UIContext = Depends(get_ui),
    ):
        errors = validate_login(email, password)
        if errors:
            return render(request, ui, "login.html", status_code=422, origin=origin, email=email, errors=errors)

        result = await gateway.login(email.strip(), password)
        if not result.ok:
            logger.info("[SESSION %s] Sign-in refused", ui.session_id[:8])
            return render(
                request, ui, "login.html", status_code=401,
                origin=origin, email=email, errors={}, notice=result.error.message,
            )

        sign_in(request, result.data["token"], result.data["name"])
        flash(request, "Bienvenu(e) de retour!")
        logger.info("[SESSION %s] Signed in", ui.session_id[:8])
        return _redirect(safe_destination(origin))

    @app.post("/logout")
    async def logout(request: Request):
        sign_out(request, store)
        return _redirect(LOGIN_PATH)

    @app.post("/theme")
    async def switch_theme(request: Request, theme: str = Form(...), next: str = Form(HOME_PATH)):
        set_theme(request, theme)
        return _redirect(safe_destination(next))

    # Dashboard

    @app.get("/dashboard", response_class=HTMLResponse)
    async def dashboard(request: Request, ui: UIContext = Depends(get_ui)):
        return render(request, ui, "dashboard.html")

    @app.get("/dashboard/statistics", response_class=HTMLResponse)
    async def statistics_page(
        request: Request,
        tab: str = DEFAULT_TAB,
        refresh: bool = False,
        ui: UIContext = Depends(get_ui),
    ):
        if tab not in TABS:
            tab = DEFAULT_TAB
        cache = store.get(ui.session_id).statistics
        if refresh:
            cache.invalidate()

        summary = await cache.activate("demographics", gateway, ui.token)
        notice = None
        if summary.empty:
            notice = summary.error
            view = summary
        else:
            view = await cache.activate(tab, gateway, ui.token)
            notice = view.error

        total = None if summary.empty else summary.sources["detailed"].get("totalSubmissions")
        return render(
            request, ui, "statistics.html",
            tabs=TABS,
            active_tab=tab,
            total=total,
            available=not summary.empty,
            view=view,
            notice=notice,
            **_tab_charts(tab, view),
        )

    # Quiz wizard, one set of routes per variant

    def register_quiz(mode: str, base: str) -> None:
        def wizard_for(ui: UIContext) -> QuizWizard:
            session = store.wizard(ui.session_id, mode)
            token = PUBLIC_ACCESS_TOKEN if mode == "public" else ui.token
            return QuizWizard(session, gateway, token=token)

        async def show(request: Request, ui: UIContext = Depends(get_ui)):
            wizard = wizard_for(ui)
            return render(
                request, ui, "quiz.html",
                base=base,
                wizard=wizard,
                session=wizard.session,
                states=WizardState,
                notice=wizard.take_notice(),
                labels=FIELD_LABELS,
                sexes=SEXES,
                marital_states=MARITAL_STATES,
                departments=DEPARTMENTS,
            )

        async def intake(request: Request, ui: UIContext = Depends(get_ui)):
            wizard = wizard_for(ui)
            form = await request.form()
            # Retry from the error screen posts no fields and keeps the profile.
            for field_name in FIELD_LABELS:
                if field_name in form:
                    wizard.set_field(field_name, form.get(field_name))
            await wizard.submit_intake()
            return _redirect(base)

        async def answer(
            question_id: str = Form(...),
            response_id: str = Form(...),
            ui: UIContext = Depends(get_ui),
        ):
            wizard_for(ui).select_response(question_id, response_id)
            return _redirect(base)

        async def advance(ui: UIContext = Depends(get_ui)):
            await wizard_for(ui).advance()
            return _redirect(base)

        async def back(ui: UIContext = Depends(get_ui)):
            wizard_for(ui).back()
            return _redirect(base)

        async def close(ui: UIContext = Depends(get_ui)):
            wizard_for(ui).close()
            return _redirect(base)

        async def cancel(ui: UIContext = Depends(get_ui)):
            wizard_for(ui).cancel()
            return _redirect(base)

        async def restart(ui: UIContext = Depends(get_ui)):
            wizard_for(ui).restart()
            return _redirect(base)

        app.add_api_route(base, show, methods=["GET"], response_class=HTMLResponse, name=f"{mode}_quiz")
        for action, endpoint in (
            ("intake", intake),
            ("answer", answer),
            ("next", advance),
            ("back", back),
            ("close", close),
            ("cancel", cancel),
            ("restart", restart),
        ):
            app.add_api_route(f"{base}/{action}", endpoint, methods=["POST"], name=f"{mode}_quiz_{action}")

    for mode, base in QUIZ_MODES.items():
        register_quiz(mode, base)

    return app
