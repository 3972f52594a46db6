from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel

from .config import Settings, load_settings
from .controller import ClaimsViewController
from .errors import ClaimNotFound, ConfirmationNotFound
from .observability import configure_logging
from .presentation import render_view
from .schemas import Claim, ClaimForm
from .services import build_services

logger = logging.getLogger(__name__)


class SearchIn(BaseModel):
    text: str = ""


class StatusFilterIn(BaseModel):
    status: str


class ConfirmationIn(BaseModel):
    accepted: bool


class ClaimFormIn(BaseModel):
    policy_id: int | str
    claim_amt: float
    description: str


def _get_view(app: FastAPI, view_id: str) -> ClaimsViewController:
    views: dict[str, ClaimsViewController] = app.state.views
    view = views.pop(view_id, None)
    if not view:
        raise HTTPException(status_code=404, detail="view_not_found")
    # re-insert so the dict stays ordered from least to most recently used
    views[view_id] = view
    return view


def _register_view(app: FastAPI, view: ClaimsViewController, max_views: int) -> None:
    views: dict[str, ClaimsViewController] = app.state.views
    while len(views) >= max_views:
        stale_id = next(iter(views))
        del views[stale_id]
        logger.info("Evicted least recently used view", extra={"view_id": stale_id})
    views[view.view_id] = view


def _get_claim(view: ClaimsViewController, claim_id: str) -> Claim:
    try:
        return view.find_claim(claim_id)
    except ClaimNotFound as exc:
        raise HTTPException(status_code=404, detail="claim_not_found") from exc


def _view_snapshot(view: ClaimsViewController, settings: Settings) -> dict[str, Any]:
    payload = render_view(view.state, currency_symbol=settings.currency_symbol)
    payload["view_id"] = view.view_id
    payload["notices"] = [asdict(n) for n in view.drain_notices()]
    payload["pending_confirmations"] = [asdict(c) for c in view.pending_confirmations]
    return payload


def create_web_app(claim_service: Any | None = None, policy_service: Any | None = None) -> FastAPI:
    project_root = Path(__file__).resolve().parents[1]
    load_dotenv(project_root / ".env", override=False)
    settings = load_settings()
    configure_logging(settings.log_level, settings.log_format)

    if claim_service is None or policy_service is None:
        default_claims, default_policies = build_services(settings)
        claim_service = claim_service or default_claims
        policy_service = policy_service or default_policies

    app = FastAPI(title="ClaimDesk")
    app.state.views = {}
    web_root = Path(__file__).resolve().parent / "web"

    def snapshot(view: ClaimsViewController, **extra: Any) -> JSONResponse:
        payload = _view_snapshot(view, settings)
        payload.update(extra)
        return JSONResponse(payload)

    @app.get("/")
    async def index() -> FileResponse:
        return FileResponse(web_root / "index.html")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/views")
    async def mount_view() -> JSONResponse:
        view = ClaimsViewController(claim_service, policy_service)
        _register_view(app, view, settings.max_open_views)
        try:
            await view.mount()
        except Exception:
            app.state.views.pop(view.view_id, None)
            raise
        return snapshot(view)

    @app.get("/api/views/{view_id}")
    async def get_view(view_id: str) -> JSONResponse:
        return snapshot(_get_view(app, view_id))

    @app.delete("/api/views/{view_id}")
    async def unmount_view(view_id: str) -> dict[str, str]:
        _get_view(app, view_id)
        del app.state.views[view_id]
        return {"status": "closed"}

    @app.post("/api/views/{view_id}/close")
    async def close_view(view_id: str) -> dict[str, str]:
        # sent by navigator.sendBeacon on pagehide; an unknown id is not an error
        app.state.views.pop(view_id, None)
        return {"status": "closed"}

    @app.post("/api/views/{view_id}/refresh")
    async def refresh(view_id: str) -> JSONResponse:
        view = _get_view(app, view_id)
        await view.fetch_data()
        return snapshot(view)

    @app.post("/api/views/{view_id}/search")
    async def search(view_id: str, body: SearchIn) -> JSONResponse:
        view = _get_view(app, view_id)
        view.set_search_text(body.text)
        return snapshot(view)

    @app.post("/api/views/{view_id}/filter")
    async def status_filter(view_id: str, body: StatusFilterIn) -> JSONResponse:
        view = _get_view(app, view_id)
        try:
            view.set_status_filter(body.status)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return snapshot(view)

    @app.post("/api/views/{view_id}/history/open")
    async def open_history(view_id: str) -> JSONResponse:
        view = _get_view(app, view_id)
        view.open_history()
        return snapshot(view)

    @app.post("/api/views/{view_id}/history/close")
    async def close_history(view_id: str) -> JSONResponse:
        view = _get_view(app, view_id)
        view.close_history()
        return snapshot(view)

    @app.post("/api/views/{view_id}/add")
    async def add_claim(view_id: str) -> JSONResponse:
        view = _get_view(app, view_id)
        view.add_claim()
        return snapshot(view)

    @app.post("/api/views/{view_id}/claims/{claim_id}/edit")
    async def edit_claim(view_id: str, claim_id: str) -> JSONResponse:
        view = _get_view(app, view_id)
        opened = view.edit_claim(_get_claim(view, claim_id))
        return snapshot(view, opened=opened)

    @app.post("/api/views/{view_id}/claims/{claim_id}/withdraw")
    async def withdraw_claim(view_id: str, claim_id: str) -> JSONResponse:
        view = _get_view(app, view_id)
        request = view.request_withdraw(_get_claim(view, claim_id))
        return snapshot(view, confirmation=asdict(request) if request else None)

    @app.post("/api/views/{view_id}/claims/{claim_id}/delete")
    async def delete_claim(view_id: str, claim_id: str) -> JSONResponse:
        view = _get_view(app, view_id)
        request = view.request_delete(_get_claim(view, claim_id))
        return snapshot(view, confirmation=asdict(request) if request else None)

    @app.post("/api/views/{view_id}/confirmations/{confirmation_id}")
    async def resolve_confirmation(view_id: str, confirmation_id: str, body: ConfirmationIn) -> JSONResponse:
        view = _get_view(app, view_id)
        try:
            done = await view.resolve_confirmation(confirmation_id, body.accepted)
        except ConfirmationNotFound as exc:
            raise HTTPException(status_code=404, detail="confirmation_not_found") from exc
        return snapshot(view, done=done)

    @app.post("/api/views/{view_id}/modal/submit")
    async def submit_modal(view_id: str, body: ClaimFormIn) -> JSONResponse:
        view = _get_view(app, view_id)
        if not view.state.show_modal:
            raise HTTPException(status_code=409, detail="modal_not_open")
        form = ClaimForm(policy_id=body.policy_id, claim_amt=body.claim_amt, description=body.description)
        saved = await view.submit_form(form)
        return snapshot(view, saved=saved)

    @app.post("/api/views/{view_id}/modal/close")
    async def close_modal(view_id: str) -> JSONResponse:
        view = _get_view(app, view_id)
        await view.close_modal()
        return snapshot(view)

    return app
