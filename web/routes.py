"""
web/routes.py -- Browser routes protected by the CAS gateway.

These routes use BOUNCE: an unauthenticated browser is redirected through
the CAS login, comes back with ?ticket=..., and lands on the page it first
asked for. They share app.state.cas with the API routes.

Routes:
  GET  /          -- home page (CAS login required)
  GET  /profile   -- identity page (CAS login required)
  GET  /logout    -- drop the local session, redirect to CAS /logout

Protected handlers follow one shape:
    if response := await cas.bounce(request):
        return response
The returned response is either the CAS login redirect, the post-ticket
redirect, or a 401 after a failed ticket validation.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from cas.dependencies import get_gateway

logger = logging.getLogger("casgateway.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()


def _page(request: Request, title: str) -> HTMLResponse:
    cas = get_gateway(request)
    return templates.TemplateResponse(
        request,
        "page.html",
        {
            "title": title,
            "user": cas.sessions.current_user(request),
            "session_key": cas.config.session_name,
            "cas_version": cas.config.cas_version,
        },
    )


@router.get("/", response_class=HTMLResponse)
async def home(request: Request) -> Response:
    if response := await get_gateway(request).bounce(request):
        return response
    return _page(request, "Home")


@router.get("/profile", response_class=HTMLResponse)
async def profile(request: Request) -> Response:
    if response := await get_gateway(request).bounce(request):
        return response
    return _page(request, "Profile")


@router.get("/logout")
async def logout(request: Request) -> Response:
    """Drop the CAS identity (or the whole session) and hand off to CAS /logout."""
    return await get_gateway(request).logout(request)
