"""
api/routes/v1/auth.py -- CAS identity endpoints for API clients.

Routes:
  GET  /api/v1/auth/me    -- current CAS identity (BLOCK: 401 when absent)
  GET  /api/v1/auth/cas   -- CAS server details for clients (public)

API routes never bounce: an unauthenticated call gets a 401 error envelope.
Browser login happens on the web routes (web/routes.py).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import CasInfoResponse, MeResponse
from cas.dependencies import get_gateway, require_cas_user

# Auth policy:
# - GET /api/v1/auth/me:   requires a CAS identity (require_cas_user)
# - GET /api/v1/auth/cas:  public -- clients call this before they have one
router = APIRouter()


@router.get("/auth/me", response_model=MeResponse)
async def me(request: Request, user: str = Depends(require_cas_user)) -> MeResponse:
    """Return the CAS identity bound to this session."""
    cas = get_gateway(request)
    return MeResponse(user=user, session_key=cas.config.session_name)


@router.get("/auth/cas", response_model=CasInfoResponse)
async def cas_info(request: Request) -> CasInfoResponse:
    """Return the CAS server the gateway validates against."""
    cas = get_gateway(request)
    return CasInfoResponse(
        cas_url=cas.config.cas_url,
        version=cas.config.cas_version,
        logout_url=cas.redirects.logout_url(),
        renew=cas.config.renew,
        gateway=cas.config.gateway,
    )
