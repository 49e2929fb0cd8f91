"""
cas/gateway.py -- Per-request CAS authorization decision.

CASAuthentication is built once at startup from a GatewayConfig and kept on
app.state.cas. Its three entry points are ordinary coroutines bound to that
instance, so route handlers and dependencies call them directly:

    if response := await request.app.state.cas.bounce(request):
        return response

bounce() and block() return None when the request may proceed, or the
Response to send instead. logout() always returns a redirect.

Decision order for bounce/block (first match wins):
  1. Authenticated  -- session already holds the identity   -> None
  2. DevBypass      -- dev_mode with a dev_mode_user         -> store it, None
  3. Blocked        -- mode is BLOCK                         -> 401
  4. TicketPresent  -- ?ticket= on the request               -> validate, then
                       302 to the saved return path, or 401
  5. NeedsLogin     -- otherwise                             -> save return
                       path, 302 to CAS /login

Nothing here survives between requests except what is written to the session.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests
from starlette.requests import Request
from starlette.responses import PlainTextResponse, RedirectResponse, Response

from cas.models import AuthMode, Failure, GatewayConfig
from cas.protocol import get_protocol
from cas.redirects import RedirectBuilder
from cas.session import SessionGateway
from cas.validator import TicketValidator

logger = logging.getLogger("casgateway.gateway")


def _safe_return_to(return_to: Optional[str]) -> Optional[str]:
    """Accept only server-local paths: "/x" yes; "//host/x", "/\\host" and "https://..." no.

    Browsers treat a backslash in the path like a slash, so any "\\" is refused.
    """
    if return_to and return_to.startswith("/") and not return_to.startswith("//") and "\\" not in return_to:
        return return_to
    return None


def _unauthorized() -> Response:
    return PlainTextResponse("Unauthorized", status_code=401)


class CASAuthentication:
    def __init__(self, config: GatewayConfig, http: Optional[requests.Session] = None) -> None:
        self.config = config
        self.protocol = get_protocol(config.cas_version)
        self.validator = TicketValidator(config, self.protocol, http=http)
        self.redirects = RedirectBuilder(config)
        self.sessions = SessionGateway(config.session_name, config.destroy_session)

        if config.dev_mode and config.dev_mode_user:
            logger.warning(
                "CAS dev mode is ON: every request is authenticated as %r without a ticket.",
                config.dev_mode_user,
            )
        logger.info("CAS gateway ready (%r, server=%s)", self.protocol, config.cas_url)

    def __repr__(self) -> str:
        return f"CASAuthentication(cas_url={self.config.cas_url}, version={self.config.cas_version})"

    def close(self) -> None:
        """Release the pooled connections to the CAS server."""
        self.validator.close()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def bounce(self, request: Request) -> Optional[Response]:
        """Send unauthenticated browsers through the CAS login."""
        return await self._handle(request, AuthMode.BOUNCE)

    async def block(self, request: Request) -> Optional[Response]:
        """Answer unauthenticated requests with 401."""
        return await self._handle(request, AuthMode.BLOCK)

    async def logout(self, request: Request) -> Response:
        """Drop the local identity and hand the browser to CAS /logout."""
        self.sessions.forget(request)
        there = self.redirects.logout_url()
        logger.info("Logged out; redirecting to %s", there)
        return RedirectResponse(there, status_code=302)

    # ------------------------------------------------------------------
    # Decision tree
    # ------------------------------------------------------------------

    async def _handle(self, request: Request, mode: AuthMode) -> Optional[Response]:
        if self.sessions.current_user(request):
            return None

        if self.config.dev_mode and self.config.dev_mode_user:
            self.sessions.remember(request, self.config.dev_mode_user)
            return None

        if mode is AuthMode.BLOCK:
            logger.info("Blocked unauthenticated request to %s", request.url.path)
            return _unauthorized()

        ticket = request.query_params.get("ticket")
        if ticket:
            return await self._handle_ticket(request, ticket)

        return self._login(request)

    def _login(self, request: Request) -> Response:
        path = request.url.path
        return_to = _safe_return_to(request.query_params.get("returnTo")) or path
        self.sessions.save_return_to(request, return_to)

        there = self.redirects.login_url(path)
        logger.info("Redirecting to CAS login %s (return to %s)", there, return_to)
        return RedirectResponse(there, status_code=302)

    async def _handle_ticket(self, request: Request, ticket: str) -> Response:
        path = request.url.path
        outcome = await self.validator.validate(ticket, self.redirects.service_for(path))

        if isinstance(outcome, Failure):
            logger.warning(
                "CAS ticket validation failed for %s: %s (%s, code=%s)",
                path,
                outcome.reason,
                outcome.kind.value,
                outcome.code,
            )
            return _unauthorized()

        self.sessions.remember(request, outcome.user)
        return_to = self.sessions.pop_return_to(request) or path
        logger.info("Successful CAS authentication for %s; redirecting to %s", outcome.user, return_to)
        return RedirectResponse(return_to, status_code=302)
