"""
cas/session.py -- The gateway's view of the request session.

The session store itself belongs to the host application (Starlette
SessionMiddleware in api/main.py). The gateway touches exactly two keys:

  <session_name>   the authenticated CAS identity (default "cas_user")
  cas_return_to    the path to go back to after one login round-trip

SessionGateway is the only code that knows those key names.
"""

from __future__ import annotations

import logging
from typing import Optional

from starlette.requests import Request

from cas.errors import SessionDestructionError

logger = logging.getLogger("casgateway.session")

RETURN_TO_KEY = "cas_return_to"


class SessionGateway:
    def __init__(self, session_name: str, destroy_session: bool = False) -> None:
        self.session_name = session_name
        self.destroy_session = destroy_session

    def current_user(self, request: Request) -> Optional[str]:
        return request.session.get(self.session_name) or None

    def remember(self, request: Request, user: str) -> None:
        request.session[self.session_name] = user

    def save_return_to(self, request: Request, path: str) -> None:
        request.session[RETURN_TO_KEY] = path

    def pop_return_to(self, request: Request) -> Optional[str]:
        return request.session.pop(RETURN_TO_KEY, None)

    def destroy(self, request: Request) -> None:
        """Drop every key in the session.

        Raises:
            SessionDestructionError: wrapping whatever the store raised.
        """
        try:
            request.session.clear()
        except Exception as e:
            raise SessionDestructionError(f"Could not destroy session: {e}") from e

    def forget(self, request: Request) -> None:
        """Log the user out of this application.

        Either destroys the whole session or removes only the identity key,
        depending on destroy_session. A destruction failure is logged and
        swallowed so logout always reaches the CAS logout redirect.
        """
        if not self.destroy_session:
            request.session.pop(self.session_name, None)
            return
        try:
            self.destroy(request)
        except SessionDestructionError:
            logger.exception("Session destruction failed during logout")
