"""
cas/dependencies.py -- FastAPI Depends() helpers around the CAS gateway.

get_gateway() returns the CASAuthentication built in the app lifespan.
require_cas_user() is the BLOCK flavour for JSON APIs: it raises HTTP 401
with the structured error body instead of returning a bare 401 response, so
API clients get the same error envelope as every other failure.

Browser routes use the BOUNCE flavour directly, because a redirect is a
response to return, not an error to raise:

    @router.get("/")
    async def home(request: Request):
        if response := await get_gateway(request).bounce(request):
            return response
        ...

Layer rule: cas/dependencies.py may import from fastapi (for HTTPException
and Request) because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from cas.gateway import CASAuthentication


def get_gateway(request: Request) -> CASAuthentication:
    return request.app.state.cas


async def require_cas_user(request: Request) -> str:
    """Require a CAS identity. Raises HTTP 401 if the request has none.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: str = Depends(require_cas_user)): ...
    """
    cas = get_gateway(request)
    if await cas.block(request) is not None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return cas.sessions.current_user(request)
