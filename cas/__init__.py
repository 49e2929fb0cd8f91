"""cas/ -- CAS single-sign-on gateway for FastAPI / Starlette applications.

The package drives the CAS ticket exchange for a protected application:
bounce unauthenticated browsers to the CAS login page, validate returning
tickets server-to-server, and keep the resolved identity in the session.

Layer rule: cas/ imports only stdlib + third-party libraries, plus
core.config for the Settings type. It does NOT import from api/ or web/.
api/ and web/ import from cas/, not the other way around.
"""

from cas.errors import ConfigurationError
from cas.gateway import CASAuthentication
from cas.models import AuthMode, Failure, FailureKind, GatewayConfig, Success

__all__ = [
    "AuthMode",
    "CASAuthentication",
    "ConfigurationError",
    "Failure",
    "FailureKind",
    "GatewayConfig",
    "Success",
]
