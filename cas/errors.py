"""
cas/errors.py -- Exceptions raised by the CAS gateway.

Only two things are ever raised:
  ConfigurationError       -- at GatewayConfig / adapter construction. Fatal.
  SessionDestructionError  -- by SessionGateway.destroy(); logout catches it,
                              logs it, and still redirects.

A failed ticket validation is not an exception. It comes back as a Failure
outcome whose `kind` (cas.models.FailureKind: authentication, protocol or
transport) is logged, and every one of them ends as a 401.
"""

from __future__ import annotations


class CASError(Exception):
    """Base class for every error the gateway defines."""


class ConfigurationError(CASError):
    """Unsupported protocol version, or a missing/invalid CAS or service URL."""


class SessionDestructionError(CASError):
    """The session store failed while the whole session was being destroyed."""
