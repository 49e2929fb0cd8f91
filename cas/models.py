"""
cas/models.py -- Domain dataclasses for the CAS gateway.

Pattern: Data class. GatewayConfig is the only one with logic, and that logic
is limited to validating itself on construction -- a config that exists is a
config that works. Success and Failure are the two shapes of a validation
outcome; the state machine in cas/gateway.py branches on isinstance().

Layer rule: no imports from api/ or web/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union
from urllib.parse import urlparse

from cas.errors import ConfigurationError

if TYPE_CHECKING:
    from core.config import Settings

SUPPORTED_VERSIONS = ("1.0", "2.0", "3.0")


class AuthMode(str, Enum):
    """What to do with an unauthenticated request."""

    BOUNCE = "bounce"  # send the browser through the CAS login
    BLOCK = "block"  # answer 401 straight away


class FailureKind(str, Enum):
    """Why a ticket validation failed. Logged, never shown to the end user."""

    AUTHENTICATION = "authentication"  # CAS said no
    PROTOCOL = "protocol"  # body did not match the protocol grammar
    TRANSPORT = "transport"  # CAS unreachable, or an error status with no CAS body


@dataclass(frozen=True)
class Success:
    user: str


@dataclass(frozen=True)
class Failure:
    """A rejected ticket validation.

    reason is for the log, never for the end user. code is the CAS server's
    failure code (e.g. INVALID_TICKET) and is only ever set by the XML
    protocols (2.0 / 3.0).
    """

    reason: str
    kind: FailureKind = FailureKind.AUTHENTICATION
    code: Optional[str] = None


ValidationOutcome = Union[Success, Failure]


@dataclass(frozen=True)
class GatewayConfig:
    """Immutable gateway configuration, built once at startup.

    cas_url is the CAS server base, e.g. "https://cas.example.edu/cas".
    Its scheme decides between plaintext and TLS for every validation call.
    service_url is the base URL of the protected application; request paths
    are appended to it to form the CAS `service` parameter.

    Raises ConfigurationError if the version is unsupported or either URL is
    unusable.
    """

    cas_url: str
    service_url: str
    cas_version: str = "1.0"
    renew: bool = False
    gateway: bool = False
    dev_mode: bool = False
    dev_mode_user: str = ""
    session_name: str = "cas_user"
    destroy_session: bool = False
    validate_timeout: float = 10.0

    def __post_init__(self) -> None:
        if self.cas_version not in SUPPORTED_VERSIONS:
            raise ConfigurationError(f'The supplied CAS version ("{self.cas_version}") is not supported.')

        if not self.cas_url:
            raise ConfigurationError("CAS_URL is required.")
        parsed = urlparse(self.cas_url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ConfigurationError(f"CAS_URL must be an absolute http(s) URL, got {self.cas_url!r}.")

        if not self.service_url:
            raise ConfigurationError("SERVICE_URL is required.")
        if not self.session_name:
            raise ConfigurationError("SESSION_NAME must not be empty.")

        # Paths are appended with a leading slash ("/login", "/validate").
        # frozen=True: write through object.__setattr__.
        object.__setattr__(self, "cas_url", self.cas_url.rstrip("/"))
        object.__setattr__(self, "service_url", self.service_url.rstrip("/"))

    @property
    def scheme(self) -> str:
        return urlparse(self.cas_url).scheme

    @property
    def uses_tls(self) -> bool:
        return self.scheme == "https"

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> GatewayConfig:
        """Map environment-driven Settings onto a validated GatewayConfig.

        Keyword overrides (e.g. from the command line) replace the matching
        settings before validation runs.
        """
        values: dict[str, Any] = dict(
            cas_url=settings.cas_url,
            service_url=settings.service_url,
            cas_version=settings.cas_version,
            renew=settings.cas_renew,
            gateway=settings.cas_gateway,
            dev_mode=settings.dev_mode,
            dev_mode_user=settings.dev_mode_user,
            session_name=settings.session_name,
            destroy_session=settings.destroy_session,
            validate_timeout=settings.cas_timeout,
        )
        values.update(overrides)
        return cls(**values)
