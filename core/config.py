"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the CAS gateway happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. cas_url -> CAS_URL). Type coercion and validation are built in.

  @model_validator(mode="after"): cross-field checks once every field is
      resolved -- the SECRET_KEY policy, and a warning when DEV_MODE is on
      outside DEBUG.

Settings holds raw values only. cas.models.GatewayConfig.from_settings()
turns them into the immutable gateway config and raises ConfigurationError
for an unsupported CAS_VERSION or an unusable CAS_URL / SERVICE_URL.

Security notes:
  SECRET_KEY signs the session cookie, and the session cookie is the CAS
  identity. A key shorter than 32 chars is rejected outright; a missing key
  outside DEBUG is a hard startup failure.

Layer rule: core/ is the kernel. This module may not import from api/, web/
or cas/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("casgateway.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. Whether the CAS fields describe a
    usable server is checked when the gateway is built, not here.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]

    # ------------------------------------------------------------------
    # Session cookie
    # ------------------------------------------------------------------

    secure_cookies: bool = False
    session_max_age: int = 14 * 24 * 60 * 60  # two weeks, Starlette's default

    # ------------------------------------------------------------------
    # CAS server
    # ------------------------------------------------------------------

    cas_url: str = ""
    cas_version: str = "1.0"
    service_url: str = ""
    cas_renew: bool = False
    cas_gateway: bool = False
    cas_timeout: float = 10.0

    # ------------------------------------------------------------------
    # Gateway behaviour
    # ------------------------------------------------------------------

    dev_mode: bool = False
    dev_mode_user: str = ""
    session_name: str = "cas_user"
    destroy_session: bool = False

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit: str = "60/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning(
                    "WARNING: Using auto-generated SECRET_KEY. " "Sessions will not persist across restarts."
                )
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @model_validator(mode="after")
    def warn_dev_mode(self) -> "Settings":
        if self.dev_mode and self.dev_mode_user and not self.debug:
            logger.warning("DEV_MODE is enabled without DEBUG: CAS login is bypassed as %r.", self.dev_mode_user)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
