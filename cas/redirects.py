"""
cas/redirects.py -- CAS login and logout URL construction.

renew and gateway are presence flags on the CAS side: any value, "false"
included, switches them on. They are sent as renew=true / gateway=true when
configured and left out of the query entirely otherwise.
"""

from __future__ import annotations

from urllib.parse import urlencode

from cas.models import GatewayConfig


class RedirectBuilder:
    def __init__(self, config: GatewayConfig) -> None:
        self._config = config

    def service_for(self, path: str) -> str:
        """The CAS `service` value for a request path on this application."""
        return self._config.service_url + path

    def login_url(self, return_path: str) -> str:
        query: dict[str, str] = {"service": self.service_for(return_path)}
        if self._config.renew:
            query["renew"] = "true"
        if self._config.gateway:
            query["gateway"] = "true"
        return f"{self._config.cas_url}/login?{urlencode(query)}"

    def logout_url(self) -> str:
        return f"{self._config.cas_url}/logout"
