"""
cas/validator.py -- Server-to-server ticket validation against the CAS server.

TicketValidator.validate() is the gateway's only outbound call and its only
suspension point. The HTTP exchange itself is a plain blocking requests call;
validate() runs it in Starlette's threadpool so the awaiting request is
suspended while every other request on the event loop keeps moving.

Failure surface:
  - requests.RequestException (refused, DNS, timeout, broken read)
    -> Failure("request/response error", kind=TRANSPORT)
  - non-2xx status whose body is not a CAS response (empty, HTML error page)
    -> Failure("request/response error", kind=TRANSPORT)
  - anything the body says -> whatever ProtocolAdapter.parse() returns,
    whatever the status code

Bodies are decoded as UTF-8 unless the server names another charset.

Nothing is retried here; the caller owns any retry policy.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests
from starlette.concurrency import run_in_threadpool

from cas.models import Failure, FailureKind, GatewayConfig, ValidationOutcome
from cas.protocol import ProtocolAdapter

logger = logging.getLogger("casgateway.validator")

TRANSPORT_FAILED = "request/response error"


def _default_session() -> requests.Session:
    # Validation endpoints answer directly; cap redirect chains at 3 hops.
    session = requests.Session()
    session.max_redirects = 3
    return session


def _decode(resp: requests.Response) -> str:
    # requests falls back to ISO-8859-1 for text/* without a charset.
    if "charset" not in resp.headers.get("Content-Type", "").lower():
        resp.encoding = "utf-8"
    return resp.text


class TicketValidator:
    def __init__(
        self,
        config: GatewayConfig,
        protocol: ProtocolAdapter,
        http: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._protocol = protocol
        self._http = http if http is not None else _default_session()

    def __repr__(self) -> str:
        return f"TicketValidator(url={self.validation_url})"

    @property
    def validation_url(self) -> str:
        return self._config.cas_url + self._protocol.validate_path

    def _fetch(self, ticket: str, service_url: str) -> tuple[int, str]:
        """Blocking GET of the validation endpoint. Returns (status, decoded body)."""
        resp = self._http.get(
            self.validation_url,
            params={"service": service_url, "ticket": ticket},
            timeout=self._config.validate_timeout,
        )
        return resp.status_code, _decode(resp)

    async def validate(self, ticket: str, service_url: str) -> ValidationOutcome:
        """Exchange a service ticket for an identity.

        Args:
            ticket:      the `ticket` query value the CAS server sent back.
            service_url: the exact `service` value used at login; CAS rejects
                         a ticket presented for a different service.

        Returns Success(user) or Failure(reason, kind). Never raises for
        network or protocol problems.
        """
        logger.info("Validating CAS ticket at %s (service=%s)", self.validation_url, service_url)
        try:
            status, body = await run_in_threadpool(self._fetch, ticket, service_url)
        except requests.RequestException as e:
            logger.warning("Request error with CAS at %s: %s", self.validation_url, e)
            return Failure(TRANSPORT_FAILED, kind=FailureKind.TRANSPORT)

        outcome = self._protocol.parse(body)
        if status >= 400 and isinstance(outcome, Failure) and outcome.kind is FailureKind.PROTOCOL:
            logger.warning("Request error with CAS at %s: HTTP %s", self.validation_url, status)
            return Failure(TRANSPORT_FAILED, kind=FailureKind.TRANSPORT)
        return outcome

    def close(self) -> None:
        self._http.close()
