"""
cas/protocol.py -- CAS protocol adapters: validation path + response parser.

One adapter per supported protocol version:

  1.0  /validate             "yes\\n<user>\\n" or "no\\n"
  2.0  /serviceValidate      <cas:serviceResponse> XML
  3.0  /p3/serviceValidate   same XML, superset schema (attributes etc.)

Adapters are pure: parse() is a function from a response body to a
ValidationOutcome. It never raises -- a body that does not match the grammar
becomes a Failure with kind=PROTOCOL.

XML handling: xmltodict turns the body into nested dicts; _normalize() then
strips namespace prefixes and lower-cases tag names so "cas:authenticationSuccess"
and "authenticationSuccess" both come out as "authenticationsuccess". The
shape of the resulting tree is checked explicitly at every level -- there is
no catch-all around the lookup.

xmltodict refuses entity declarations by default (disable_entities=True),
which closes the billion-laughs / external-entity class of attacks for a body
we did not author.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from xml.parsers.expat import ExpatError

import xmltodict

from cas.errors import ConfigurationError
from cas.models import Failure, FailureKind, Success, ValidationOutcome

logger = logging.getLogger("casgateway.protocol")

AUTH_FAILED = "CAS authentication failed."
BAD_RESPONSE = "Response from CAS server was bad."


class ProtocolAdapter:
    """Base adapter. Subclasses set version / validate_path and implement parse()."""

    version: str = ""
    validate_path: str = ""

    def parse(self, body: str) -> ValidationOutcome:
        raise NotImplementedError  # pragma: nocover

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(version={self.version!r})"


class PlainTextProtocol(ProtocolAdapter):
    """CAS 1.0: two newline-separated lines, "yes"/"no" then the user."""

    version = "1.0"
    validate_path = "/validate"

    def parse(self, body: str) -> ValidationOutcome:
        lines = (body or "").split("\n")
        if lines[0] == "yes" and len(lines) >= 2:
            user = lines[1].strip()
            if user:
                return Success(user=user)
            return Failure(BAD_RESPONSE, kind=FailureKind.PROTOCOL)
        if lines[0] == "no":
            return Failure(AUTH_FAILED, kind=FailureKind.AUTHENTICATION)
        return Failure(BAD_RESPONSE, kind=FailureKind.PROTOCOL)


class XmlProtocol(ProtocolAdapter):
    """CAS 2.0: <cas:serviceResponse> with authenticationSuccess/Failure."""

    version = "2.0"
    validate_path = "/serviceValidate"

    def parse(self, body: str) -> ValidationOutcome:
        try:
            tree = _normalize(xmltodict.parse(body or ""))
        except (ExpatError, ValueError) as e:
            logger.info("Unparseable CAS %s response: %s", self.version, e)
            return Failure(BAD_RESPONSE, kind=FailureKind.PROTOCOL)
        return _outcome_from_tree(tree)


class Cas3Protocol(XmlProtocol):
    """CAS 3.0: the 2.0 grammar served from the /p3 endpoint. Extra elements are ignored."""

    version = "3.0"
    validate_path = "/p3/serviceValidate"


_ADAPTERS: dict[str, type[ProtocolAdapter]] = {
    PlainTextProtocol.version: PlainTextProtocol,
    XmlProtocol.version: XmlProtocol,
    Cas3Protocol.version: Cas3Protocol,
}


def get_protocol(version: str) -> ProtocolAdapter:
    """Return the adapter for a protocol version.

    Raises:
        ConfigurationError: if the version is not one of 1.0, 2.0, 3.0.
    """
    try:
        return _ADAPTERS[version]()
    except KeyError:
        raise ConfigurationError(f'The supplied CAS version ("{version}") is not supported.') from None


# ---------------------------------------------------------------------------
# XML helpers
# ---------------------------------------------------------------------------


def _normalize_name(key: str) -> str:
    """'cas:authenticationSuccess' -> 'authenticationsuccess', '@code' stays '@code'."""
    marker = ""
    if key[:1] in ("@", "#"):
        marker, key = key[0], key[1:]
    return marker + key.rsplit(":", 1)[-1].lower()


def _normalize(node: Any) -> Any:
    if isinstance(node, dict):
        return {_normalize_name(k): _normalize(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_normalize(item) for item in node]
    return node


def _text(node: Any) -> Optional[str]:
    """Text content of an element: a bare string, or '#text' when it has attributes."""
    if isinstance(node, dict):
        node = node.get("#text")
    if isinstance(node, str) and node:
        return node
    return None


def _outcome_from_tree(tree: Any) -> ValidationOutcome:
    """Schema check + mapping from a normalized serviceResponse tree."""
    response = tree.get("serviceresponse") if isinstance(tree, dict) else None
    if not isinstance(response, dict):
        return Failure(AUTH_FAILED, kind=FailureKind.PROTOCOL)

    failure = response.get("authenticationfailure")
    if failure is not None:
        code = failure.get("@code") if isinstance(failure, dict) else None
        if code:
            return Failure(f"CAS authentication failed ({code}).", kind=FailureKind.AUTHENTICATION, code=code)
        return Failure(AUTH_FAILED, kind=FailureKind.AUTHENTICATION)

    success = response.get("authenticationsuccess")
    if isinstance(success, dict):
        user = _text(success.get("user"))
        if user:
            return Success(user=user)

    return Failure(AUTH_FAILED, kind=FailureKind.PROTOCOL)
