"""Unit tests for cas/protocol.py -- pure parsing, no I/O, no mocking needed.

Response bodies are inline strings shaped like what real CAS servers send:
the 1.0 two-line text format and the <cas:serviceResponse> XML of 2.0/3.0.
"""

import pytest

from cas.errors import ConfigurationError
from cas.models import Failure, FailureKind, Success
from cas.protocol import Cas3Protocol, PlainTextProtocol, XmlProtocol, get_protocol

# ---------------------------------------------------------------------------
# Inline bodies
# ---------------------------------------------------------------------------

_SUCCESS_XML = """<cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
    <cas:authenticationSuccess>
        <cas:user>alice</cas:user>
        <cas:proxyGrantingTicket>PGTIOU-84678-8a9d</cas:proxyGrantingTicket>
    </cas:authenticationSuccess>
</cas:serviceResponse>"""

_FAILURE_XML = """<cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
    <cas:authenticationFailure code="INVALID_TICKET">
        Ticket ST-1856339-aA5Yuvrxzpv8Tau1cYQ7 not recognized
    </cas:authenticationFailure>
</cas:serviceResponse>"""

_CAS3_SUCCESS_XML = """<cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
    <cas:authenticationSuccess>
        <cas:user>bob.smith</cas:user>
        <cas:attributes>
            <cas:firstname>Bob</cas:firstname>
            <cas:memberOf>faculty</cas:memberOf>
            <cas:memberOf>staff</cas:memberOf>
        </cas:attributes>
    </cas:authenticationSuccess>
</cas:serviceResponse>"""


# ---------------------------------------------------------------------------
# Adapter selection
# ---------------------------------------------------------------------------


class TestGetProtocol:
    @pytest.mark.parametrize(
        "version, cls, path",
        [
            ("1.0", PlainTextProtocol, "/validate"),
            ("2.0", XmlProtocol, "/serviceValidate"),
            ("3.0", Cas3Protocol, "/p3/serviceValidate"),
        ],
    )
    def test_version_selects_adapter_and_path(self, version, cls, path):
        adapter = get_protocol(version)
        assert type(adapter) is cls
        assert adapter.validate_path == path

    def test_unknown_version_is_configuration_error(self):
        with pytest.raises(ConfigurationError, match="4.0"):
            get_protocol("4.0")


# ---------------------------------------------------------------------------
# CAS 1.0 plain text
# ---------------------------------------------------------------------------


class TestPlainText:
    def setup_method(self):
        self.proto = PlainTextProtocol()

    def test_yes_with_user_succeeds(self):
        assert self.proto.parse("yes\nalice\n") == Success(user="alice")

    def test_extra_lines_after_user_are_ignored(self):
        assert self.proto.parse("yes\nalice\nsomething else\n") == Success(user="alice")

    def test_yes_without_trailing_newline(self):
        assert self.proto.parse("yes\ncarol") == Success(user="carol")

    def test_no_is_authentication_failure(self):
        outcome = self.proto.parse("no\n\n")
        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.AUTHENTICATION

    def test_bare_yes_is_protocol_failure(self):
        # fewer than two lines on a "yes"
        outcome = self.proto.parse("yes")
        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.PROTOCOL

    def test_yes_with_blank_user_is_protocol_failure(self):
        outcome = self.proto.parse("yes\n\n")
        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.PROTOCOL

    @pytest.mark.parametrize("body", ["", "maybe\nalice\n", "YES\nalice\n", " yes\nalice\n", "<html>oops</html>"])
    def test_any_other_first_line_fails(self, body):
        outcome = self.proto.parse(body)
        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.PROTOCOL


# ---------------------------------------------------------------------------
# CAS 2.0 / 3.0 XML
# ---------------------------------------------------------------------------


class TestXml:
    def setup_method(self):
        self.proto = XmlProtocol()

    def test_success_returns_user_text(self):
        assert self.proto.parse(_SUCCESS_XML) == Success(user="alice")

    def test_failure_carries_server_code(self):
        outcome = self.proto.parse(_FAILURE_XML)
        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.AUTHENTICATION
        assert outcome.code == "INVALID_TICKET"
        assert "INVALID_TICKET" in outcome.reason

    def test_failure_wins_over_success(self):
        body = (
            '<cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">'
            "<cas:authenticationSuccess><cas:user>alice</cas:user></cas:authenticationSuccess>"
            '<cas:authenticationFailure code="INVALID_SERVICE">no</cas:authenticationFailure>'
            "</cas:serviceResponse>"
        )
        outcome = self.proto.parse(body)
        assert isinstance(outcome, Failure)
        assert outcome.code == "INVALID_SERVICE"

    def test_tag_names_are_case_and_prefix_insensitive(self):
        body = "<ServiceResponse><AuthenticationSuccess><User>dave</User></AuthenticationSuccess></ServiceResponse>"
        assert self.proto.parse(body) == Success(user="dave")

    def test_other_namespace_prefix_is_accepted(self):
        body = (
            '<sso:serviceResponse xmlns:sso="http://www.yale.edu/tp/cas">'
            "<sso:authenticationSuccess><sso:user>erin</sso:user></sso:authenticationSuccess>"
            "</sso:serviceResponse>"
        )
        assert self.proto.parse(body) == Success(user="erin")

    def test_failure_without_code(self):
        body = "<cas:serviceResponse xmlns:cas='x'><cas:authenticationFailure>nope</cas:authenticationFailure></cas:serviceResponse>"
        outcome = self.proto.parse(body)
        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.AUTHENTICATION
        assert outcome.code is None

    def test_neither_element_is_generic_failure(self):
        body = "<cas:serviceResponse xmlns:cas='x'><cas:proxySuccess/></cas:serviceResponse>"
        outcome = self.proto.parse(body)
        assert isinstance(outcome, Failure)
        assert outcome.reason == "CAS authentication failed."

    def test_success_without_user_fails(self):
        body = "<cas:serviceResponse xmlns:cas='x'><cas:authenticationSuccess><cas:attributes/></cas:authenticationSuccess></cas:serviceResponse>"
        assert isinstance(self.proto.parse(body), Failure)

    def test_wrong_root_element_fails(self):
        body = "<html><body><authenticationSuccess><user>mallory</user></authenticationSuccess></body></html>"
        assert isinstance(self.proto.parse(body), Failure)

    @pytest.mark.parametrize(
        "body",
        [
            "",
            "yes\nalice\n",
            "<cas:serviceResponse>",
            "<a><b></a>",
            "<?xml version='1.0'?>",
            '<!DOCTYPE x [<!ENTITY e "boom">]><x>&e;</x>',
        ],
    )
    def test_malformed_never_raises(self, body):
        outcome = self.proto.parse(body)
        assert isinstance(outcome, Failure)

    def test_cas3_success_with_attributes(self):
        assert Cas3Protocol().parse(_CAS3_SUCCESS_XML) == Success(user="bob.smith")

    def test_cas3_failure(self):
        outcome = Cas3Protocol().parse(_FAILURE_XML)
        assert isinstance(outcome, Failure)
        assert outcome.code == "INVALID_TICKET"
