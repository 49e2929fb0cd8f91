"""
tests/test_cli.py -- main.py operator commands.

The CAS server is replaced by patching cas.validator._default_session, the
factory TicketValidator uses when no session is passed in. Output is read
back through capsys.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import requests
from conftest import fake_http

import main


def test_login_url(capsys):
    assert main.main(["login-url", "/reports"]) == 0
    out = capsys.readouterr().out.strip()
    assert out == "https://cas.example.edu/cas/login?service=http%3A%2F%2Ftestserver%2Freports"


def test_login_url_with_flags_and_overrides(capsys):
    code = main.main(
        ["login-url", "/", "--renew", "--gateway", "--cas-url", "https://sso.example.org", "--json"]
    )
    assert code == 0
    url = json.loads(capsys.readouterr().out)["login_url"]
    assert url.startswith("https://sso.example.org/login?")
    assert "renew=true" in url
    assert "gateway=true" in url


def test_login_url_rejects_relative_path(capsys):
    assert main.main(["login-url", "reports"]) == 2


def test_logout_url(capsys):
    assert main.main(["logout-url"]) == 0
    assert capsys.readouterr().out.strip() == "https://cas.example.edu/cas/logout"


def test_invalid_cas_url_is_config_error(capsys):
    assert main.main(["logout-url", "--cas-url", "not-a-url"]) == 2
    assert "Configuration error" in capsys.readouterr().err


def test_validate_success(capsys):
    with patch("cas.validator._default_session", return_value=fake_http("yes\nalice\n")):
        code = main.main(["validate", "ST-123", "--path", "/reports", "--json"])
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data == {"ok": True, "user": "alice", "service": "http://testserver/reports"}


def test_validate_rejected(capsys):
    with patch("cas.validator._default_session", return_value=fake_http("no\n")):
        code = main.main(["validate", "ST-123"])
    assert code == 1
    assert "rejected" in capsys.readouterr().out


def test_validate_transport_error(capsys):
    http = fake_http(error=requests.ConnectionError("refused"))
    with patch("cas.validator._default_session", return_value=http):
        code = main.main(["validate", "ST-123", "--json"])
    assert code == 1
    data = json.loads(capsys.readouterr().out)
    assert data["kind"] == "transport"
    assert data["reason"] == "request/response error"
