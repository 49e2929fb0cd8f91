#!/usr/bin/env python3
"""
CAS Gateway -- operator command line.

Builds the same CAS gateway the web app uses and exercises it from a shell:
print the login / logout redirect URLs, or validate a service ticket against
the CAS server to check connectivity and configuration.

Usage:
  python main.py login-url /reports
  python main.py login-url /reports --renew
  python main.py logout-url
  python main.py validate ST-381409-fsFVbSPrkoD9nANruV4B --path /reports
  python main.py validate ST-1 --cas-version 2.0 --json

Configuration is read from the environment / .env exactly like the server
(CAS_URL, SERVICE_URL, CAS_VERSION, SECRET_KEY or DEBUG=true ...). The
--cas-url, --service-url and --cas-version options override it.

Exit status: 0 on success, 1 when a ticket is rejected, 2 on configuration
errors.
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from pydantic import ValidationError

from cas.errors import ConfigurationError
from cas.gateway import CASAuthentication
from cas.models import GatewayConfig, Success
from core.config import get_settings


def _build_gateway(args: argparse.Namespace) -> CASAuthentication:
    """GatewayConfig from settings, with command-line overrides applied."""
    overrides = {
        "cas_url": args.cas_url,
        "service_url": args.service_url,
        "cas_version": args.cas_version,
        "renew": True if getattr(args, "renew", False) else None,
        "gateway": True if getattr(args, "gateway", False) else None,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return CASAuthentication(GatewayConfig.from_settings(get_settings(), **overrides))


def _emit(args: argparse.Namespace, payload: dict, text: str) -> None:
    if args.json:
        print(json.dumps(payload, indent=2))
    else:
        print(text)


def _cmd_login_url(args: argparse.Namespace, cas: CASAuthentication) -> int:
    if not args.path.startswith("/"):
        print(f"  [!] '{args.path}' is not an absolute path. Expected something like /reports", file=sys.stderr)
        return 2
    url = cas.redirects.login_url(args.path)
    _emit(args, {"login_url": url}, url)
    return 0


def _cmd_logout_url(args: argparse.Namespace, cas: CASAuthentication) -> int:
    url = cas.redirects.logout_url()
    _emit(args, {"logout_url": url}, url)
    return 0


def _cmd_validate(args: argparse.Namespace, cas: CASAuthentication) -> int:
    service = cas.redirects.service_for(args.path)
    if not args.json:
        print(f"  Validating {args.ticket} at {cas.validator.validation_url}...", end=" ", flush=True)
    try:
        outcome = asyncio.run(cas.validator.validate(args.ticket, service))
    finally:
        cas.close()

    if isinstance(outcome, Success):
        _emit(args, {"ok": True, "user": outcome.user, "service": service}, f"ok.\n  user: {outcome.user}")
        return 0

    payload = {
        "ok": False,
        "reason": outcome.reason,
        "kind": outcome.kind.value,
        "code": outcome.code,
        "service": service,
    }
    _emit(args, payload, f"rejected.\n  [!] {outcome.reason} (kind={outcome.kind.value})")
    return 1


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cas-gateway",
        description="Inspect and exercise the CAS gateway configuration.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py login-url /reports
  python main.py logout-url --json
  CAS_URL=https://cas.example.edu/cas python main.py validate ST-1 --path /
        """,
    )
    # Shared by every subcommand so options may follow the command name.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--cas-url", metavar="URL", help="CAS server base URL (overrides CAS_URL)")
    common.add_argument("--service-url", metavar="URL", help="Protected application base URL (overrides SERVICE_URL)")
    common.add_argument(
        "--cas-version",
        choices=["1.0", "2.0", "3.0"],
        default=None,
        help="CAS protocol version (overrides CAS_VERSION)",
    )
    common.add_argument("--json", action="store_true", help="Output structured JSON")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    login = sub.add_parser("login-url", parents=[common], help="Print the CAS login redirect for a path")
    login.add_argument("path", help="Request path on the protected application, e.g. /reports")
    login.add_argument("--renew", action="store_true", help="Force renew=true")
    login.add_argument("--gateway", action="store_true", help="Force gateway=true")
    login.set_defaults(handler=_cmd_login_url)

    logout = sub.add_parser("logout-url", parents=[common], help="Print the CAS logout redirect")
    logout.set_defaults(handler=_cmd_logout_url)

    validate = sub.add_parser("validate", parents=[common], help="Validate a service ticket against the CAS server")
    validate.add_argument("ticket", help="Service ticket, e.g. ST-381409-...")
    validate.add_argument("--path", default="/", help="Path the ticket was issued for (default: /)")
    validate.set_defaults(handler=_cmd_validate)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    try:
        cas = _build_gateway(args)
    except (ConfigurationError, ValidationError) as e:
        print(f"  [!] Configuration error: {e}", file=sys.stderr)
        return 2

    return args.handler(args, cas)


if __name__ == "__main__":
    sys.exit(main())
