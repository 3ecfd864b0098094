"""
generate-installation-token — print a GitHub App installation token.

Reads APP_ID, INSTALLATION_ID, PRIVATE_KEY_PATH and GITHUB_API_URL from the
environment, exchanges an App JWT for an installation access token and writes
the token as the only line on stdout:

    export GH_TOKEN=$(generate-installation-token)

Diagnostics and logs go to stderr only.

Exit codes:
    0 — token printed
    1 — configuration, key, signing or GitHub API failure

Logging:
    LOG_LEVEL:  structlog level for stderr output (default: warning)
    LOG_PRETTY: "true" for console rendering instead of JSON (default: false)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Mapping, Sequence

import httpx
import structlog

from token_generator import __version__
from token_generator.client import GitHubAppClient
from token_generator.config import IssuerConfig
from token_generator.errors import TokenIssuerError
from token_generator.issuer import TokenIssuer

logger = structlog.get_logger(__name__)


# ── Structured logging ─────────────────────────────────────────────────────────
def _configure_logging(environ: Mapping[str, str]) -> None:
    """Configure structlog to write to stderr so stdout carries only the token."""
    log_level = environ.get("LOG_LEVEL", "warning").upper()
    log_pretty = environ.get("LOG_PRETTY", "false").lower() == "true"

    renderers: list[structlog.types.Processor] = (
        [structlog.dev.ConsoleRenderer()]
        if log_pretty
        else [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level, logging.WARNING)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


# ── Diagnostics ────────────────────────────────────────────────────────────────
_FAILURE_PREFIX = "Failed to generate installation token: "


def _report(exc: BaseException, *, prefix: str = _FAILURE_PREFIX) -> None:
    """Write the operator diagnostic (and hint, if any) to stderr."""
    logger.error(
        "token_generator.token_issue_failed",
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=not isinstance(exc, TokenIssuerError),
    )
    print(f"ERROR: {prefix}{exc}", file=sys.stderr)
    hint = getattr(exc, "hint", None)
    if hint:
        print(hint, file=sys.stderr)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="generate-installation-token",
        description="Exchange GitHub App credentials for an installation access token.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--repository",
        action="append",
        default=[],
        metavar="NAME",
        help=(
            "Restrict the token to this repository (repeatable). "
            "Without it the token covers the whole installation."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


# ── Main ───────────────────────────────────────────────────────────────────────
async def run(
    environ: Mapping[str, str] | None = None,
    *,
    repositories: Sequence[str] = (),
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """
    Issue one installation token and print it.
    Returns exit code: 0 = token printed, 1 = any failure.
    """
    env = os.environ if environ is None else environ
    _configure_logging(env)

    try:
        config = IssuerConfig.from_env(env, repositories=tuple(repositories))
        # Local checks run before the HTTP client exists.
        config.validate()
    except TokenIssuerError as exc:
        _report(exc, prefix="")
        return 1

    try:
        async with GitHubAppClient(
            config.api_url, timeout=config.timeout_seconds, transport=transport
        ) as client:
            token = await TokenIssuer(config, client).issue()
    except Exception as exc:
        _report(exc)
        return 1

    print(token.token)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the console script and ``python -m token_generator``."""
    args = _build_parser().parse_args(argv)
    exit_code = asyncio.run(run(repositories=args.repository))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
